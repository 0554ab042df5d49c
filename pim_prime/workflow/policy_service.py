# PIM_FEAT: policy-convergence-001
"""
PIM PRIME - Policy Convergence
==============================

Drives a role's activation policy to the state described in the
descriptor:

    1. Resolve the role display name to a role definition
    2. Resolve the approver group display name, when one is given
    3. Build the rule set (PolicyBuilder)
    4. Patch the role's existing policy (AccessAuthority.apply_policy)

Roles are converged independently; one role failing does not stop the
others in ``converge_all``.

Author: PIM PRIME Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pim_prime.access.audit import AuditEventType, AuditLogger, AuditResult
from pim_prime.api.authority import PolicyApplyResult
from pim_prime.core.config_manager import RolePolicyConfig, TenantConfig
from pim_prime.core.session import AuthSession
from shared.pim_core.exceptions import PIMError, ValidationError
from shared.pim_core.policy_builder import PolicyBuilder
from shared.pim_core.policy_rules import PolicyRuleSet

logger = logging.getLogger("PIM_PolicyService")


@dataclass
class ConvergenceReport:
    """Outcome of converging every described role."""

    results: Dict[str, PolicyApplyResult] = field(default_factory=dict)
    failures: Dict[str, PIMError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": {name: r.to_dict() for name, r in self.results.items()},
            "failures": {name: str(e) for name, e in self.failures.items()},
        }


class PolicyService:
    """
    Converges activation policies for described roles.

    Example:
        service = PolicyService(directory, authority, session, builder,
                                default_scope=tenant.scope)
        report = service.converge_all(tenant)
        for name, error in report.failures.items():
            print(name, error)
    """

    def __init__(
        self,
        directory,
        authority,
        session: AuthSession,
        builder: Optional[PolicyBuilder] = None,
        audit: Optional[AuditLogger] = None,
        default_scope: str = "",
    ):
        self.directory = directory
        self.authority = authority
        self.session = session
        self.builder = builder or PolicyBuilder()
        self.audit = audit
        self.default_scope = default_scope

    def scope_for(self, role: RolePolicyConfig) -> str:
        scope = role.scope or self.default_scope
        if not scope:
            raise ValidationError(f"No scope configured for role '{role.name}'", field="scope")
        return scope

    def plan(self, role: RolePolicyConfig) -> PolicyRuleSet:
        """
        Rule set for a role without contacting any remote service.

        An approver group given by name stays unresolved and is shown as
        ``<name>`` in place of its id.
        """
        placeholder = f"<{role.approver_group}>" if role.approver_group else None
        return self.builder.build(role.to_settings(approver_group_id=placeholder))

    def converge(self, role: RolePolicyConfig) -> PolicyApplyResult:
        """
        Apply the described policy to one role.

        Raises:
            ValidationError: descriptor values are invalid
            NotFoundError: role, approver group or policy does not exist
            AmbiguousMatchError: a display name matches several objects
            TransportError: a remote call failed
        """
        scope = self.scope_for(role)

        try:
            definition = self.directory.resolve_role(self.session, role.name, scope=scope)

            approver_id = None
            if role.require_approval and role.approver_group:
                approver_id = self.directory.resolve_group(self.session, role.approver_group).id

            rule_set = self.builder.build(role.to_settings(approver_group_id=approver_id))
            result = self.authority.apply_policy(self.session, scope, definition.id, rule_set)
        except PIMError as e:
            self._audit(role, AuditResult.FAILURE, error=e)
            raise

        logger.info(
            f"Converged '{role.name}': {len(result.applied)} applied, "
            f"{len(result.skipped)} skipped"
        )
        self._audit(role, AuditResult.SUCCESS, result=result)
        return result

    def converge_all(
        self,
        tenant: TenantConfig,
        only: Optional[List[str]] = None,
    ) -> ConvergenceReport:
        """Converge every described role, or only the named ones."""
        wanted = {n.lower() for n in only} if only else None
        report = ConvergenceReport()

        for role in tenant.roles:
            if wanted is not None and role.name.lower() not in wanted:
                continue
            try:
                report.results[role.name] = self.converge(role)
            except PIMError as e:
                logger.error(f"Converging '{role.name}' failed: {e}")
                report.failures[role.name] = e

        return report

    def _audit(
        self,
        role: RolePolicyConfig,
        outcome: AuditResult,
        result: Optional[PolicyApplyResult] = None,
        error: Optional[Exception] = None,
    ) -> None:
        if self.audit is None:
            return
        self.audit.log(
            AuditEventType.POLICY_APPLIED if error is None else AuditEventType.POLICY_APPLY_FAILED,
            actor=self.session.account,
            tenant_id=self.session.tenant_id,
            resource_type="role_policy",
            resource_id=result.policy_id if result else role.name,
            result=outcome,
            details=result.to_dict() if result else {"role": role.name},
            error_message=str(error) if error else None,
        )


__all__ = ["ConvergenceReport", "PolicyService"]
