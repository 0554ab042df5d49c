#!/usr/bin/env python3
# PIM_FEAT: main-entry-001
"""
PIM PRIME - Main Entry Point
============================

Privileged access review and activation policy tool.

Usage:
    pim-prime                                   # interactive review menu
    pim-prime apply-policy --config config/roles.yaml --dry-run
    pim-prime apply-policy --config config/roles.yaml --role Contributor
    pim-prime assign --principal-id <id> --role Reader --scope /subscriptions/<id>

Author: PIM PRIME Development Team
Version: 1.0.0
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError as SettingsError

from pim_prime.access.audit import AuditEventType, AuditLogger, AuditResult
from pim_prime.api.authority import AccessAuthority
from pim_prime.api.config import Settings, get_settings
from pim_prime.api.directory import DirectoryLookup
from pim_prime.cli.shell import ReviewShell
from pim_prime.core.config_manager import ConfigManager
from pim_prime.core.session import AuthSession, session_from_settings
from pim_prime.workflow.catalog import RequestCatalog
from pim_prime.workflow.policy_service import PolicyService
from pim_prime.workflow.state_machine import ApprovalWorkflow, WorkflowConfig
from shared.pim_core.approvals import AssignmentRequest, AssignmentType
from shared.pim_core.exceptions import PIMError
from shared.pim_core.policy_builder import PolicyBuilder, PolicyBuilderConfig

logger = logging.getLogger("PIM_MAIN")


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="pim-prime",
        description="PIM PRIME - Privileged access review and policy tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-l", "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: PIM_LOG_LEVEL or INFO)",
    )

    parser.add_argument(
        "-t", "--tenant",
        type=str,
        default=None,
        help="Tenant id (overrides PIM_TENANT_ID)",
    )

    commands = parser.add_subparsers(dest="command")

    commands.add_parser("review", help="Interactive review menu (default)")

    apply = commands.add_parser("apply-policy", help="Converge role activation policies")
    apply.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="Role descriptor file (default: PIM_DESCRIPTOR_PATH)",
    )
    apply.add_argument(
        "-r", "--role",
        type=str,
        action="append",
        default=None,
        help="Only converge this role (repeatable)",
    )
    apply.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate the descriptor and print rule sets without applying",
    )

    assign = commands.add_parser("assign", help="Submit a role assignment request")
    assign.add_argument("--principal-id", required=True, help="Object id of the assignee")
    target = assign.add_mutually_exclusive_group(required=True)
    target.add_argument("--role", help="Role display name")
    target.add_argument("--role-id", help="Role definition resource id")
    assign.add_argument("--scope", default=None, help="Scope (default: PIM_DEFAULT_SCOPE)")
    assign.add_argument(
        "--type",
        dest="assignment_type",
        choices=[t.value.lower() for t in AssignmentType],
        default=AssignmentType.ELIGIBLE.value.lower(),
        help="Assignment type (default: eligible)",
    )
    assign.add_argument("--days", type=int, default=365, help="Assignment duration in days")
    assign.add_argument("--justification", required=True, help="Reason for the assignment")

    return parser.parse_args(argv)


def build_session(settings: Settings, args: argparse.Namespace, tenant_id: str = "") -> AuthSession:
    return session_from_settings(settings, tenant_id=args.tenant or tenant_id or None)


def cmd_review(settings: Settings, args: argparse.Namespace) -> int:
    session = build_session(settings, args)
    audit = AuditLogger(settings.AUDIT_BUFFER_SIZE)
    authority = AccessAuthority(settings)

    audit.log(
        AuditEventType.SESSION_CONNECTED,
        actor=session.account,
        tenant_id=session.tenant_id,
        resource_type="session",
    )

    catalog = RequestCatalog(authority, audit)
    workflow_config = WorkflowConfig(default_justification=settings.DEFAULT_DECISION_JUSTIFICATION)

    def new_workflow() -> ApprovalWorkflow:
        return ApprovalWorkflow(catalog, authority, session, workflow_config, audit)

    try:
        return ReviewShell(new_workflow, session, audit).run()
    finally:
        authority.close()


def cmd_apply_policy(settings: Settings, args: argparse.Namespace) -> int:
    config_path = args.config or settings.DESCRIPTOR_PATH
    manager = ConfigManager()
    tenant = manager.load_or_raise(config_path)

    builder = PolicyBuilder(PolicyBuilderConfig(
        default_approver_id=settings.DEFAULT_APPROVER_ID,
    ))
    roles = [manager.role(name) for name in args.role] if args.role else tenant.roles

    if args.dry_run:
        logger.info("Dry run mode - nothing will be applied")
        info = manager.get_info()
        logger.info(f"Descriptor: {info['path']} ({len(info['roles'])} roles)")
        service = PolicyService(None, None, None, builder, default_scope=tenant.scope)
        plan = {
            role.name: {
                "scope": service.scope_for(role),
                "rules": service.plan(role).to_dict(),
            }
            for role in roles
        }
        print(json.dumps(plan, indent=2))
        return 0

    session = build_session(settings, args, tenant.tenant_id)
    audit = AuditLogger(settings.AUDIT_BUFFER_SIZE)
    directory = DirectoryLookup(settings)
    authority = AccessAuthority(settings)

    try:
        service = PolicyService(
            directory,
            authority,
            session,
            builder,
            audit,
            default_scope=tenant.scope or settings.DEFAULT_SCOPE,
        )
        report = service.converge_all(tenant, only=[r.name for r in roles])
    finally:
        directory.close()
        authority.close()

    print(json.dumps(report.to_dict(), indent=2))
    return 0 if report.ok else 1


def cmd_assign(settings: Settings, args: argparse.Namespace) -> int:
    scope = args.scope or settings.DEFAULT_SCOPE
    session = build_session(settings, args)
    audit = AuditLogger(settings.AUDIT_BUFFER_SIZE)
    directory = DirectoryLookup(settings)
    authority = AccessAuthority(settings)

    try:
        role_id = args.role_id
        if role_id is None:
            role_id = directory.resolve_role(session, args.role, scope=scope).id

        request = AssignmentRequest(
            principal_id=args.principal_id,
            role_definition_id=role_id,
            scope_id=scope,
            assignment_type=AssignmentType(args.assignment_type.capitalize()),
            justification=args.justification,
            duration_days=args.days,
        )
        try:
            request_id = authority.submit_assignment(session, request)
        except PIMError as e:
            audit.log(
                AuditEventType.ASSIGNMENT_FAILED,
                actor=session.account,
                tenant_id=session.tenant_id,
                resource_type="assignment",
                resource_id=args.principal_id,
                result=AuditResult.FAILURE,
                error_message=str(e),
            )
            raise
    finally:
        directory.close()
        authority.close()

    audit.log(
        AuditEventType.ASSIGNMENT_SUBMITTED,
        actor=session.account,
        tenant_id=session.tenant_id,
        resource_type="assignment",
        resource_id=request_id,
        details={
            "principal_id": request.principal_id,
            "role_definition_id": request.role_definition_id,
            "type": request.assignment_type.value,
            "duration": request.duration,
        },
    )
    print(request_id)
    return 0


COMMANDS = {
    "review": cmd_review,
    "apply-policy": cmd_apply_policy,
    "assign": cmd_assign,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    try:
        settings = get_settings()
    except SettingsError as e:
        setup_logging(args.log_level or "INFO")
        logger.error(f"Invalid settings: {e}")
        return 1

    setup_logging(args.log_level or settings.LOG_LEVEL)
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION}")

    command = COMMANDS[args.command or "review"]
    try:
        return command(settings, args)
    except PIMError as e:
        logger.error(str(e))
        return 1


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(1)


if __name__ == "__main__":
    run()
