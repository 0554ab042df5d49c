"""
Directory Lookup Client

Resolves role and group display names to stable identifiers.
A name must match exactly one object: zero matches raise NotFoundError,
several raise AmbiguousMatchError.
"""

import logging
from typing import List, Optional

import httpx

from pim_prime.api.config import Settings
from pim_prime.api.schemas import DirectoryGroupListResult, RoleDefinitionListResult
from pim_prime.api.transport import AUTHORIZATION_PROVIDER, RestClient, odata_literal, parse_body
from pim_prime.core.session import AuthSession, TokenAudience
from shared.pim_core.approvals import GroupRef, RoleDefinition
from shared.pim_core.exceptions import AmbiguousMatchError, NotFoundError

logger = logging.getLogger(__name__)


def _single(matches: List, resource_type: str, name: str):
    if not matches:
        raise NotFoundError(
            f"No {resource_type} named '{name}'",
            resource_type=resource_type,
            name=name,
        )
    if len(matches) > 1:
        raise AmbiguousMatchError(
            f"{len(matches)} {resource_type}s share the name '{name}'",
            resource_type=resource_type,
            name=name,
            match_count=len(matches),
        )
    return matches[0]


class DirectoryLookup:
    """Role definitions come from the authority, groups from the directory."""

    def __init__(
        self,
        settings: Settings,
        authority_client: Optional[httpx.Client] = None,
        directory_client: Optional[httpx.Client] = None,
    ):
        self.settings = settings
        self.roles = RestClient(
            settings.AUTHORITY_BASE_URL,
            TokenAudience.AUTHORITY,
            client=authority_client,
            timeout=settings.REQUEST_TIMEOUT_SEC,
        )
        self.groups = RestClient(
            settings.DIRECTORY_BASE_URL,
            TokenAudience.DIRECTORY,
            client=directory_client,
            timeout=settings.REQUEST_TIMEOUT_SEC,
        )

    def resolve_role(
        self,
        session: AuthSession,
        name: str,
        scope: Optional[str] = None,
    ) -> RoleDefinition:
        """
        Resolve a role display name at a scope.

        Raises:
            NotFoundError: no role has that name
            AmbiguousMatchError: several roles share the name
        """
        scope = (scope or self.settings.DEFAULT_SCOPE).rstrip("/")
        operation = f"resolve role '{name}'"
        body = self.roles.get(
            session,
            f"{scope}/{AUTHORIZATION_PROVIDER}/roleDefinitions",
            operation,
            params={
                "api-version": self.settings.ROLE_DEFINITIONS_API_VERSION,
                "$filter": f"roleName eq {odata_literal(name)}",
            },
        )
        result = parse_body(RoleDefinitionListResult, body, operation)
        resource = _single(result.value, "role", name)

        role = RoleDefinition(
            id=resource.id,
            display_name=resource.properties.role_name or name,
        )
        logger.debug(f"Resolved role '{name}' -> {role.id}")
        return role

    def resolve_group(self, session: AuthSession, name: str) -> GroupRef:
        """
        Resolve a group display name.

        Raises:
            NotFoundError: no group has that name
            AmbiguousMatchError: several groups share the name
        """
        operation = f"resolve group '{name}'"
        matches = []
        pages = self.groups.iter_pages(
            session,
            "/groups",
            operation,
            params={
                "$filter": f"displayName eq {odata_literal(name)}",
                "$select": "id,displayName",
            },
        )
        for page in pages:
            matches.extend(parse_body(DirectoryGroupListResult, page, operation).value)

        group = _single(matches, "group", name)
        logger.debug(f"Resolved group '{name}' -> {group.id}")
        return GroupRef(id=group.id, display_name=group.display_name or name)

    def close(self) -> None:
        self.roles.close()
        self.groups.close()


__all__ = ["DirectoryLookup"]
