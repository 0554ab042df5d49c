"""
PIM PRIME - Credential Session
==============================

Explicit session object handed to every authority and directory call.
Token acquisition happens outside this tool; the session only asks its
token provider for a bearer token per audience.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Mapping, Optional

from shared.pim_core.exceptions import SessionClosedError, TransportError

logger = logging.getLogger("PIM_Session")


class TokenAudience(Enum):
    """Remote services a token can be issued for."""

    AUTHORITY = "authority"
    DIRECTORY = "directory"


TokenProvider = Callable[[TokenAudience], Optional[str]]


def static_token_provider(tokens: Mapping[TokenAudience, Optional[str]]) -> TokenProvider:
    """Token provider over pre-acquired tokens."""
    snapshot = dict(tokens)

    def provide(audience: TokenAudience) -> Optional[str]:
        return snapshot.get(audience)

    return provide


@dataclass
class AuthSession:
    """
    A reviewer's connection to the tenant.

    Example:
        session = AuthSession(
            tenant_id="contoso.onmicrosoft.com",
            account="reviewer@contoso.com",
            token_provider=static_token_provider({TokenAudience.AUTHORITY: token}),
        )
        headers = session.authorization_header(TokenAudience.AUTHORITY)
    """

    tenant_id: str
    account: str
    token_provider: TokenProvider
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    _connected: bool = field(default=True, repr=False)

    @property
    def is_connected(self) -> bool:
        return self._connected

    def authorization_header(self, audience: TokenAudience) -> Dict[str, str]:
        """Bearer header for the audience."""
        if not self._connected:
            raise SessionClosedError(
                "Session is disconnected; restart to sign in again",
                operation="authenticate",
            )

        token = self.token_provider(audience)
        if not token:
            raise TransportError(
                f"No access token available for {audience.value}",
                operation="authenticate",
            )
        return {"Authorization": f"Bearer {token}"}

    def disconnect(self) -> None:
        """Drop the session; later calls fail with SessionClosedError."""
        if self._connected:
            self._connected = False
            logger.info(f"Session disconnected: {self.account}@{self.tenant_id}")


def session_from_settings(settings, tenant_id: Optional[str] = None) -> AuthSession:
    """Build a session from tokens supplied through settings/environment."""
    return AuthSession(
        tenant_id=tenant_id or settings.TENANT_ID,
        account=settings.TOOL_NAME,
        token_provider=static_token_provider({
            TokenAudience.AUTHORITY: settings.MANAGEMENT_TOKEN,
            TokenAudience.DIRECTORY: settings.DIRECTORY_TOKEN,
        }),
    )


__all__ = [
    "TokenAudience",
    "TokenProvider",
    "static_token_provider",
    "AuthSession",
    "session_from_settings",
]
