# PIM PRIME Core Infrastructure
"""
Core infrastructure components for PIM PRIME.

Modules:
    config_manager: Role-and-tenant descriptor loading
    session: Credential session passed to every remote call
"""

from .config_manager import ConfigManager, RolePolicyConfig, TenantConfig
from .session import AuthSession, TokenAudience, session_from_settings

__all__ = [
    "ConfigManager",
    "RolePolicyConfig",
    "TenantConfig",
    "AuthSession",
    "TokenAudience",
    "session_from_settings",
]
