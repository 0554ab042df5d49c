# PIM_FEAT: config-manager-001
"""
PIM PRIME - Configuration Manager
=================================

Loads the role-and-tenant descriptor consumed once at startup.

Features:
- YAML/JSON descriptor loading
- Environment variable overrides (PIM_CFG_ prefix, ``__`` as separator)
- Descriptor validation

Descriptor shape:
    tenant_id: contoso.onmicrosoft.com
    scope: /subscriptions/<id>
    roles:
      - name: Contributor
        require_mfa: true
        require_approval: true
        approver_group: PIM Approvers
        max_activation_hours: 8

Author: PIM PRIME Development Team
Version: 1.0.0
"""

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from shared.pim_core.exceptions import InvalidConfigError, MissingConfigError
from shared.pim_core.policy_builder import PolicySettings

logger = logging.getLogger("PIM_ConfigManager")


@dataclass
class RolePolicyConfig:
    """Desired activation policy for one role."""

    name: str
    require_justification: bool = True
    require_ticket: bool = False
    require_mfa: bool = False
    require_approval: bool = False
    approver_group: Optional[str] = None
    approver_group_id: Optional[str] = None
    max_activation_hours: int = 8
    enabled_rules: List[str] = field(default_factory=list)
    scope: Optional[str] = None

    def to_settings(self, approver_group_id: Optional[str] = None) -> PolicySettings:
        """Policy settings, with an approver id resolved by the caller if given."""
        return PolicySettings(
            require_justification=self.require_justification,
            require_ticket=self.require_ticket,
            require_mfa=self.require_mfa,
            require_approval=self.require_approval,
            approver_group_id=approver_group_id or self.approver_group_id,
            max_activation_hours=self.max_activation_hours,
            enabled_rules=tuple(self.enabled_rules),
        )


@dataclass
class TenantConfig:
    """Complete descriptor."""

    tenant_id: str = ""
    scope: str = ""
    roles: List[RolePolicyConfig] = field(default_factory=list)


class ConfigManager:
    """
    Descriptor manager for PIM PRIME.

    Example:
        config_manager = ConfigManager()
        config_manager.load("config/roles.yaml")

        scope = config_manager.get("scope")
        for role in config_manager.config.roles:
            print(role.name)
    """

    def __init__(self, config_path: Optional[Path] = None):
        self._config_path = config_path
        self._config: TenantConfig = TenantConfig()
        self._raw_config: Dict[str, Any] = {}
        self._loaded_at: Optional[datetime] = None
        self._env_prefix = "PIM_CFG_"

        if config_path:
            self.load(config_path)

    def load(self, path: Union[str, Path]) -> bool:
        """
        Load the descriptor from file.

        Args:
            path: Path to descriptor (YAML or JSON)

        Returns:
            True if loaded successfully
        """
        path = Path(path)

        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return False

        try:
            with open(path, "r") as f:
                if path.suffix in [".yaml", ".yml"]:
                    self._raw_config = yaml.safe_load(f) or {}
                elif path.suffix == ".json":
                    self._raw_config = json.load(f)
                else:
                    logger.error(f"Unsupported config format: {path.suffix}")
                    return False

            if not isinstance(self._raw_config, dict):
                raise InvalidConfigError("Descriptor must be a mapping", key="<root>")

            self._apply_env_overrides()
            self._parse_config()

            self._config_path = path
            self._loaded_at = datetime.now(timezone.utc)
            logger.info(f"Configuration loaded from: {path}")
            return True

        except (OSError, yaml.YAMLError, json.JSONDecodeError, InvalidConfigError) as e:
            logger.error(f"Failed to load config: {e}")
            return False

    def load_or_raise(self, path: Union[str, Path]) -> TenantConfig:
        """
        Load the descriptor and return it, raising when that is impossible.

        Raises:
            MissingConfigError: the file does not exist
            InvalidConfigError: the file could not be parsed or is invalid
        """
        path = Path(path)
        if not path.exists():
            raise MissingConfigError(f"Config file not found: {path}", key=str(path))
        if not self.load(path):
            raise InvalidConfigError(f"Could not load config: {path}", key=str(path))

        errors = self.validate()
        if errors:
            raise InvalidConfigError("; ".join(errors), key=str(path))
        return self._config

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        for key, value in os.environ.items():
            if key.startswith(self._env_prefix):
                config_key = key[len(self._env_prefix):].lower().replace("__", ".")
                self._set_nested(config_key, self._parse_value(value))

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "false"):
            return value.lower() == "true"

        try:
            return int(value)
        except ValueError:
            return value

    def _set_nested(self, key: str, value: Any) -> None:
        """
        Set a nested config value using dot notation.

        Numeric parts index into lists (``roles.0.require_mfa``).

        Raises:
            InvalidConfigError: the path runs through a scalar, or indexes
                past the end of a list
        """
        parts = key.split(".")
        current: Any = self._raw_config

        for depth, part in enumerate(parts):
            path = ".".join(parts[: depth + 1])
            last = depth == len(parts) - 1

            if isinstance(current, dict):
                if last:
                    current[part] = value
                else:
                    current = current.setdefault(part, {})
            elif isinstance(current, list):
                if not part.isdigit() or int(part) >= len(current):
                    raise InvalidConfigError(
                        f"Override {key!r}: no list item {part!r} at {path!r}", key=key
                    )
                if last:
                    current[int(part)] = value
                else:
                    current = current[int(part)]
            else:
                parent = ".".join(parts[:depth])
                raise InvalidConfigError(
                    f"Override {key!r}: {parent!r} is not a mapping or list", key=key
                )

    def _parse_role(self, raw: Any) -> RolePolicyConfig:
        if isinstance(raw, str):
            return RolePolicyConfig(name=raw)
        if not isinstance(raw, dict) or not raw.get("name"):
            raise InvalidConfigError(f"Role entry needs a name: {raw!r}", key="roles")

        return RolePolicyConfig(
            name=raw["name"],
            require_justification=raw.get("require_justification", True),
            require_ticket=raw.get("require_ticket", False),
            require_mfa=raw.get("require_mfa", False),
            require_approval=raw.get("require_approval", False),
            approver_group=raw.get("approver_group"),
            approver_group_id=raw.get("approver_group_id"),
            max_activation_hours=raw.get("max_activation_hours", 8),
            enabled_rules=list(raw.get("enabled_rules") or []),
            scope=raw.get("scope"),
        )

    def _parse_config(self) -> None:
        """Parse raw descriptor into structured config."""
        raw = self._raw_config

        roles = raw.get("roles") or []
        if not isinstance(roles, list):
            raise InvalidConfigError("'roles' must be a list", key="roles")

        self._config = TenantConfig(
            tenant_id=str(raw.get("tenant_id", "") or ""),
            scope=str(raw.get("scope", "") or ""),
            roles=[self._parse_role(r) for r in roles],
        )

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get descriptor value by dot-notation key.

        Args:
            key: Dot-notation key (e.g., "scope")
            default: Default value if not found
        """
        parts = key.split(".")
        current = self._raw_config

        for part in parts:
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default

        return current

    @property
    def config(self) -> TenantConfig:
        """Get the structured descriptor."""
        return self._config

    def role(self, name: str) -> RolePolicyConfig:
        """
        Role entry by name, case-insensitive.

        Raises:
            MissingConfigError: no role with that name is described
        """
        for role in self._config.roles:
            if role.name.lower() == name.lower():
                return role
        raise MissingConfigError(f"Role '{name}' is not in the descriptor", key="roles")

    def validate(self) -> List[str]:
        """
        Validate descriptor.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self._config.roles:
            errors.append("roles must list at least one role")

        seen = set()
        for role in self._config.roles:
            key = role.name.lower()
            if key in seen:
                errors.append(f"role '{role.name}' is described more than once")
            seen.add(key)

            if not (role.scope or self._config.scope):
                errors.append(f"role '{role.name}' has no scope and no tenant scope is set")

            if role.approver_group and role.approver_group_id:
                errors.append(
                    f"role '{role.name}': give approver_group or approver_group_id, not both"
                )

            for error in role.to_settings().validate():
                errors.append(f"role '{role.name}': {error}")

        return errors

    def get_info(self) -> Dict[str, Any]:
        """Get configuration info."""
        return {
            "path": str(self._config_path) if self._config_path else None,
            "loaded_at": self._loaded_at.isoformat() if self._loaded_at else None,
            "tenant_id": self._config.tenant_id,
            "scope": self._config.scope,
            "roles": [r.name for r in self._config.roles],
            "validation_errors": self.validate(),
        }


__all__ = [
    "RolePolicyConfig",
    "TenantConfig",
    "ConfigManager",
]
