"""
Tests for the Descriptor Configuration Manager
==============================================
"""

import json

import pytest

from pim_prime.core.config_manager import ConfigManager, RolePolicyConfig
from shared.pim_core.exceptions import InvalidConfigError, MissingConfigError

DESCRIPTOR = """
tenant_id: contoso.onmicrosoft.com
scope: /subscriptions/sub1
roles:
  - name: Owner
    require_mfa: true
    require_approval: true
    approver_group: PIM Approvers
    max_activation_hours: 4
  - name: Reader
    scope: /subscriptions/sub1/resourceGroups/rg1
"""


@pytest.fixture
def descriptor_path(tmp_path):
    path = tmp_path / "roles.yaml"
    path.write_text(DESCRIPTOR)
    return path


class TestLoading:
    """Tests for descriptor loading."""

    def test_load_yaml(self, descriptor_path):
        manager = ConfigManager()
        assert manager.load(descriptor_path)

        tenant = manager.config
        assert tenant.tenant_id == "contoso.onmicrosoft.com"
        assert [r.name for r in tenant.roles] == ["Owner", "Reader"]
        assert tenant.roles[0].approver_group == "PIM Approvers"
        assert tenant.roles[1].require_justification is True
        assert manager.validate() == []

    def test_load_json(self, tmp_path):
        path = tmp_path / "roles.json"
        path.write_text(json.dumps({"scope": "/s", "roles": ["Reader"]}))
        manager = ConfigManager(path)
        assert manager.config.roles[0].name == "Reader"

    def test_missing_file(self, tmp_path):
        assert not ConfigManager().load(tmp_path / "absent.yaml")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "roles.toml"
        path.write_text("scope = '/s'")
        assert not ConfigManager().load(path)

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "roles.yaml"
        path.write_text("roles: [unclosed")
        assert not ConfigManager().load(path)

    def test_env_override(self, descriptor_path, monkeypatch):
        monkeypatch.setenv("PIM_CFG_SCOPE", "/subscriptions/override")
        manager = ConfigManager(descriptor_path)
        assert manager.config.scope == "/subscriptions/override"
        assert manager.get("scope") == "/subscriptions/override"

    def test_env_override_indexes_into_roles(self, descriptor_path, monkeypatch):
        monkeypatch.setenv("PIM_CFG_ROLES__1__REQUIRE_MFA", "true")
        manager = ConfigManager(descriptor_path)
        assert manager.config.roles[1].require_mfa is True
        assert manager.config.roles[0].name == "Owner"

    @pytest.mark.parametrize("key", ["PIM_CFG_ROLES__5__REQUIRE_MFA", "PIM_CFG_ROLES__X__REQUIRE_MFA", "PIM_CFG_SCOPE__X"])
    def test_env_override_through_non_container(self, descriptor_path, monkeypatch, key):
        """Overrides that cannot be placed fail the load instead of raising."""
        monkeypatch.setenv(key, "1")
        assert not ConfigManager().load(descriptor_path)
        with pytest.raises(InvalidConfigError):
            ConfigManager().load_or_raise(descriptor_path)

    def test_load_or_raise_missing(self, tmp_path):
        with pytest.raises(MissingConfigError):
            ConfigManager().load_or_raise(tmp_path / "absent.yaml")

    def test_load_or_raise_invalid(self, tmp_path):
        path = tmp_path / "roles.yaml"
        path.write_text("roles:\n  - name: Owner\n    max_activation_hours: 0\n")
        with pytest.raises(InvalidConfigError):
            ConfigManager().load_or_raise(path)


class TestValidation:
    """Tests for descriptor validation."""

    def test_role_without_scope(self, tmp_path):
        path = tmp_path / "roles.yaml"
        path.write_text("roles:\n  - Reader\n")
        errors = ConfigManager(path).validate()
        assert any("no scope" in e for e in errors)

    def test_duplicate_roles(self, tmp_path):
        path = tmp_path / "roles.yaml"
        path.write_text("scope: /s\nroles: [Reader, reader]\n")
        errors = ConfigManager(path).validate()
        assert any("more than once" in e for e in errors)

    def test_no_roles(self):
        assert ConfigManager().validate() == ["roles must list at least one role"]


class TestRoleLookup:
    """Tests for role access and conversion."""

    def test_role_is_case_insensitive(self, descriptor_path):
        assert ConfigManager(descriptor_path).role("owner").name == "Owner"

    def test_unknown_role(self, descriptor_path):
        with pytest.raises(MissingConfigError):
            ConfigManager(descriptor_path).role("Billing Reader")

    def test_to_settings_prefers_resolved_id(self):
        role = RolePolicyConfig(name="Owner", require_approval=True, approver_group_id="g-static")
        assert role.to_settings().approver_group_id == "g-static"
        assert role.to_settings(approver_group_id="g-resolved").approver_group_id == "g-resolved"


class TestInfo:
    """Tests for the descriptor summary."""

    def test_get_info(self, descriptor_path):
        info = ConfigManager(descriptor_path).get_info()
        assert info["path"] == str(descriptor_path)
        assert info["scope"] == "/subscriptions/sub1"
        assert info["roles"] == ["Owner", "Reader"]
        assert info["validation_errors"] == []
        assert info["loaded_at"] is not None

    def test_get_info_before_load(self):
        info = ConfigManager().get_info()
        assert info["path"] is None
        assert info["roles"] == []
