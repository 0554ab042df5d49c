"""
PIM PRIME API Configuration

Environment-based settings for the authority and directory clients.
"""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "PIM PRIME"
    APP_VERSION: str = "1.0.0"
    TOOL_NAME: str = "pim-prime"
    LOG_LEVEL: str = "INFO"

    # Tenant
    TENANT_ID: str = ""
    DEFAULT_SCOPE: str = ""
    DESCRIPTOR_PATH: str = "config/roles.yaml"

    # Access authority (role definitions, policies, requests, approvals)
    AUTHORITY_BASE_URL: str = "https://management.azure.com"
    SCHEDULE_REQUESTS_API_VERSION: str = "2020-10-01"
    APPROVALS_API_VERSION: str = "2021-01-01-preview"
    POLICIES_API_VERSION: str = "2020-10-01"
    ROLE_DEFINITIONS_API_VERSION: str = "2022-04-01"

    # Directory (groups)
    DIRECTORY_BASE_URL: str = "https://graph.microsoft.com/v1.0"

    # Transport; None keeps the HTTP client's own default timeout
    REQUEST_TIMEOUT_SEC: Optional[float] = None

    # Bearer tokens are acquired outside this tool and handed in
    MANAGEMENT_TOKEN: Optional[str] = None
    DIRECTORY_TOKEN: Optional[str] = None

    # Policy
    DEFAULT_APPROVER_ID: Optional[str] = None
    ACTIVATION_RULE_NAMESPACE: str = "EndUser_Assignment"

    # Workflow
    DEFAULT_DECISION_JUSTIFICATION: str = "Reviewed with pim-prime (no justification entered)"
    AUDIT_BUFFER_SIZE: int = 500

    model_config = SettingsConfigDict(
        env_prefix="PIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("DEFAULT_DECISION_JUSTIFICATION")
    @classmethod
    def validate_default_justification(cls, v: str) -> str:
        """Blank decisions are filled with this text, so it cannot be blank itself."""
        if not v or not v.strip():
            raise ValueError("DEFAULT_DECISION_JUSTIFICATION must not be blank")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
