"""
Centralized Configuration Management using Pydantic Settings.

Every settings class is frozen: the provisioning components receive one
immutable value at construction time and never read the environment
themselves.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class KeycloakSettings(BaseSettings):
    """Keycloak admin API connection settings."""

    model_config = SettingsConfigDict(env_prefix="KEYCLOAK_", frozen=True)

    server_url: str = "http://localhost:8080"
    realm: str = "nexaauth"
    admin_user: str = "admin"
    admin_password: str = "admin"
    admin_client_id: str = "admin-cli"
    # Public client used by the frontend; reported only
    client_id: str = "nexaauth-app"
    timeout: float = Field(default=10.0, gt=0)
    max_retries: int = Field(default=2, ge=0, le=10)

    @field_validator("server_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def admin_base_url(self) -> str:
        return f"{self.server_url}/admin/realms/{self.realm}"

    @property
    def token_url(self) -> str:
        return f"{self.server_url}/realms/master/protocol/openid-connect/token"


class ProvisioningSettings(BaseSettings):
    """Defaults applied to every provisioned tenant."""

    model_config = SettingsConfigDict(env_prefix="PROVISIONING_", frozen=True)

    default_roles: List[str] = Field(
        default_factory=lambda: ["orgAdmin", "organizer", "user"]
    )
    admin_role: str = "orgAdmin"
    domain_suffix: str = ".org"
    default_user_password: str = "testpassword123"


class CORSSettings(BaseSettings):
    model_config = SettingsConfigDict(frozen=True)

    allow_origins: List[str] = ["*"]
    allow_credentials: bool = True
    allow_methods: List[str] = ["GET", "POST"]
    allow_headers: List[str] = ["*"]


class AppSettings(BaseSettings):
    """
    Main application settings aggregating all configuration.

    Usage:
        settings = get_settings()
        print(settings.keycloak.realm)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app_name: str = "NexaAuth Registration Service"
    app_version: str = "1.0.0"
    environment: str = Field(default="development", alias="NODE_ENV")
    debug: bool = False
    port: int = Field(default=3000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    enable_test_routes: bool = Field(default=False, alias="ENABLE_TEST_ROUTES")

    keycloak: KeycloakSettings = Field(default_factory=KeycloakSettings)
    provisioning: ProvisioningSettings = Field(default_factory=ProvisioningSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> AppSettings:
    """
    Cached settings factory.

    The @lru_cache ensures settings are loaded only once.
    For testing, use dependency injection override.
    """
    return AppSettings()
