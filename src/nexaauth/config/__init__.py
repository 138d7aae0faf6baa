from .settings import (
    AppSettings,
    KeycloakSettings,
    ProvisioningSettings,
    CORSSettings,
    get_settings,
)

__all__ = [
    "AppSettings",
    "KeycloakSettings",
    "ProvisioningSettings",
    "CORSSettings",
    "get_settings",
]
