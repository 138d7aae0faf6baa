from .exceptions import (
    NexaAuthError,
    IdentityValidationError,
    UserNotFoundError,
    AdminAuthError,
    ProviderError,
    ConflictUnresolvedError,
    ConfigurationError,
)
from .provisioning import (
    Identity,
    DerivedNames,
    ClientInfo,
    ProvisioningResult,
    ProvisioningWorkflow,
    derive_names,
)
from .services.keycloak import KeycloakAdminClient, AdminCredentialProvider

__all__ = [
    "NexaAuthError",
    "IdentityValidationError",
    "UserNotFoundError",
    "AdminAuthError",
    "ProviderError",
    "ConflictUnresolvedError",
    "ConfigurationError",
    "Identity",
    "DerivedNames",
    "ClientInfo",
    "ProvisioningResult",
    "ProvisioningWorkflow",
    "derive_names",
    "KeycloakAdminClient",
    "AdminCredentialProvider",
]
