from typing import Any, Dict, Optional


#       BASE EXCEPTIONS
# ------------------------------


class NexaAuthError(Exception):
    """
    Base exception for all NexaAuth provisioning errors.
    """

    def __init__(
        self,
        message: str,
        code: str = "NEXAAUTH_ERROR",
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


#       IDENTITY EXCEPTIONS
# ------------------------------


class IdentityValidationError(NexaAuthError):
    """Raised when required identity fields are missing."""

    def __init__(self, message: str = "Invalid identity", **kwargs):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            **kwargs,
        )


class UserNotFoundError(NexaAuthError):
    """Raised when a user is not found in the identity provider."""

    def __init__(self, message: str = "User not found", **kwargs):
        super().__init__(
            message=message,
            code="USER_NOT_FOUND",
            status_code=404,
            **kwargs,
        )


#       IDENTITY PROVIDER EXCEPTIONS
# ---------------------------------------


class AdminAuthError(NexaAuthError):
    """Raised when the admin token cannot be obtained. Aborts provisioning."""

    def __init__(
        self, message: str = "Failed to obtain Keycloak admin token", **kwargs
    ):
        super().__init__(
            message=message,
            code="ADMIN_AUTH_FAILED",
            status_code=500,
            **kwargs,
        )


class ProviderError(NexaAuthError):
    """Raised when the identity provider answers with an unexpected status."""

    def __init__(
        self,
        message: str = "Identity provider request failed",
        upstream_status: Optional[int] = None,
        code: str = "PROVIDER_ERROR",
        **kwargs,
    ):
        self.upstream_status = upstream_status
        details = kwargs.pop("details", None) or {}
        if upstream_status is not None:
            details.setdefault("upstream_status", upstream_status)
        super().__init__(
            message=message,
            code=code,
            status_code=500,
            details=details,
            **kwargs,
        )


class ConflictUnresolvedError(ProviderError):
    """
    Raised when creation reported a naming conflict but no existing
    resource matched the lookup key.
    """

    def __init__(self, message: str = "Conflict could not be resolved", **kwargs):
        super().__init__(
            message=message,
            code="CONFLICT_UNRESOLVED",
            **kwargs,
        )


#       CONFIGURATION EXCEPTIONS
# -------------------------------------


class ConfigurationError(NexaAuthError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str = "Invalid configuration", **kwargs):
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            status_code=500,
            **kwargs,
        )
