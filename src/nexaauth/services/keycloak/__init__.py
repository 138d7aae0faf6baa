from .admin_client import (
    KeycloakAdminClient,
    build_session,
    describe_response,
    path_segment,
    resource_id_from_response,
)
from .credentials import AdminCredentialProvider

__all__ = [
    "KeycloakAdminClient",
    "AdminCredentialProvider",
    "build_session",
    "describe_response",
    "path_segment",
    "resource_id_from_response",
]
