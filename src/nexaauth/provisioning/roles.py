"""
Binding client roles to users.
"""

import logging
from typing import Any, Dict

from nexaauth.exceptions import ProviderError
from nexaauth.services.keycloak import (
    KeycloakAdminClient,
    describe_response,
    path_segment,
)

logger = logging.getLogger(__name__)


class RoleAssignmentService:
    def __init__(self, client: KeycloakAdminClient):
        self.keycloak = client

    def get_client_role(
        self, token: str, client_uuid: str, role_name: str
    ) -> Dict[str, Any]:
        return self.keycloak.get_json(
            token,
            f"/clients/{path_segment(client_uuid)}/roles/{path_segment(role_name)}",
            f"role '{role_name}'",
        )

    def assign_role(
        self, token: str, user_id: str, client_uuid: str, role_name: str
    ) -> None:
        """
        Map a client role onto a user.

        The caller must have confirmed that the user exists.

        Raises:
            ProviderError: If the role cannot be fetched or mapped
        """
        role = self.get_client_role(token, client_uuid, role_name)
        payload = [
            {
                "id": role["id"],
                "name": role["name"],
                "containerId": client_uuid,
                "clientRole": True,
            }
        ]

        response = self.keycloak.post(
            token,
            f"/users/{path_segment(user_id)}/role-mappings/clients/{path_segment(client_uuid)}",
            json=payload,
        )
        if not response.ok:
            raise ProviderError(
                f"Failed to assign role '{role_name}' to user {user_id}",
                upstream_status=response.status_code,
                details={"response": describe_response(response)},
            )
        logger.info(
            f"Assigned role '{role_name}' to user {user_id} for client {client_uuid}"
        )
