"""
Organization provisioning and membership.
"""

import logging
from typing import Any, Dict, Optional

import requests

from nexaauth.exceptions import ProviderError
from nexaauth.services.keycloak import (
    KeycloakAdminClient,
    describe_response,
    path_segment,
)

from .reconciler import reconcile

logger = logging.getLogger(__name__)


def build_organization_payload(name: str, domain: str) -> Dict[str, Any]:
    return {
        "name": name,
        "domains": [domain],
        "attributes": {
            "description": [f"Organization: {name}"],
            "type": ["organization"],
        },
    }


class OrganizationProvisioner:
    def __init__(self, client: KeycloakAdminClient):
        self.keycloak = client

    def find_organization(self, token: str, name: str) -> Optional[Dict[str, Any]]:
        """Search organizations by name and return the exact match, if any."""
        organizations = self.keycloak.get_json(
            token, "/organizations", "organizations", params={"search": name}
        )
        for organization in organizations or []:
            if organization.get("name") == name:
                return organization
        return None

    def ensure_organization(self, token: str, name: str, domain: str) -> str:
        """
        Create the organization, or return the existing one's id on conflict.

        Returns:
            Organization id
        """

        def create() -> requests.Response:
            return self.keycloak.post(
                token,
                "/organizations",
                json=build_organization_payload(name, domain),
            )

        def lookup() -> Optional[str]:
            existing = self.find_organization(token, name)
            return existing["id"] if existing else None

        result = reconcile(f"organization '{name}'", create, lookup)
        return result.value

    def ensure_membership(self, token: str, org_id: str, user_id: str) -> None:
        """
        Add a user to an organization. An existing membership counts as
        success.

        Raises:
            ProviderError: If Keycloak rejects the membership
        """
        response = self.keycloak.post(
            token,
            f"/organizations/{path_segment(org_id)}/members",
            data=str(user_id),
        )
        if response.status_code in (201, 204):
            logger.info(
                "Added user to Keycloak organization",
                extra={"keycloak_id": user_id, "org_id": org_id},
            )
            return
        if response.status_code == 409:
            logger.info(f"User {user_id} is already a member of organization {org_id}")
            return

        raise ProviderError(
            f"Failed to add user {user_id} to organization {org_id}",
            upstream_status=response.status_code,
            details={"response": describe_response(response)},
        )
