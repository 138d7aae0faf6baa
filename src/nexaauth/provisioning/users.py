"""
User lookups and creation against the identity provider.
"""

import logging
import re
from typing import Any, Dict, List, Optional

import requests

from nexaauth.exceptions import ProviderError
from nexaauth.services.keycloak import (
    KeycloakAdminClient,
    describe_response,
    path_segment,
)

from .models import Identity

logger = logging.getLogger(__name__)

_USERNAME_STRIP = re.compile(r"[^a-zA-Z0-9._-]")


def username_from_email(email: str) -> str:
    return _USERNAME_STRIP.sub("", email.split("@")[0]).lower()


class UserDirectory:
    def __init__(self, client: KeycloakAdminClient):
        self.keycloak = client

    def _user_path(self, user_id: str) -> str:
        return f"/users/{path_segment(user_id)}"

    def user_exists(self, token: str, user_id: str) -> bool:
        """
        Check whether a user exists.

        A 404 means absent. Any other failure is logged and also reported
        as absent, so that dependent steps are skipped rather than aborted.
        """
        try:
            response = self.keycloak.get(token, self._user_path(user_id))
        except requests.RequestException as e:
            logger.warning(f"Error checking user existence in Keycloak: {e}")
            return False

        if response.ok:
            return True
        if response.status_code != 404:
            logger.warning(
                f"Error checking user existence in Keycloak: HTTP {response.status_code}",
                extra={"user_id": user_id},
            )
        return False

    def get_user(self, token: str, user_id: str) -> Dict[str, Any]:
        return self.keycloak.get_json(token, self._user_path(user_id), "user")

    def get_user_organizations(self, token: str, user_id: str) -> List[Dict[str, Any]]:
        return self.keycloak.get_json(
            token,
            f"{self._user_path(user_id)}/organizations",
            "user organizations",
        )

    def get_user_client_roles(self, token: str, user_id: str) -> Any:
        return self.keycloak.get_json(
            token,
            f"{self._user_path(user_id)}/role-mappings/clients",
            "user client role mappings",
        )

    def find_user_by_email(self, token: str, email: str) -> Optional[Dict[str, Any]]:
        """
        Return the user registered with exactly ``email``, or None.

        Keycloak matches the ``email`` query by substring unless ``exact``
        is set, so hits are also compared case-insensitively here.
        """
        users = self.keycloak.get_json(
            token, "/users", "users", params={"email": email, "exact": "true"}
        )
        wanted = email.strip().lower()
        for user in users or []:
            if (user.get("email") or "").lower() == wanted:
                return user

        logger.info(f"No user found with email: {email}")
        return None

    def create_user(self, token: str, identity: Identity, password: str) -> None:
        """
        Create a user whose id matches the identity's subject id.

        An already existing user counts as success.

        Raises:
            ProviderError: If Keycloak rejects the creation
        """
        payload = {
            "id": identity.keycloak_id,
            "username": username_from_email(identity.email),
            "email": identity.email,
            "firstName": identity.first_name or "Test",
            "lastName": identity.last_name or "User",
            "enabled": True,
            "emailVerified": True,
            "credentials": [
                {"type": "password", "value": password, "temporary": False}
            ],
        }

        response = self.keycloak.post(token, "/users", json=payload)
        if response.status_code == 409:
            logger.info("User already exists in Keycloak")
            return
        if not response.ok:
            raise ProviderError(
                "Failed to create user in Keycloak",
                upstream_status=response.status_code,
                details={"response": describe_response(response)},
            )
        logger.info(
            "User created in Keycloak",
            extra={"keycloak_id": identity.keycloak_id, "username": payload["username"]},
        )
