"""
Admin credential acquisition for the Keycloak management API.
"""

import logging

import requests

from nexaauth.exceptions import AdminAuthError

from .admin_client import KeycloakAdminClient, describe_response

logger = logging.getLogger(__name__)


class AdminCredentialProvider:
    """
    Obtains a short-lived admin token through a password grant against the
    master realm. Tokens are never cached; every call hits the token endpoint.
    """

    def __init__(self, client: KeycloakAdminClient):
        self.client = client
        self.settings = client.settings

    def acquire_admin_token(self) -> str:
        """
        Request a fresh admin access token.

        Returns:
            Bearer token for the admin API

        Raises:
            AdminAuthError: On network errors, non-2xx responses or a
                response without an access token
        """
        form = {
            "grant_type": "password",
            "username": self.settings.admin_user,
            "password": self.settings.admin_password,
            "client_id": self.settings.admin_client_id,
        }

        try:
            response = self.client.session.post(
                self.settings.token_url,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.client.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Failed to obtain Keycloak admin token: {e}")
            raise AdminAuthError(
                f"Failed to obtain Keycloak admin token: {e}",
                details={"original_error": str(e)},
            ) from e

        if not response.ok:
            logger.error(
                f"Keycloak token endpoint returned {response.status_code}",
                extra={"response": describe_response(response)},
            )
            raise AdminAuthError(
                f"Failed to obtain Keycloak admin token: HTTP {response.status_code}",
                details={"upstream_status": response.status_code},
            )

        try:
            access_token = response.json().get("access_token")
        except (ValueError, AttributeError):
            access_token = None

        if not access_token:
            raise AdminAuthError("Keycloak token response carried no access_token")

        logger.info("Keycloak admin token obtained")
        return access_token
