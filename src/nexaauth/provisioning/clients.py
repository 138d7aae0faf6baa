"""
Client provisioning: one confidential OIDC client per tenant, plus its
default client roles.
"""

import logging
import secrets
from typing import Dict, Iterable, Optional

import requests

from nexaauth.services.keycloak import (
    KeycloakAdminClient,
    describe_response,
    path_segment,
    resource_id_from_response,
)

from .models import ClientInfo, DerivedNames, Identity, RoleOutcome
from .reconciler import reconcile

logger = logging.getLogger(__name__)


# Protocol attributes that switch off SAML and consent features the tenant
# client never uses.
CLIENT_ATTRIBUTES: Dict[str, str] = {
    "user.info.response.signature.alg": "RS256",
    "saml.assertion.signature": "false",
    "saml.force.post.binding": "false",
    "saml.multivalued.roles": "false",
    "saml.encrypt": "false",
    "saml.server.signature": "false",
    "saml.server.signature.keyinfo.ext": "false",
    "exclude.session.state.from.auth.response": "false",
    "saml_force_name_id_format": "false",
    "saml.client.signature": "false",
    "tls.client.certificate.bound.access.tokens": "false",
    "saml.authnstatement": "false",
    "display.on.consent.screen": "false",
    "saml.onetimeuse.condition": "false",
}


def generate_client_secret() -> str:
    return secrets.token_urlsafe(32)


def placeholder_secret(client_id: str) -> str:
    return f"{client_id}-secret-existing"


def build_client_payload(client_id: str, client_secret: str) -> Dict:
    return {
        "clientId": client_id,
        "enabled": True,
        "protocol": "openid-connect",
        "secret": client_secret,
        "serviceAccountsEnabled": False,
        "standardFlowEnabled": True,
        "implicitFlowEnabled": False,
        "directAccessGrantsEnabled": True,
        "publicClient": False,
        "redirectUris": ["*"],
        "webOrigins": ["*"],
        "attributes": dict(CLIENT_ATTRIBUTES),
    }


class ClientProvisioner:
    def __init__(self, client: KeycloakAdminClient):
        self.keycloak = client

    def find_client(self, token: str, client_id: str) -> Optional[Dict]:
        """Return the first client registered under ``client_id``, if any."""
        clients = self.keycloak.get_json(
            token, "/clients", "clients", params={"clientId": client_id}
        )
        if clients:
            return clients[0]
        return None

    def ensure_client(
        self, token: str, names: DerivedNames, identity: Identity
    ) -> ClientInfo:
        """
        Create the tenant client, or return the existing one on conflict.

        On conflict the real secret cannot be read back, so the returned
        secret is a placeholder and ``secret_is_placeholder`` is set.
        """
        client_id = names.client_id
        client_secret = generate_client_secret()

        def create() -> requests.Response:
            return self.keycloak.post(
                token,
                "/clients",
                json=build_client_payload(client_id, client_secret),
            )

        def extract(response: requests.Response) -> Optional[ClientInfo]:
            client_uuid = resource_id_from_response(response)
            if client_uuid is None:
                return None
            return ClientInfo(
                client_id=client_id,
                client_uuid=client_uuid,
                client_secret=client_secret,
            )

        def lookup() -> Optional[ClientInfo]:
            existing = self.find_client(token, client_id)
            if existing is None:
                return None
            return ClientInfo(
                client_id=existing.get("clientId", client_id),
                client_uuid=existing["id"],
                client_secret=placeholder_secret(client_id),
                created=False,
                secret_is_placeholder=True,
            )

        result = reconcile(f"client '{client_id}'", create, lookup, extract)
        logger.info(
            f"Client '{client_id}' ready",
            extra={
                "client_uuid": result.value.client_uuid,
                "newly_created": result.created,
                "user_email": identity.email,
            },
        )
        return result.value

    def create_role(self, token: str, client_uuid: str, role_name: str) -> RoleOutcome:
        """
        Create one client role. Never raises: failures are logged and
        reported as ``RoleOutcome.FAILED``.
        """
        payload = {
            "name": role_name,
            "description": f"{role_name} role for organization",
        }
        try:
            response = self.keycloak.post(
                token, f"/clients/{path_segment(client_uuid)}/roles", json=payload
            )
        except requests.RequestException as e:
            logger.error(f"Failed to create client role '{role_name}': {e}")
            return RoleOutcome.FAILED

        if response.status_code in (201, 204):
            logger.info(f"Client role '{role_name}' created for client {client_uuid}")
            return RoleOutcome.CREATED
        if response.status_code == 409:
            logger.info(f"Role '{role_name}' already exists for client {client_uuid}")
            return RoleOutcome.EXISTS

        logger.error(
            f"Failed to create client role '{role_name}': HTTP {response.status_code}",
            extra={"response": describe_response(response)},
        )
        return RoleOutcome.FAILED

    def ensure_roles(
        self, token: str, client_uuid: str, role_names: Iterable[str]
    ) -> Dict[str, RoleOutcome]:
        return {
            role_name: self.create_role(token, client_uuid, role_name)
            for role_name in role_names
        }
