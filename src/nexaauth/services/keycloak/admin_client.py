"""
Thin transport over the Keycloak admin REST API.

Methods return the raw ``requests.Response``; status interpretation is left
to the provisioning components so that each one decides what a conflict or
a missing resource means for it.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from nexaauth.config import KeycloakSettings
from nexaauth.exceptions import ConfigurationError, ProviderError

logger = logging.getLogger(__name__)


def build_session(max_retries: int = 2) -> requests.Session:
    """
    Create a pooled session with retry on transient upstream statuses.

    The final response is returned instead of raised once retries are
    exhausted, so callers always see the upstream status.
    """
    session = requests.Session()

    retry_strategy = Retry(
        total=max_retries,
        backoff_factor=0.5,
        status_forcelist=[429, 502, 503, 504],
        allowed_methods=["GET", "POST", "PUT", "DELETE"],
        raise_on_status=False,
    )

    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def path_segment(value: str) -> str:
    """Quote a value for use as a single URL path segment."""
    return quote(str(value), safe="")


def resource_id_from_response(response: requests.Response) -> Optional[str]:
    """
    Extract the identity of a newly created resource.

    Keycloak answers some creations with a JSON body carrying ``id`` and
    others with an empty body and a ``Location`` header.
    """
    if response.content:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("id"):
            return str(body["id"])

    location = response.headers.get("Location")
    if location:
        return location.rstrip("/").split("/")[-1] or None
    return None


def describe_response(response: requests.Response) -> Any:
    """Best-effort body for error reports."""
    try:
        return response.json() if response.content else None
    except ValueError:
        return response.text


class KeycloakAdminClient:
    """
    Keycloak admin API client bound to one realm.

    Usage:
        client = KeycloakAdminClient(settings.keycloak)
        response = client.get(token, "/users/123")
    """

    def __init__(
        self,
        settings: KeycloakSettings,
        session: Optional[requests.Session] = None,
    ):
        if not settings.server_url or not settings.realm:
            raise ConfigurationError(
                "KEYCLOAK_SERVER_URL and KEYCLOAK_REALM must be set"
            )
        self.settings = settings
        self.timeout = settings.timeout
        self._session = session or build_session(settings.max_retries)

    @property
    def session(self) -> requests.Session:
        return self._session

    def admin_url(self, path: str) -> str:
        return f"{self.settings.admin_base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        token: str,
        json: Any = None,
        data: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """
        Issue an authenticated admin API call.

        Raises:
            requests.RequestException: On network errors and timeouts
        """
        headers = {"Authorization": f"Bearer {token}"}
        if json is not None or data is not None:
            headers["Content-Type"] = "application/json"

        url = self.admin_url(path)
        logger.debug(f"Keycloak {method} {url}")
        response = self._session.request(
            method=method,
            url=url,
            json=json,
            data=data,
            params=params,
            headers=headers,
            timeout=self.timeout,
        )
        logger.debug(f"Keycloak {method} {url} -> {response.status_code}")
        return response

    def get(self, token: str, path: str, **kwargs) -> requests.Response:
        return self.request("GET", path, token, **kwargs)

    def post(self, token: str, path: str, **kwargs) -> requests.Response:
        return self.request("POST", path, token, **kwargs)

    def get_json(self, token: str, path: str, what: str, **kwargs) -> Any:
        """
        GET a resource and return its JSON body.

        Raises:
            ProviderError: If the response is not 2xx
        """
        response = self.get(token, path, **kwargs)
        if not response.ok:
            raise ProviderError(
                f"Failed to get {what}",
                upstream_status=response.status_code,
                details={"response": describe_response(response)},
            )
        return response.json() if response.content else None

    def close(self) -> None:
        self._session.close()
