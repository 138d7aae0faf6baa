"""
This module defines the dependency injection system for the NexaAuth API
using FastAPI.

"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status

from nexaauth.config import AppSettings, get_settings
from nexaauth.provisioning import ProvisioningWorkflow
from nexaauth.services.keycloak import KeycloakAdminClient

logger = logging.getLogger(__name__)


# Application State Management
# ----------------------------


class AppState:
    """
    Centralized application state container.

    Holds the pooled Keycloak admin client for the lifetime of the app.
    Admin tokens are not part of the state; every workflow run acquires
    its own.
    """

    def __init__(self):
        self.admin_client: Optional[KeycloakAdminClient] = None
        self._initialized: bool = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self, settings: AppSettings) -> None:
        if self._initialized:
            return
        self.admin_client = KeycloakAdminClient(settings.keycloak)
        self._initialized = True

    def shutdown(self) -> None:
        if self.admin_client:
            self.admin_client.close()
            self.admin_client = None
        self._initialized = False


_app_state = AppState()


def get_app_state() -> AppState:
    return _app_state


@asynccontextmanager
async def app_lifespan(app):
    settings = getattr(app.state, "settings", None) or get_settings()
    state = get_app_state()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    state.initialize(settings)

    logger.info(
        f"{settings.app_name} started",
        extra={
            "keycloak_server": settings.keycloak.server_url,
            "realm": settings.keycloak.realm,
            "frontend_client_id": settings.keycloak.client_id,
        },
    )

    yield

    state.shutdown()
    logger.info(f"{settings.app_name} shutdown complete")


#       DEPENDENCY PROVIDERS
# ------------------------------------


def get_settings_dep(request: Request) -> AppSettings:
    """Dependency for settings - allows override in tests."""
    return getattr(request.app.state, "settings", None) or get_settings()


SettingsDep = Annotated[AppSettings, Depends(get_settings_dep)]


def get_admin_client(
    state: Annotated[AppState, Depends(get_app_state)],
) -> KeycloakAdminClient:
    """Dependency for the Keycloak admin client."""
    if not state.admin_client:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Keycloak admin client not initialized",
        )
    return state.admin_client


AdminClientDep = Annotated[KeycloakAdminClient, Depends(get_admin_client)]


def get_workflow(
    admin_client: AdminClientDep,
    settings: SettingsDep,
) -> ProvisioningWorkflow:
    """Dependency for the provisioning workflow."""
    return ProvisioningWorkflow(admin_client, settings.provisioning)


WorkflowDep = Annotated[ProvisioningWorkflow, Depends(get_workflow)]
