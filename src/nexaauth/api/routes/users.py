from typing import Any

from fastapi import APIRouter

from nexaauth.api.dependencies import WorkflowDep


router = APIRouter()


@router.get("/{keycloak_id}")
def get_user(keycloak_id: str, workflow: WorkflowDep) -> Any:
    """
    Get the Keycloak representation of a user.
    """
    token = workflow.credentials.acquire_admin_token()
    return workflow.users.get_user(token, keycloak_id)


@router.get("/{keycloak_id}/organizations")
def get_user_organizations(keycloak_id: str, workflow: WorkflowDep) -> Any:
    token = workflow.credentials.acquire_admin_token()
    return workflow.users.get_user_organizations(token, keycloak_id)


@router.get("/{keycloak_id}/clients")
def get_user_clients(keycloak_id: str, workflow: WorkflowDep) -> Any:
    """
    Get the user's client role mappings.
    """
    token = workflow.credentials.acquire_admin_token()
    return workflow.users.get_user_client_roles(token, keycloak_id)
