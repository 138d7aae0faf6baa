"""
Registration endpoints: provision tenant resources for a user after their
first login.

Route handlers are plain functions because the Keycloak transport is
blocking; FastAPI runs them in its threadpool.
"""

import logging
import time
from uuid import uuid4

from fastapi import APIRouter, status

from nexaauth.api.dependencies import SettingsDep, WorkflowDep
from nexaauth.api.schemas import (
    ExistingUserRequest,
    RegistrationRequest,
    RegistrationResponse,
)
from nexaauth.exceptions import IdentityValidationError, UserNotFoundError
from nexaauth.provisioning import Identity


logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/register",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(request: RegistrationRequest, workflow: WorkflowDep):
    """
    Provision client, roles and organization for a new user.
    """
    identity = request.to_identity()
    result = workflow.provision(identity)
    return RegistrationResponse.from_result(result)


@router.post(
    "/register-google",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
def register_google(request: RegistrationRequest, workflow: WorkflowDep):
    """
    Provision resources for a Google-authenticated user that must already
    exist in Keycloak.
    """
    identity = request.to_identity()
    logger.info(
        "Google OAuth registration request",
        extra={"keycloak_id": identity.keycloak_id},
    )

    token = workflow.credentials.acquire_admin_token()
    if not workflow.users.user_exists(token, identity.keycloak_id):
        raise UserNotFoundError(
            "User does not exist in Keycloak",
            details={"hint": "Please ensure user is created in Keycloak first"},
        )

    result = workflow.provision(identity)
    return RegistrationResponse.from_result(result)


@router.post(
    "/register-google-idp",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
def register_google_idp(
    request: RegistrationRequest,
    workflow: WorkflowDep,
    settings: SettingsDep,
):
    """
    Provision resources for a Google identity-provider user, creating the
    Keycloak user first when it does not exist yet.
    """
    identity = request.to_identity()

    token = workflow.credentials.acquire_admin_token()
    if workflow.users.user_exists(token, identity.keycloak_id):
        logger.info("User already exists in Keycloak")
    else:
        logger.info("User does not exist in Keycloak, creating user first")
        workflow.users.create_user(
            token, identity, settings.provisioning.default_user_password
        )

    result = workflow.provision(identity)
    return RegistrationResponse.from_result(result)


@router.post(
    "/register-existing-google-user",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
def register_existing_google_user(
    request: ExistingUserRequest, workflow: WorkflowDep
):
    """
    Provision resources for a user who already logged in through the
    browser, resolving their identity from Keycloak by email.
    """
    if not request.email:
        raise IdentityValidationError(
            "Missing required field: email is required",
            details={"missing_fields": ["email"]},
        )

    token = workflow.credentials.acquire_admin_token()
    user = workflow.users.find_user_by_email(token, request.email)
    if not user:
        raise UserNotFoundError(
            f"No user found with email: {request.email}. "
            "Please login through Google first."
        )

    identity = Identity.from_payload(
        keycloak_id=user.get("id"),
        email=user.get("email") or request.email,
        first_name=user.get("firstName"),
        last_name=user.get("lastName"),
    )
    result = workflow.provision(identity)
    return RegistrationResponse.from_result(result)


# Only mounted when ENABLE_TEST_ROUTES is set
test_router = APIRouter()


@test_router.post(
    "/test-register",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
def register_test_user(workflow: WorkflowDep, settings: SettingsDep):
    """
    Create a throwaway user in Keycloak, then provision resources for it.
    """
    identity = Identity(
        keycloak_id=str(uuid4()),
        email=f"test-{int(time.time() * 1000)}@example.com",
        first_name="Test User",
        last_name="Smith Jr.",
    )

    token = workflow.credentials.acquire_admin_token()
    workflow.users.create_user(
        token, identity, settings.provisioning.default_user_password
    )

    result = workflow.provision(identity)
    return RegistrationResponse.from_result(result)
