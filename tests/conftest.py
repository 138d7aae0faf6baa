"""
Pytest configuration and fixtures for NexaAuth testing.

This module provides:
- Test settings built without reading the environment
- An in-memory Keycloak (FakeKeycloak) behind a real requests session
- Provisioning component fixtures wired to the fake
- Test client fixtures with the admin client dependency overridden

Test types: Unit, Integration
"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient

from nexaauth.api.app import create_application
from nexaauth.api.dependencies import get_admin_client
from nexaauth.config import AppSettings
from nexaauth.provisioning import Identity, ProvisioningWorkflow
from nexaauth.services.keycloak import KeycloakAdminClient
from test_utils import (
    REALM,
    FakeKeycloak,
    TestIdentities,
    build_fake_session,
    build_test_settings,
)


#                         CONFIGURATION FIXTURES
# ----------------------------------------------------------------------------


@pytest.fixture(scope="session")
def test_settings() -> AppSettings:
    """
    Create test-specific settings.

    Built with model_construct so no environment variables or .env file
    leak into the tests.
    """
    return build_test_settings()


#                         KEYCLOAK FIXTURES
# ----------------------------------------------------------------------------


@pytest.fixture
def fake_keycloak() -> FakeKeycloak:
    """Fresh in-memory Keycloak for each test."""
    return FakeKeycloak(realm=REALM)


@pytest.fixture
def admin_client(fake_keycloak, test_settings) -> KeycloakAdminClient:
    """Admin client whose session is served by the fake Keycloak."""
    client = KeycloakAdminClient(
        test_settings.keycloak, session=build_fake_session(fake_keycloak)
    )
    yield client
    client.close()


@pytest.fixture
def workflow(admin_client, test_settings) -> ProvisioningWorkflow:
    return ProvisioningWorkflow(admin_client, test_settings.provisioning)


@pytest.fixture
def identity() -> Identity:
    return Identity(
        keycloak_id=TestIdentities.JANE_ID,
        email=TestIdentities.JANE_EMAIL,
        first_name=TestIdentities.JANE_FIRST_NAME,
        last_name=TestIdentities.JANE_LAST_NAME,
    )


@pytest.fixture
def existing_user(fake_keycloak, identity) -> Identity:
    """The Jane identity, already present as a Keycloak user."""
    fake_keycloak.add_user(
        identity.keycloak_id,
        identity.email,
        identity.first_name,
        identity.last_name,
    )
    return identity


#                         APPLICATION FIXTURES
# ----------------------------------------------------------------------------


@pytest.fixture
def app(test_settings, admin_client):
    """
    Create a fresh FastAPI application instance for each test.

    The admin client dependency is overridden so every outbound Keycloak
    call lands on the fake. Overrides are cleared after the test.
    """
    application = create_application(test_settings)
    application.dependency_overrides[get_admin_client] = lambda: admin_client
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def safe_client(app) -> Generator[TestClient, None, None]:
    """
    TestClient that returns 500 responses for unhandled exceptions
    instead of re-raising them in the test.
    """
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
