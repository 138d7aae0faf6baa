"""
Test suite for the provisioning workflow.

Coverage:
- Full provisioning for an existing user
- Re-running for the same identity converges without duplicates
- Stage isolation: a failed stage never aborts the stages after it
- Skipped stages when the user or an upstream resource is absent
- Admin token failure aborting before any admin call

Test types: Unit, Integration
"""

import pytest

from nexaauth.exceptions import AdminAuthError
from nexaauth.provisioning import RoleOutcome, StageName, StageStatus
from test_utils import TestIdentities


USER_PATH = f"/users/{TestIdentities.JANE_ID}"


def stage_statuses(result):
    return {stage.name: stage.status for stage in result.stages}


@pytest.mark.workflow
@pytest.mark.integration
class TestProvisioningSuccess:
    """Test suite for fully successful provisioning."""

    def test_provisions_every_resource(self, workflow, fake_keycloak, existing_user):
        result = workflow.provision(existing_user)

        assert result.complete
        assert result.client.client_id == TestIdentities.JANE_CLIENT_ID
        assert result.client.created is True
        assert result.roles == {
            "orgAdmin": RoleOutcome.CREATED,
            "organizer": RoleOutcome.CREATED,
            "user": RoleOutcome.CREATED,
        }
        assert result.role_assigned is True
        assert result.organization_name == TestIdentities.JANE_ORG_NAME
        assert result.domain == TestIdentities.JANE_DOMAIN
        assert result.membership_added is True

        client_uuid = result.client.client_uuid
        assert fake_keycloak.roles_of(existing_user.keycloak_id, client_uuid) == [
            "orgAdmin"
        ]
        assert existing_user.keycloak_id in fake_keycloak.members[result.organization_id]

    def test_stages_are_reported_in_order(self, workflow, existing_user):
        result = workflow.provision(existing_user)

        assert [stage.name for stage in result.stages] == [
            StageName.CLIENT,
            StageName.ROLE_ASSIGNMENT,
            StageName.ORGANIZATION,
            StageName.MEMBERSHIP,
        ]

    def test_user_existence_is_checked_once(self, workflow, fake_keycloak, existing_user):
        workflow.provision(existing_user)

        assert fake_keycloak.count("GET", USER_PATH) == 1

    def test_one_admin_token_per_run(self, workflow, fake_keycloak, existing_user):
        workflow.provision(existing_user)

        assert fake_keycloak.count("POST", "TOKEN") == 1


@pytest.mark.workflow
@pytest.mark.integration
class TestProvisioningIdempotence:
    """Re-running provisioning for the same identity."""

    def test_second_run_reuses_resources(self, workflow, fake_keycloak, existing_user):
        first = workflow.provision(existing_user)
        second = workflow.provision(existing_user)

        assert second.complete
        assert second.client.client_uuid == first.client.client_uuid
        assert second.organization_id == first.organization_id
        assert len(fake_keycloak.clients) == 1
        assert len(fake_keycloak.organizations) == 1
        assert fake_keycloak.members[first.organization_id] == {
            existing_user.keycloak_id
        }

    def test_second_run_flags_placeholder_secret(self, workflow, existing_user):
        workflow.provision(existing_user)
        second = workflow.provision(existing_user)

        assert second.client.created is False
        assert second.client.secret_is_placeholder is True
        assert second.client.client_secret.endswith("-secret-existing")
        assert set(second.roles.values()) == {RoleOutcome.EXISTS}


@pytest.mark.workflow
@pytest.mark.integration
class TestPartialProvisioning:
    """Stage failures are recorded and never abort later stages."""

    def test_organization_failure_keeps_client(
        self, workflow, fake_keycloak, existing_user
    ):
        fake_keycloak.fail("POST", "/organizations", 500)

        result = workflow.provision(existing_user)

        assert not result.complete
        assert result.client is not None
        assert result.role_assigned is True
        assert result.organization_id is None
        assert result.membership_added is False

        statuses = stage_statuses(result)
        assert statuses[StageName.CLIENT] == StageStatus.SUCCEEDED
        assert statuses[StageName.ORGANIZATION] == StageStatus.FAILED
        assert statuses[StageName.MEMBERSHIP] == StageStatus.SKIPPED
        assert result.stage(StageName.ORGANIZATION).error.startswith(
            "Failed to create organization"
        )

    def test_unreachable_organization_endpoint_fails_only_that_stage(
        self, workflow, fake_keycloak, existing_user
    ):
        fake_keycloak.disconnect("POST", "/organizations")

        result = workflow.provision(existing_user)

        statuses = stage_statuses(result)
        assert result.client is not None
        assert result.role_assigned is True
        assert result.organization_id is None
        assert statuses[StageName.CLIENT] == StageStatus.SUCCEEDED
        assert statuses[StageName.ROLE_ASSIGNMENT] == StageStatus.SUCCEEDED
        assert statuses[StageName.ORGANIZATION] == StageStatus.FAILED
        assert statuses[StageName.MEMBERSHIP] == StageStatus.SKIPPED
        assert "Connection refused" in result.stage(StageName.ORGANIZATION).error

    def test_unreachable_client_lookup_fails_only_the_client_stage(
        self, workflow, fake_keycloak, existing_user
    ):
        fake_keycloak.add_client(TestIdentities.JANE_CLIENT_ID)
        fake_keycloak.disconnect("GET", "/clients")

        result = workflow.provision(existing_user)

        statuses = stage_statuses(result)
        assert result.client is None
        assert statuses[StageName.CLIENT] == StageStatus.FAILED
        assert statuses[StageName.ROLE_ASSIGNMENT] == StageStatus.SKIPPED
        assert statuses[StageName.ORGANIZATION] == StageStatus.SUCCEEDED
        assert statuses[StageName.MEMBERSHIP] == StageStatus.SUCCEEDED

    def test_client_failure_still_provisions_organization(
        self, workflow, fake_keycloak, existing_user
    ):
        fake_keycloak.fail("POST", "/clients", 500)

        result = workflow.provision(existing_user)

        statuses = stage_statuses(result)
        assert result.client is None
        assert result.roles == {}
        assert statuses[StageName.CLIENT] == StageStatus.FAILED
        assert statuses[StageName.ROLE_ASSIGNMENT] == StageStatus.SKIPPED
        assert statuses[StageName.ORGANIZATION] == StageStatus.SUCCEEDED
        assert statuses[StageName.MEMBERSHIP] == StageStatus.SUCCEEDED
        assert fake_keycloak.count("GET", USER_PATH) == 1

    def test_role_assignment_failure_is_isolated(
        self, workflow, fake_keycloak, existing_user
    ):
        fake_keycloak.fail("POST", f"{USER_PATH}/role-mappings/clients/.*", 500)

        result = workflow.provision(existing_user)

        statuses = stage_statuses(result)
        assert result.role_assigned is False
        assert statuses[StageName.ROLE_ASSIGNMENT] == StageStatus.FAILED
        assert statuses[StageName.ORGANIZATION] == StageStatus.SUCCEEDED
        assert result.membership_added is True

    def test_failed_roles_do_not_fail_the_client_stage(
        self, workflow, fake_keycloak, existing_user
    ):
        fake_keycloak.fail("POST", "/clients/[^/]+/roles", 500)

        result = workflow.provision(existing_user)

        assert result.stage(StageName.CLIENT).succeeded
        assert set(result.roles.values()) == {RoleOutcome.FAILED}
        # orgAdmin was never created, so it cannot be assigned
        assert result.stage(StageName.ROLE_ASSIGNMENT).status == StageStatus.FAILED

    def test_missing_user_skips_user_bound_stages(
        self, workflow, fake_keycloak, identity
    ):
        result = workflow.provision(identity)

        statuses = stage_statuses(result)
        assert statuses[StageName.CLIENT] == StageStatus.SUCCEEDED
        assert statuses[StageName.ROLE_ASSIGNMENT] == StageStatus.SKIPPED
        assert statuses[StageName.ORGANIZATION] == StageStatus.SUCCEEDED
        assert statuses[StageName.MEMBERSHIP] == StageStatus.SKIPPED
        assert result.role_assigned is False
        assert result.membership_added is False
        assert fake_keycloak.count("GET", USER_PATH) == 1
        assert fake_keycloak.count("POST", "/organizations/[^/]+/members") == 0


@pytest.mark.workflow
@pytest.mark.unit
class TestAdminTokenFailure:
    def test_token_failure_aborts_before_admin_calls(
        self, workflow, fake_keycloak, existing_user
    ):
        fake_keycloak.token_status = 401

        with pytest.raises(AdminAuthError):
            workflow.provision(existing_user)

        assert fake_keycloak.calls == [("POST", "TOKEN")]
