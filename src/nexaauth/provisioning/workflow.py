"""
Provisioning workflow orchestrator.

Sequence per invocation:

    derive names -> admin token -> client + roles -> role assignment
    -> organization -> membership -> result

Only the admin token is fatal. Every later stage runs inside a guard that
records its failure in the result instead of raising, so a partial result
is always returned. Re-running the workflow for the same identity is safe
because every resource is reconciled rather than blindly created.
"""

import logging
from typing import Callable, Dict, Optional, Tuple, TypeVar

from nexaauth.config import ProvisioningSettings
from nexaauth.services.keycloak import AdminCredentialProvider, KeycloakAdminClient

from .clients import ClientProvisioner
from .models import (
    ClientInfo,
    Identity,
    ProvisioningResult,
    RoleOutcome,
    StageName,
    StageResult,
    StageStatus,
)
from .naming import derive_names
from .organizations import OrganizationProvisioner
from .roles import RoleAssignmentService
from .users import UserDirectory

logger = logging.getLogger(__name__)

T = TypeVar("T")


def skipped(name: StageName, reason: str) -> StageResult:
    return StageResult(name=name, status=StageStatus.SKIPPED, detail=reason)


class ProvisioningWorkflow:
    """
    Provisions client, roles, organization and membership for one identity.

    Usage:
        workflow = ProvisioningWorkflow(admin_client, settings.provisioning)
        result = workflow.provision(identity)
    """

    def __init__(
        self,
        client: KeycloakAdminClient,
        settings: ProvisioningSettings,
        credentials: Optional[AdminCredentialProvider] = None,
    ):
        self.settings = settings
        self.credentials = credentials or AdminCredentialProvider(client)
        self.clients = ClientProvisioner(client)
        self.role_assignments = RoleAssignmentService(client)
        self.users = UserDirectory(client)
        self.organizations = OrganizationProvisioner(client)

    def provision(self, identity: Identity) -> ProvisioningResult:
        """
        Run the full workflow for an identity.

        Raises:
            AdminAuthError: If the admin token cannot be obtained. No other
                stage is attempted in that case.
        """
        names = derive_names(identity, self.settings.domain_suffix)
        logger.info(
            "Starting provisioning",
            extra={
                "keycloak_id": identity.keycloak_id,
                "client_id": names.client_id,
                "organization_name": names.organization_name,
            },
        )

        token = self.credentials.acquire_admin_token()

        result = ProvisioningResult(
            keycloak_id=identity.keycloak_id,
            email=identity.email,
            organization_name=names.organization_name,
            domain=names.organization_domain,
        )
        user_present: Optional[bool] = None

        # Client and its default roles
        def ensure_client() -> Tuple[ClientInfo, Dict[str, RoleOutcome]]:
            info = self.clients.ensure_client(token, names, identity)
            roles = self.clients.ensure_roles(
                token, info.client_uuid, self.settings.default_roles
            )
            return info, roles

        stage, client_outcome = self._run_stage(StageName.CLIENT, ensure_client)
        result.stages.append(stage)
        if client_outcome is not None:
            result.client, result.roles = client_outcome

        # Role assignment
        if result.client is None:
            stage = skipped(StageName.ROLE_ASSIGNMENT, "client was not provisioned")
        else:
            user_present = self.users.user_exists(token, identity.keycloak_id)
            if not user_present:
                stage = skipped(StageName.ROLE_ASSIGNMENT, "user does not exist")
            else:
                client_uuid = result.client.client_uuid
                stage, _ = self._run_stage(
                    StageName.ROLE_ASSIGNMENT,
                    lambda: self.role_assignments.assign_role(
                        token,
                        identity.keycloak_id,
                        client_uuid,
                        self.settings.admin_role,
                    ),
                )
                result.role_assigned = stage.succeeded
        result.stages.append(stage)

        # Organization
        stage, organization_id = self._run_stage(
            StageName.ORGANIZATION,
            lambda: self.organizations.ensure_organization(
                token, names.organization_name, names.organization_domain
            ),
        )
        result.stages.append(stage)
        result.organization_id = organization_id

        # Membership
        if organization_id is None:
            stage = skipped(StageName.MEMBERSHIP, "organization was not provisioned")
        else:
            if user_present is None:
                user_present = self.users.user_exists(token, identity.keycloak_id)
            if not user_present:
                stage = skipped(StageName.MEMBERSHIP, "user does not exist")
            else:
                stage, _ = self._run_stage(
                    StageName.MEMBERSHIP,
                    lambda: self.organizations.ensure_membership(
                        token, organization_id, identity.keycloak_id
                    ),
                )
                result.membership_added = stage.succeeded
        result.stages.append(stage)

        logger.info(
            "Provisioning finished",
            extra={
                "keycloak_id": identity.keycloak_id,
                "stages": {s.name.value: s.status.value for s in result.stages},
            },
        )
        return result

    def _run_stage(
        self, name: StageName, action: Callable[[], T]
    ) -> Tuple[StageResult, Optional[T]]:
        """Run one stage, turning any failure into a failed StageResult."""
        try:
            value = action()
        except Exception as e:
            logger.warning(f"{name.value} stage failed: {e}", exc_info=True)
            return StageResult(name=name, status=StageStatus.FAILED, error=str(e)), None
        return StageResult(name=name, status=StageStatus.SUCCEEDED), value
