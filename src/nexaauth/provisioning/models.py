"""
Domain models for the provisioning workflow.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from nexaauth.exceptions import IdentityValidationError


class Identity(BaseModel):
    """A freshly authenticated user, as reported by the identity provider."""

    model_config = ConfigDict(frozen=True)

    keycloak_id: str
    email: str
    first_name: str = ""
    last_name: str = ""

    @classmethod
    def from_payload(
        cls,
        keycloak_id: Optional[str],
        email: Optional[str],
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> "Identity":
        """
        Build an identity from loosely-typed input.

        Raises:
            IdentityValidationError: If the subject id or email is missing
        """
        missing = [
            name
            for name, value in (("keycloakId", keycloak_id), ("email", email))
            if not value or not str(value).strip()
        ]
        if missing:
            raise IdentityValidationError(
                "Missing required fields: keycloakId and email are required",
                details={"missing_fields": missing},
            )
        return cls(
            keycloak_id=str(keycloak_id).strip(),
            email=str(email).strip(),
            first_name=first_name or "",
            last_name=last_name or "",
        )


class DerivedNames(BaseModel):
    """Canonical resource names computed once per invocation."""

    model_config = ConfigDict(frozen=True)

    name_part: str
    domain_part: str
    client_id: str
    organization_name: str
    organization_domain: str


class ClientInfo(BaseModel):
    client_id: str
    client_uuid: str
    client_secret: str
    created: bool = True
    # The real secret cannot be read back after a conflict
    secret_is_placeholder: bool = False


class RoleOutcome(str, Enum):
    CREATED = "created"
    EXISTS = "exists"
    FAILED = "failed"


class StageStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class StageName(str, Enum):
    CLIENT = "client"
    ROLE_ASSIGNMENT = "role_assignment"
    ORGANIZATION = "organization"
    MEMBERSHIP = "membership"


class StageResult(BaseModel):
    """Outcome of one independently failable workflow stage."""

    name: StageName
    status: StageStatus
    error: Optional[str] = None
    detail: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == StageStatus.SUCCEEDED


class ProvisioningResult(BaseModel):
    """
    Aggregate of whatever the workflow managed to provision.

    Every resource field is nullable; callers inspect which fields are
    present (or the per-stage results) to learn what succeeded.
    """

    keycloak_id: str
    email: str
    client: Optional[ClientInfo] = None
    roles: Dict[str, RoleOutcome] = Field(default_factory=dict)
    role_assigned: bool = False
    organization_name: str
    organization_id: Optional[str] = None
    domain: str
    membership_added: bool = False
    stages: List[StageResult] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        return all(stage.succeeded for stage in self.stages)

    def stage(self, name: StageName) -> Optional[StageResult]:
        for result in self.stages:
            if result.name == name:
                return result
        return None
