from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from nexaauth.provisioning import Identity, ProvisioningResult


#       BASE MODELS
# -------------------------


class BaseSchema(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


#           REQUESTS
# ---------------------------


class RegistrationRequest(BaseSchema):
    """
    Identity reported by the frontend after a first login.

    Every field is optional at the schema level so that missing required
    fields surface as a 400 from identity validation rather than a 422.
    Numeric ids are accepted and kept as their string form.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    keycloak_id: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    def to_identity(self) -> Identity:
        return Identity.from_payload(
            keycloak_id=self.keycloak_id,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
        )


class ExistingUserRequest(BaseSchema):
    email: Optional[str] = None


#           RESPONSES
# ---------------------------


class RegistrationData(BaseSchema):
    keycloak_id: str
    email: str
    client_id: Optional[str] = None
    client_uuid: Optional[str] = None
    client_secret: Optional[str] = None
    organization_name: str
    organization_id: Optional[str] = None
    domain: str
    role_assigned: bool = False
    membership_added: bool = False
    roles: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_result(cls, result: ProvisioningResult) -> "RegistrationData":
        client = result.client
        return cls(
            keycloak_id=result.keycloak_id,
            email=result.email,
            client_id=client.client_id if client else None,
            client_uuid=client.client_uuid if client else None,
            client_secret=client.client_secret if client else None,
            organization_name=result.organization_name,
            organization_id=result.organization_id,
            domain=result.domain,
            role_assigned=result.role_assigned,
            membership_added=result.membership_added,
            roles={name: outcome.value for name, outcome in result.roles.items()},
        )


class StageSummary(BaseSchema):
    name: str
    status: str
    error: Optional[str] = None
    detail: Optional[str] = None


class RegistrationResponse(BaseSchema):
    success: bool = True
    message: str
    data: RegistrationData
    stages: List[StageSummary] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ProvisioningResult) -> "RegistrationResponse":
        if result.complete:
            message = "User, organization, and client created successfully"
        else:
            message = "Registration completed with partial provisioning"
        return cls(
            message=message,
            data=RegistrationData.from_result(result),
            stages=[
                StageSummary(
                    name=stage.name.value,
                    status=stage.status.value,
                    error=stage.error,
                    detail=stage.detail,
                )
                for stage in result.stages
            ],
        )


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
