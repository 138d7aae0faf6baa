from .models import (
    ClientInfo,
    DerivedNames,
    Identity,
    ProvisioningResult,
    RoleOutcome,
    StageName,
    StageResult,
    StageStatus,
)
from .naming import (
    derive_names,
    extract_name_from_email,
    generate_domain,
    sanitize_name,
    sanitize_org_name,
)
from .reconciler import Reconciled, reconcile
from .clients import ClientProvisioner
from .roles import RoleAssignmentService
from .users import UserDirectory
from .organizations import OrganizationProvisioner
from .workflow import ProvisioningWorkflow

__all__ = [
    "ClientInfo",
    "DerivedNames",
    "Identity",
    "ProvisioningResult",
    "RoleOutcome",
    "StageName",
    "StageResult",
    "StageStatus",
    "derive_names",
    "extract_name_from_email",
    "generate_domain",
    "sanitize_name",
    "sanitize_org_name",
    "Reconciled",
    "reconcile",
    "ClientProvisioner",
    "RoleAssignmentService",
    "UserDirectory",
    "OrganizationProvisioner",
    "ProvisioningWorkflow",
]
