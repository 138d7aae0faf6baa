"""
Generic create-or-fetch-existing primitive.

Every provisioner creates its resource through :func:`reconcile`: POST the
creation request, and on a naming conflict look the resource up by its
logical key instead. Re-running a provisioning for the same identity
therefore converges on the same resources without duplicates.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

import requests

from nexaauth.exceptions import ConflictUnresolvedError, ProviderError
from nexaauth.services.keycloak import describe_response, resource_id_from_response

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Reconciled(Generic[T]):
    """A reconciled resource; ``created`` is False when it already existed."""

    value: T
    created: bool


def reconcile(
    resource: str,
    create: Callable[[], requests.Response],
    lookup: Callable[[], Optional[T]],
    extract: Callable[[requests.Response], Optional[T]] = resource_id_from_response,
    conflict_status: int = 409,
) -> Reconciled[T]:
    """
    Create a resource, or resolve a naming conflict by looking it up.

    Args:
        resource: Human readable resource label used in logs and errors
        create: Performs the creation request and returns the response
        lookup: Finds the existing resource by its logical key
        extract: Pulls the new resource's identity out of a 2xx response
        conflict_status: Status the provider uses for naming conflicts

    Returns:
        Reconciled value with its creation flag

    Raises:
        ProviderError: On any other non-2xx status, or a 2xx response
            without a resource identity
        ConflictUnresolvedError: On a conflict that the lookup cannot match
    """
    response = create()

    if response.ok:
        value = extract(response)
        if value is None:
            raise ProviderError(
                f"Created {resource} but the response carried no identity",
                upstream_status=response.status_code,
            )
        logger.info(f"Created {resource}")
        return Reconciled(value=value, created=True)

    if response.status_code == conflict_status:
        logger.info(f"{resource} already exists, fetching existing resource")
        existing = lookup()
        if existing is None:
            raise ConflictUnresolvedError(
                f"{resource} reported as existing but lookup found no match",
                upstream_status=response.status_code,
            )
        return Reconciled(value=existing, created=False)

    raise ProviderError(
        f"Failed to create {resource}",
        upstream_status=response.status_code,
        details={"response": describe_response(response)},
    )
