"""
Derivation of canonical resource names from an identity.

Everything here is pure: the same identity always yields the same names,
and every sanitizer is idempotent.
"""

import re

from .models import DerivedNames, Identity

FALLBACK_EMAIL_DOMAIN = "example.com"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")


def sanitize_name(name: str) -> str:
    """Lowercase and drop every character outside [a-z0-9]."""
    if not name:
        return ""
    return _NON_ALNUM.sub("", str(name).lower())


def sanitize_org_name(name: str) -> str:
    """Collapse whitespace runs to a single hyphen, then lowercase."""
    return _WHITESPACE.sub("-", name).lower()


def extract_name_from_email(email: str) -> str:
    return sanitize_name(email.split("@")[0])


def generate_domain(org_name: str, suffix: str = ".org") -> str:
    return f"{org_name}{suffix}"


def derive_names(identity: Identity, domain_suffix: str = ".org") -> DerivedNames:
    """
    Compute client, organization and domain names for an identity.

    The name part is the sanitized first+last name, falling back to the
    sanitized local part of the email when both names sanitize to empty.
    """
    email = identity.email.lower()
    domain = email.split("@")[1] if "@" in email else ""
    # Only the first label of the domain is kept ("mail.example.com" -> "mail")
    domain_part = _NON_ALNUM.sub("", (domain or FALLBACK_EMAIL_DOMAIN).split(".")[0])

    name_part = sanitize_name(identity.first_name) + sanitize_name(
        identity.last_name
    )
    if not name_part:
        name_part = extract_name_from_email(identity.email)

    organization_name = sanitize_org_name(f"org-{domain_part}-{name_part}")

    return DerivedNames(
        name_part=name_part,
        domain_part=domain_part,
        client_id=f"client-{domain_part}-{name_part}",
        organization_name=organization_name,
        organization_domain=generate_domain(organization_name, domain_suffix),
    )
