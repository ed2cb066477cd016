"""
Roles and their reference data.

This defines WHO a caller can be, not HOW we check it.
The actual checking happens in franchise_auth.auth.policies.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable


class Role(str, Enum):
    """Platform-wide account role."""

    ADMIN = "ADMIN"                  # Full access, bypasses tenant scoping
    TENANT_OWNER = "TENANT_OWNER"    # Manages one franchise
    STAFF = "STAFF"                  # Operational access within one franchise
    CUSTOMER = "CUSTOMER"            # Self-service access only


ROLE_DESCRIPTIONS: dict[Role, str] = {
    Role.ADMIN: "Administrator role with full access to the system.",
    Role.TENANT_OWNER: "Franchise owner role with management privileges for a specific franchise.",
    Role.STAFF: "Staff role with limited access to operational functions.",
    Role.CUSTOMER: "Customer role with access to user-specific features.",
}


# Accounts holding these roles belong to exactly one tenant
TENANT_SCOPED_ROLES: frozenset[Role] = frozenset({Role.TENANT_OWNER, Role.STAFF})

# Roles that may be granted through the admin create-user path
PRIVILEGED_CREATABLE_ROLES: frozenset[Role] = frozenset({Role.TENANT_OWNER, Role.STAFF})

# Role given to self-registered accounts
DEFAULT_ROLE = Role.CUSTOMER


def parse_roles(values: Iterable[Role | str]) -> frozenset[Role]:
    """
    Coerce role names into Role members.

    Unknown names are dropped, so a stale claim grants nothing.
    """
    roles: set[Role] = set()
    for value in values:
        if isinstance(value, Role):
            roles.add(value)
            continue
        try:
            roles.add(Role(value))
        except ValueError:
            continue
    return frozenset(roles)
