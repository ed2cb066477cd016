"""
Policies - pure role/tenant decisions plus the per-route policy table.

Nothing here performs I/O. The guard chain (guards.py) and the admin
service both call into these functions, so a decision is made the same
way whether it is enforced at the HTTP edge or inside a service.

Rules:
- ADMIN dominates all tenant scoping
- Role checks are OR (any required role suffices)
- Tenant checks are AND (a sufficient role does not bypass a tenant
  mismatch, except for ADMIN)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from franchise_auth.core.errors import BadRequest, TenantRequired
from franchise_auth.core.roles import TENANT_SCOPED_ROLES, Role, parse_roles


# =============================================================================
# Decision Functions
# =============================================================================


def has_any_role(caller_roles: Iterable[Role | str], required_roles: Iterable[Role | str]) -> bool:
    """True if the caller holds at least one of the required roles."""
    return bool(parse_roles(caller_roles) & parse_roles(required_roles))


def can_manage_tenant(
    caller_roles: Iterable[Role | str],
    caller_tenant_id: str | None,
    target_tenant_id: str | None,
) -> bool:
    """
    Decide whether a caller may manage accounts of a tenant.

    ADMIN → always. TENANT_OWNER → only its own tenant. Anyone else → never.
    """
    roles = parse_roles(caller_roles)
    if Role.ADMIN in roles:
        return True
    if Role.TENANT_OWNER in roles:
        return caller_tenant_id is not None and caller_tenant_id == target_tenant_id
    return False


def require_tenant_id(tenant_id: str | None) -> str:
    """Return the tenant id, or raise TenantRequired if it is absent."""
    if not tenant_id:
        raise TenantRequired()
    return tenant_id


def validate_tenant_assignment(role: Role, tenant_id: str | None) -> None:
    """
    Enforce the account invariant between role and tenant.

    STAFF and TENANT_OWNER must carry a tenant; ADMIN and CUSTOMER must not.
    """
    if role in TENANT_SCOPED_ROLES:
        require_tenant_id(tenant_id)
    elif tenant_id:
        raise BadRequest(f"{role.value} accounts cannot belong to a tenant")


# =============================================================================
# Route Policy Table
# =============================================================================


class TenantScope(str, Enum):
    """Where a route's target tenant id comes from, if anywhere."""

    NONE = "none"
    PATH = "path"
    BODY = "body"


@dataclass(frozen=True)
class RoutePolicy:
    """
    Authorization requirements for one route.

    An empty required_roles means "any authenticated caller".
    """

    required_roles: frozenset[Role] = frozenset()
    tenant_scope: TenantScope = TenantScope.NONE
    tenant_field: str = "tenant_id"

    def allows_roles(self, caller_roles: Iterable[Role | str]) -> bool:
        return not self.required_roles or has_any_role(caller_roles, self.required_roles)


_TENANT_MANAGERS = frozenset({Role.ADMIN, Role.TENANT_OWNER})


ROUTE_POLICIES: dict[str, RoutePolicy] = {
    "auth.profile": RoutePolicy(),
    "auth.unsubscribe": RoutePolicy(),
    "admin.create_user": RoutePolicy(
        required_roles=_TENANT_MANAGERS,
        tenant_scope=TenantScope.BODY,
    ),
    "admin.list_users_by_tenant": RoutePolicy(
        required_roles=_TENANT_MANAGERS,
        tenant_scope=TenantScope.PATH,
    ),
}


def get_route_policy(route_name: str) -> RoutePolicy:
    """Look up a route's policy. Unknown routes are a programming error."""
    try:
        return ROUTE_POLICIES[route_name]
    except KeyError:
        raise KeyError(f"No route policy registered for '{route_name}'") from None
