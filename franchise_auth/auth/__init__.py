"""
Authentication and authorization core.

Design principles:
1. One guard dependency per route, requirements looked up in a table
2. Pure policy functions, no I/O
3. Immutable AuthContext handed to handlers
4. Stateless tokens, verified with one algorithm and one key

The HTTP router lives in franchise_auth.auth.routes and is mounted by
the app; it is not imported here so services can depend on this package.
"""

from franchise_auth.auth.context import AuthContext
from franchise_auth.auth.guards import guard
from franchise_auth.auth.jwt import (
    TokenClaims,
    TokenExpired,
    TokenInvalid,
    TokenPair,
    TokenService,
    TokenType,
)
from franchise_auth.auth.passwords import CredentialHasher, CredentialHashError
from franchise_auth.auth.policies import (
    ROUTE_POLICIES,
    RoutePolicy,
    TenantScope,
    can_manage_tenant,
    has_any_role,
    require_tenant_id,
)

__all__ = [
    # Main interface
    "guard",
    "AuthContext",
    # Policy
    "ROUTE_POLICIES",
    "RoutePolicy",
    "TenantScope",
    "can_manage_tenant",
    "has_any_role",
    "require_tenant_id",
    # Tokens
    "TokenClaims",
    "TokenExpired",
    "TokenInvalid",
    "TokenPair",
    "TokenService",
    "TokenType",
    # Passwords
    "CredentialHasher",
    "CredentialHashError",
]
