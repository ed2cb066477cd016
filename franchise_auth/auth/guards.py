"""
Access guard chain.

Every protected route runs the same stages, in order, stopping at the
first failure:

    1. extract       bearer token from the accessToken cookie or the
                     Authorization header                 → Unauthenticated
    2. authenticate  verify the token                     → Unauthenticated
    3. attach        build an immutable AuthContext
    4. authorize     route's required roles (any of)      → Forbidden
    5. scope         route's target tenant, if it has one → BadRequest / Forbidden

Routes declare nothing themselves; their requirements live in
ROUTE_POLICIES and are looked up by name:

    @router.get("/profile")
    async def profile(ctx: AuthContext = Depends(guard("auth.profile"))):
        ...

The chain never touches persisted state.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from franchise_auth.auth.context import AuthContext
from franchise_auth.auth.jwt import TokenService, TokenType
from franchise_auth.auth.policies import (
    RoutePolicy,
    TenantScope,
    can_manage_tenant,
    get_route_policy,
)
from franchise_auth.core.errors import BadRequest, Forbidden, TenantRequired, Unauthenticated

logger = logging.getLogger(__name__)


ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

# Optional bearer (doesn't fail if no header; cookies are checked too)
optional_bearer = HTTPBearer(auto_error=False)


# =============================================================================
# Stages
# =============================================================================


def extract_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str:
    """Stage 1: cookie first, then Authorization header."""
    token = request.cookies.get(ACCESS_COOKIE)
    if not token and credentials is not None:
        token = credentials.credentials
    if not token:
        raise Unauthenticated("Access token is missing")
    return token


def authenticate(tokens: TokenService, token: str) -> AuthContext:
    """Stages 2 and 3: verify the access token and build the context."""
    claims = tokens.verify(token, expected_type=TokenType.ACCESS)
    return AuthContext.from_claims(claims)


def authorize(ctx: AuthContext, policy: RoutePolicy) -> None:
    """Stage 4: caller must hold one of the route's required roles."""
    if not policy.allows_roles(ctx.roles):
        logger.info(f"Denied {ctx.account_id}: missing one of {sorted(r.value for r in policy.required_roles)}")
        raise Forbidden("Insufficient role")


def scope(ctx: AuthContext, policy: RoutePolicy, target_tenant_id: str | None) -> None:
    """Stage 5: caller must be allowed to manage the target tenant."""
    if policy.tenant_scope is TenantScope.NONE:
        return
    if ctx.is_admin:
        return
    if not target_tenant_id:
        raise TenantRequired("Tenant ID required in request")
    if not can_manage_tenant(ctx.roles, ctx.tenant_id, target_tenant_id):
        logger.info(f"Denied {ctx.account_id}: tenant {ctx.tenant_id} cannot manage {target_tenant_id}")
        raise Forbidden("You can only manage users in your own franchise")


async def resolve_target_tenant(request: Request, policy: RoutePolicy) -> str | None:
    """Find the tenant id the route is about to act on."""
    if policy.tenant_scope is TenantScope.PATH:
        return request.path_params.get(policy.tenant_field)

    if policy.tenant_scope is TenantScope.BODY:
        try:
            body: Any = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise BadRequest("Request body must be JSON")
        if not isinstance(body, dict):
            raise BadRequest("Request body must be a JSON object")
        value = body.get(policy.tenant_field)
        return str(value) if value else None

    return None


# =============================================================================
# FastAPI Dependency
# =============================================================================


def guard(route_name: str) -> Callable:
    """
    Build the dependency enforcing ROUTE_POLICIES[route_name].

    Resolves to the caller's AuthContext.
    """
    policy = get_route_policy(route_name)

    async def dependency(
        request: Request,
        credentials: HTTPAuthorizationCredentials | None = Depends(optional_bearer),
    ) -> AuthContext:
        tokens: TokenService = request.app.state.tokens

        token = extract_token(request, credentials)
        ctx = authenticate(tokens, token)
        authorize(ctx, policy)
        scope(ctx, policy, await resolve_target_tenant(request, policy))
        return ctx

    dependency.__name__ = f"guard_{route_name.replace('.', '_')}"
    return dependency
