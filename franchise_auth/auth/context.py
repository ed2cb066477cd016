"""
Auth context - who is calling, with which roles, for which tenant.

This is the immutable value handed to route handlers once the guard
chain has authenticated the request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from franchise_auth.auth.jwt import TokenClaims
from franchise_auth.core.roles import Role, parse_roles


@dataclass(frozen=True)
class AuthContext:
    """
    Identity of an authenticated request.

    Usage in routes:
        async def my_route(ctx: AuthContext = Depends(guard("auth.profile"))):
            print(f"Account {ctx.account_id} in tenant {ctx.tenant_id}")
    """

    account_id: str
    roles: frozenset[Role] = field(default_factory=frozenset)
    tenant_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return Role.ADMIN in self.roles

    @property
    def is_tenant_owner(self) -> bool:
        return Role.TENANT_OWNER in self.roles

    def has_role(self, role: Role | str) -> bool:
        return bool(parse_roles([role]) & self.roles)

    @classmethod
    def build(
        cls,
        account_id: str,
        roles: Iterable[Role | str],
        tenant_id: str | None = None,
    ) -> AuthContext:
        return cls(account_id=account_id, roles=parse_roles(roles), tenant_id=tenant_id)

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> AuthContext:
        """Context from verified access-token claims."""
        return cls.build(claims.sub, claims.roles, claims.tenant_id)
