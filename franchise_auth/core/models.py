"""
Core data models.

Account is the persisted identity record; AccountSummary is the only
shape that leaves the service layer (no password hash).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from franchise_auth.core.roles import ROLE_DESCRIPTIONS, Role
from franchise_auth.core.utils import generate_id, utc_now


# =============================================================================
# Reference data
# =============================================================================


class RoleRecord(BaseModel):
    """A seeded role row."""

    id: str = Field(default_factory=lambda: generate_id("role"))
    name: Role
    description: str = ""

    @classmethod
    def for_role(cls, role: Role) -> RoleRecord:
        return cls(name=role, description=ROLE_DESCRIPTIONS[role])


class AccountRole(BaseModel):
    """Join row between an account and a role. Unique on the pair."""

    account_id: str
    role_id: str
    role: Role
    created_at: datetime = Field(default_factory=utc_now)


# =============================================================================
# Accounts
# =============================================================================


class Account(BaseModel):
    """Identity record as stored."""

    id: str = Field(default_factory=lambda: generate_id("acct"))
    email: str
    username: str
    password_hash: str
    tenant_id: str | None = None
    double_opt_in: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class AccountSummary(BaseModel):
    """Account data returned to clients (no sensitive fields)."""

    id: str
    username: str
    email: str
    tenant_id: str | None = None
    roles: list[Role] = Field(default_factory=list)
    double_opt_in: bool = False
    created_at: datetime

    @classmethod
    def from_account(cls, account: Account, roles: list[Role] | None = None) -> AccountSummary:
        return cls(
            id=account.id,
            username=account.username,
            email=account.email,
            tenant_id=account.tenant_id,
            roles=roles or [],
            double_opt_in=account.double_opt_in,
            created_at=account.created_at,
        )
