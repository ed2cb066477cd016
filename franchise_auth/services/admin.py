"""
Admin service - privileged account creation and tenant listings.

Tenant rules are checked here as well as in the guard chain, so the
service is safe to call from places other than HTTP routes.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, EmailStr, Field

from franchise_auth.auth.context import AuthContext
from franchise_auth.auth.policies import can_manage_tenant, require_tenant_id
from franchise_auth.core.errors import BadRequest, Forbidden
from franchise_auth.core.models import AccountSummary
from franchise_auth.core.roles import PRIVILEGED_CREATABLE_ROLES, Role
from franchise_auth.services.auth import AuthService

logger = logging.getLogger(__name__)


class CreateUserRequest(BaseModel):
    """Body of POST /admin/create-user."""
    username: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8)
    role: Role
    tenant_id: str | None = None


class AdminService:
    """Tenant-scoped account management for ADMIN and TENANT_OWNER callers."""

    def __init__(self, auth_service: AuthService):
        self.auth_service = auth_service
        self.accounts = auth_service.accounts

    async def create_privileged_user(
        self,
        requester: AuthContext,
        data: CreateUserRequest,
    ) -> AccountSummary:
        """
        Create a STAFF or TENANT_OWNER account inside a tenant.

        Raises:
            BadRequest: role is not STAFF/TENANT_OWNER, or tenant id missing
            Forbidden: requester may not manage the tenant
            Conflict: email already registered
        """
        if data.role not in PRIVILEGED_CREATABLE_ROLES:
            raise BadRequest(f"Role {data.role.value} cannot be created through this endpoint")

        tenant_id = require_tenant_id(data.tenant_id)

        if not can_manage_tenant(requester.roles, requester.tenant_id, tenant_id):
            raise Forbidden("You can only manage users in your own franchise")

        summary = await self.auth_service.provision_account(
            data.username, data.email, data.password, data.role, tenant_id
        )
        logger.info(f"{requester.account_id} created {data.role.value} {summary.id} in tenant {tenant_id}")
        return summary

    async def list_users_by_tenant(
        self,
        requester: AuthContext,
        target_tenant_id: str,
    ) -> list[AccountSummary]:
        """All accounts of a tenant, without password hashes."""
        if not can_manage_tenant(requester.roles, requester.tenant_id, target_tenant_id):
            raise Forbidden("You can only view users in your own franchise")

        accounts = await self.accounts.find_accounts_by_tenant(target_tenant_id)
        return [await self.auth_service.summarize(account) for account in accounts]
