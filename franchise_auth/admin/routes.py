# =============================================================================
# Admin API Routes
# =============================================================================
#
# Endpoints (ADMIN or TENANT_OWNER, tenant-scoped):
#   POST /admin/create-user                - Create a STAFF / TENANT_OWNER account
#   GET  /admin/users/tenant/{tenant_id}   - List accounts of a tenant
#
# =============================================================================

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from franchise_auth.api.dependencies import get_admin_service
from franchise_auth.auth.context import AuthContext
from franchise_auth.auth.guards import guard
from franchise_auth.core.models import AccountSummary
from franchise_auth.services.admin import AdminService, CreateUserRequest

router = APIRouter(prefix="/admin", tags=["admin"])


class CreateUserResponse(BaseModel):
    message: str
    user: AccountSummary


class TenantUsersResponse(BaseModel):
    tenant_id: str
    users: list[AccountSummary]


@router.post("/create-user", response_model=CreateUserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: CreateUserRequest,
    ctx: AuthContext = Depends(guard("admin.create_user")),
    admin: AdminService = Depends(get_admin_service),
):
    """
    Create a privileged account inside a tenant the caller manages.
    """
    user = await admin.create_privileged_user(ctx, data)
    return CreateUserResponse(message="User created successfully", user=user)


@router.get("/users/tenant/{tenant_id}", response_model=TenantUsersResponse)
async def list_users_by_tenant(
    tenant_id: str,
    ctx: AuthContext = Depends(guard("admin.list_users_by_tenant")),
    admin: AdminService = Depends(get_admin_service),
):
    """
    List the accounts of a tenant. TENANT_OWNER callers see only their own.
    """
    users = await admin.list_users_by_tenant(ctx, tenant_id)
    return TenantUsersResponse(tenant_id=tenant_id, users=users)
