# =============================================================================
# Auth API Routes
# =============================================================================
#
# Endpoints:
#   POST   /auth/register     - Create a CUSTOMER account
#   POST   /auth/login        - Get tokens (cookies + body)
#   POST   /auth/refresh      - Exchange refresh token for a new pair
#   GET    /auth/logout       - Clear credential cookies (POST also accepted)
#   GET    /auth/verify       - Confirm email with a magic token
#   DELETE /auth/unsubscribe  - Delete own account
#   GET    /auth/profile      - Current account
#
# =============================================================================

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Request, Response, status
from pydantic import BaseModel, EmailStr, Field

from franchise_auth.api.dependencies import get_app_settings, get_auth_service
from franchise_auth.auth.context import AuthContext
from franchise_auth.auth.guards import ACCESS_COOKIE, REFRESH_COOKIE, guard
from franchise_auth.auth.jwt import TokenPair
from franchise_auth.config import Settings
from franchise_auth.core.models import AccountSummary
from franchise_auth.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


# =============================================================================
# Request/Response Models
# =============================================================================

class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str | None = None


class AccountResponse(BaseModel):
    message: str
    user: AccountSummary


class TokenResponse(TokenPair):
    message: str


class LoginResponse(TokenResponse):
    user: AccountSummary


class MessageResponse(BaseModel):
    message: str


# =============================================================================
# Cookies
# =============================================================================

def set_auth_cookies(response: Response, tokens: TokenPair, settings: Settings) -> None:
    """Store both tokens as httpOnly, sameSite=strict cookies."""
    response.set_cookie(
        ACCESS_COOKIE,
        tokens.access_token,
        max_age=settings.jwt_access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
        path="/",
    )
    response.set_cookie(
        REFRESH_COOKIE,
        tokens.refresh_token,
        max_age=settings.jwt_refresh_token_expire_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
        path="/",
    )


def clear_auth_cookies(response: Response, settings: Settings) -> None:
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            name,
            path="/",
            httponly=True,
            secure=settings.cookie_secure,
            samesite="strict",
        )


# =============================================================================
# Public Endpoints
# =============================================================================

@router.post("/register", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """
    Create a new account.

    The verification link is sent asynchronously; the account is usable
    immediately.
    """
    user = await auth.register(data.username, data.email, data.password)
    return AccountResponse(
        message="User registered successfully, check your email to verify your address",
        user=user,
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Authenticate and get tokens.
    """
    result = await auth.login(data.email, data.password)
    set_auth_cookies(response, result.tokens, settings)
    return LoginResponse(message="Login successful", user=result.account, **result.tokens.model_dump())


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    request: Request,
    response: Response,
    data: RefreshRequest | None = Body(default=None),
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Use the refresh token (cookie or body) to get a new pair.
    """
    token = request.cookies.get(REFRESH_COOKIE) or (data.refresh_token if data else None)
    tokens = await auth.refresh(token)
    set_auth_cookies(response, tokens, settings)
    return TokenResponse(message="Tokens refreshed", **tokens.model_dump())


@router.api_route("/logout", methods=["GET", "POST"], response_model=MessageResponse)
async def logout(
    response: Response,
    settings: Settings = Depends(get_app_settings),
):
    """
    Logout. Tokens are stateless, so this only clears the cookies.
    """
    clear_auth_cookies(response, settings)
    return MessageResponse(message="Logged out successfully")


@router.get("/verify")
async def verify_email(
    token: str | None = None,
    auth: AuthService = Depends(get_auth_service),
):
    """
    Verify email address using the magic token from the email.
    """
    result = await auth.verify_magic_token(token)
    return {"success": True, "email": result["email"]}


# =============================================================================
# Protected Endpoints
# =============================================================================

@router.get("/profile", response_model=AccountSummary)
async def profile(
    ctx: AuthContext = Depends(guard("auth.profile")),
    auth: AuthService = Depends(get_auth_service),
):
    """
    Get the current authenticated account.
    """
    return await auth.get_profile(ctx.account_id)


@router.delete("/unsubscribe", response_model=MessageResponse)
async def unsubscribe(
    response: Response,
    ctx: AuthContext = Depends(guard("auth.unsubscribe")),
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Delete the caller's own account and clear its cookies.
    """
    await auth.unsubscribe(ctx.account_id)
    clear_auth_cookies(response, settings)
    return MessageResponse(message="Unsubscribed successfully")
