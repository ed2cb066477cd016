# =============================================================================
# JWT Token Service
# =============================================================================
#
# Issues and verifies signed, expiring bearer tokens:
#   - access  (5 minutes)  : sub + roles + tenant_id
#   - refresh (7 days)     : sub only
#   - magic   (15 minutes) : email + username, email verification only
#
# Tokens are never persisted. Verification is stateless and only accepts
# the configured algorithm.
#
# =============================================================================

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Iterable
import logging

from pydantic import BaseModel, Field
import jwt

from franchise_auth.config import Settings, get_settings
from franchise_auth.core.errors import Unauthenticated
from franchise_auth.core.roles import Role
from franchise_auth.core.utils import generate_id, utc_now

logger = logging.getLogger(__name__)


# Claims only the service itself may set
_RESERVED_CLAIMS = {"sub", "type", "roles", "tenant_id", "iat", "exp", "jti"}


# =============================================================================
# Models
# =============================================================================

class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"
    MAGIC = "magic"


class TokenClaims(BaseModel):
    """Verified JWT claims."""
    sub: str  # account id, or email for magic tokens
    type: TokenType
    iat: datetime
    exp: datetime
    jti: str = ""
    roles: list[str] = Field(default_factory=list)
    tenant_id: str | None = None
    email: str | None = None
    username: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)


class TokenPair(BaseModel):
    """Access and refresh token pair."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds until access token expires


# =============================================================================
# Errors
# =============================================================================

class TokenInvalid(Unauthenticated):
    """Token signature, shape, type or algorithm is wrong."""
    default_message = "Invalid token"


class TokenExpired(TokenInvalid):
    """Token was valid but has expired."""
    default_message = "Token has expired"


# =============================================================================
# Token Service
# =============================================================================

class TokenService:
    """
    Issues and verifies tokens with a process-wide symmetric key.

    The key and algorithm come from Settings, which refuses to start
    without a key of at least 32 characters.
    """

    def __init__(self, settings: Settings | None = None):
        settings = settings or get_settings()
        self._secret = settings.jwt_secret_key
        self._algorithm = settings.jwt_algorithm
        self.access_ttl = timedelta(minutes=settings.jwt_access_token_expire_minutes)
        self.refresh_ttl = timedelta(days=settings.jwt_refresh_token_expire_days)
        self.magic_ttl = timedelta(minutes=settings.jwt_magic_token_expire_minutes)

    # -------------------------------------------------------------------------
    # Issuance
    # -------------------------------------------------------------------------

    def issue_access(
        self,
        account_id: str,
        roles: Iterable[Role | str],
        tenant_id: str | None = None,
        extra_claims: dict[str, Any] | None = None,
    ) -> str:
        """Create an access token carrying identity, roles and tenant."""
        extra = {k: v for k, v in (extra_claims or {}).items() if k not in _RESERVED_CLAIMS}
        claims = {
            **extra,
            "roles": [r.value if isinstance(r, Role) else str(r) for r in roles],
        }
        if tenant_id is not None:
            claims["tenant_id"] = tenant_id
        return self._encode(account_id, TokenType.ACCESS, self.access_ttl, claims, "tok")

    def issue_refresh(self, account_id: str) -> str:
        """Create a refresh token (longer-lived, identity only)."""
        return self._encode(account_id, TokenType.REFRESH, self.refresh_ttl, {}, "rtok")

    def issue_magic(self, email: str, username: str) -> str:
        """Create a short-lived email verification token."""
        claims = {"email": email, "username": username}
        return self._encode(email, TokenType.MAGIC, self.magic_ttl, claims, "mtok")

    def issue_pair(
        self,
        account_id: str,
        roles: Iterable[Role | str],
        tenant_id: str | None = None,
    ) -> TokenPair:
        """Create both access and refresh tokens."""
        return TokenPair(
            access_token=self.issue_access(account_id, roles, tenant_id),
            refresh_token=self.issue_refresh(account_id),
            expires_in=int(self.access_ttl.total_seconds()),
        )

    def _encode(
        self,
        subject: str,
        token_type: TokenType,
        ttl: timedelta,
        claims: dict[str, Any],
        jti_prefix: str,
    ) -> str:
        now = utc_now()
        payload = {
            **claims,
            "sub": subject,
            "type": token_type.value,
            "iat": now,
            "exp": now + ttl,
            "jti": generate_id(jti_prefix),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    # -------------------------------------------------------------------------
    # Verification
    # -------------------------------------------------------------------------

    def verify(self, token: str, expected_type: TokenType | str | None = None) -> TokenClaims:
        """
        Verify signature, expiry and shape of a token.

        Args:
            token: The JWT string
            expected_type: Reject tokens of any other type when given

        Raises:
            TokenExpired: Token has expired
            TokenInvalid: Anything else wrong with the token
        """
        if not token:
            raise TokenInvalid("Token is missing")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "type", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpired()
        except jwt.InvalidTokenError as e:
            raise TokenInvalid(f"Invalid token: {e}")

        try:
            token_type = TokenType(payload["type"])
        except ValueError:
            raise TokenInvalid(f"Unknown token type: {payload['type']}")

        if expected_type is not None and token_type != TokenType(expected_type):
            raise TokenInvalid(
                f"Expected {TokenType(expected_type).value} token, got {token_type.value}"
            )

        roles = payload.get("roles", [])
        if not isinstance(roles, list):
            raise TokenInvalid("Malformed roles claim")

        extra = {k: v for k, v in payload.items() if k not in _RESERVED_CLAIMS | {"email", "username"}}
        return TokenClaims(
            sub=payload["sub"],
            type=token_type,
            iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            jti=payload.get("jti", ""),
            roles=[str(r) for r in roles],
            tenant_id=payload.get("tenant_id"),
            email=payload.get("email"),
            username=payload.get("username"),
            extra=extra,
        )

    def decode_unverified(self, token: str) -> dict[str, Any]:
        """
        Read claims WITHOUT checking the signature or expiry.

        For logging and non-authoritative lookups only. Never feed the
        result into an authorization decision or into token issuance.
        """
        try:
            return jwt.decode(token, options={"verify_signature": False})
        except jwt.DecodeError as e:
            raise TokenInvalid(f"Malformed token: {e}")
