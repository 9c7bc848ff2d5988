"""
Authentication and Authorization for the Aroha Bookings API.

Supports:
- Session tokens (HS256 JWT) issued by the web frontend's auth layer,
  read from the session cookie or an Authorization: Bearer header
- Session revocation list in Redis
- Superadmin gate (allowlist + owner/admin membership)
- Org-scoping for integration endpoints (explicit orgId or first membership)
"""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends, HTTPException, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.allowlist import (
    SuperAdminAllowlist,
    get_superadmin_allowlist,
    normalize_email,
)
from app.core.config import get_settings
from app.core.database import get_session
from app.core.middleware import SESSION_COOKIE
from app.core.redis import get_redis
from app.services import roles

log = structlog.get_logger()
settings = get_settings()

api_key_header = APIKeyHeader(name="Authorization", auto_error=False)


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------

def create_session_token(
    email: str,
    *,
    user_id: Optional[str] = None,
    google_access_token: Optional[str] = None,
    google_refresh_token: Optional[str] = None,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed session token. Returns (token, jti).

    Production tokens come from the frontend; this is used by dev tooling
    and tests.
    """
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(seconds=settings.session_ttl_seconds))
    payload = {
        "sub": user_id or email,
        "email": email,
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    if google_access_token:
        payload["google_access_token"] = google_access_token
    if google_refresh_token:
        payload["google_refresh_token"] = google_refresh_token
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_session_token(token: str) -> dict:
    """Decode and verify a session token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


async def revoke_session(jti: str, ttl_seconds: int | None = None) -> None:
    """Add a session token ID to the revocation list in Redis."""
    redis = await get_redis()
    await redis.setex(
        f"session:revoked:{jti}", ttl_seconds or settings.session_ttl_seconds, "1"
    )


async def is_session_revoked(jti: str) -> bool:
    """Check if a session token ID has been revoked."""
    redis = await get_redis()
    return await redis.exists(f"session:revoked:{jti}") > 0


def generate_csrf_token() -> str:
    """Generate a random CSRF token."""
    return secrets.token_urlsafe(32)


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SessionIdentity:
    """The signed-in caller as described by their session token."""

    email: str
    subject: str
    jti: Optional[str] = None
    google_access_token: Optional[str] = None
    google_refresh_token: Optional[str] = None

    @property
    def google_token(self) -> Optional[str]:
        """Refresh token when present (revoking it kills the grant), else access token."""
        return self.google_refresh_token or self.google_access_token


def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return request.cookies.get(SESSION_COOKIE)


async def get_optional_identity(
    request: Request,
    authorization: Optional[str] = Depends(api_key_header),
) -> Optional[SessionIdentity]:
    """Resolve the caller from their session token; None when no token was sent."""
    token = _extract_token(request, authorization)
    if not token:
        return None

    try:
        payload = decode_session_token(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    jti = payload.get("jti")
    if jti and await is_session_revoked(jti):
        raise HTTPException(status_code=401, detail="Session has been revoked")

    email = normalize_email(payload.get("email"))
    if not email:
        return None

    identity = SessionIdentity(
        email=email,
        subject=str(payload.get("sub") or email),
        jti=jti,
        google_access_token=payload.get("google_access_token"),
        google_refresh_token=payload.get("google_refresh_token"),
    )
    request.state.identity = identity
    return identity


async def get_identity(
    identity: Optional[SessionIdentity] = Depends(get_optional_identity),
) -> SessionIdentity:
    """Any signed-in caller."""
    if identity is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return identity


# ---------------------------------------------------------------------------
# Authorization dependencies
# ---------------------------------------------------------------------------

async def require_superadmin(
    identity: SessionIdentity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
    allowlist: SuperAdminAllowlist = Depends(get_superadmin_allowlist),
) -> SessionIdentity:
    """Requires an allowlisted email or an owner/admin membership."""
    if not await roles.can_access_superadmin_by_email(identity.email, session, allowlist):
        log.info("auth.superadmin_denied", email=identity.email)
        raise HTTPException(status_code=403, detail="Not authorized")
    return identity


async def authorize_org(
    identity: SessionIdentity,
    input_org_id: Optional[str],
    session: AsyncSession,
    allowlist: SuperAdminAllowlist,
) -> str:
    """Resolve the org a request acts on and check the caller may act on it.

    Raises 400 when no org can be resolved and 403 when the caller is neither
    a superadmin nor a member of it.
    """
    org_id = await roles.resolve_org_id(identity.email, input_org_id, session)
    if not org_id:
        raise HTTPException(status_code=400, detail="Missing orgId")

    if not await roles.has_org_access(identity.email, org_id, session, allowlist):
        log.info("auth.org_denied", email=identity.email, org_id=org_id)
        raise HTTPException(status_code=403, detail="Not authorized for org")
    return org_id
