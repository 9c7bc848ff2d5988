"""
Session endpoints.

Sessions are issued by the web frontend; this API only ends them.
"""

from __future__ import annotations

import jwt
import structlog
from fastapi import APIRouter, Request, Response

from app.core.auth import decode_session_token, revoke_session
from app.core.middleware import CSRF_COOKIE, SESSION_COOKIE

log = structlog.get_logger()
router = APIRouter()


@router.post("/logout")
async def logout(request: Request, response: Response):
    """Revoke the current session token and clear session cookies."""
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        try:
            payload = decode_session_token(token)
        except jwt.PyJWTError:
            payload = {}  # Token already invalid, just clear cookies
        jti = payload.get("jti")
        if jti:
            await revoke_session(jti)
            log.info("auth.session_revoked", jti=jti)

    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(CSRF_COOKIE, path="/")
    return {"ok": True, "message": "Logged out"}
