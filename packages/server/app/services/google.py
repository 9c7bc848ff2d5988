"""
Google OAuth helpers.
"""

from __future__ import annotations

from typing import Optional

import httpx
import structlog

from app.core.config import get_settings

log = structlog.get_logger()


async def revoke_google_token(
    token: str, *, client: Optional[httpx.AsyncClient] = None
) -> bool:
    """Best-effort revocation of a Google OAuth token.

    Network and HTTP failures are logged and reported as False; they never
    block the caller's own teardown.
    """
    settings = get_settings()
    try:
        if client is None:
            async with httpx.AsyncClient(
                timeout=settings.google_request_timeout_seconds
            ) as own_client:
                response = await own_client.post(settings.google_revoke_url, data={"token": token})
        else:
            response = await client.post(settings.google_revoke_url, data={"token": token})
    except httpx.HTTPError as exc:
        log.warning("google.token_revoke_failed", error=str(exc))
        return False

    if response.is_success:
        log.info("google.token_revoked")
        return True
    log.warning("google.token_revoke_rejected", status=response.status_code)
    return False
