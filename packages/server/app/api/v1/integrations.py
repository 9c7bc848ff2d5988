"""
Integration API endpoints.

POST /api/v1/integrations/gmail/disconnect   — Mark Gmail disconnected, revoke Google token
GET  /api/v1/integrations/gmail/status       — Gmail integration view
POST /api/v1/integrations/google/disconnect  — Remove Google Calendar connections
GET  /api/v1/integrations/google/status      — Google Calendar connection view

Every route acts on an explicit orgId or, when omitted, the caller's first
organization. Superadmins may act on any org; others need a membership.
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.allowlist import SuperAdminAllowlist, get_superadmin_allowlist
from app.core.auth import SessionIdentity, authorize_org, get_identity
from app.core.database import get_session
from app.services import integrations as integration_service
from app.services.google import revoke_google_token
from aroha_shared.schemas.organizations import (
    DisconnectResponse,
    GmailDisconnectRequest,
    GmailStatusResponse,
    GoogleDisconnectRequest,
    GoogleStatusResponse,
)

log = structlog.get_logger()
router = APIRouter()


# ---------------------------------------------------------------------------
# Gmail
# ---------------------------------------------------------------------------

@router.post("/gmail/disconnect", response_model=DisconnectResponse)
async def disconnect_gmail(
    body: Optional[GmailDisconnectRequest] = Body(None),
    identity: SessionIdentity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
    allowlist: SuperAdminAllowlist = Depends(get_superadmin_allowlist),
):
    """Disconnect Gmail for an org. Safe to repeat."""
    body = body or GmailDisconnectRequest()
    org_id = await authorize_org(identity, body.org_id, session, allowlist)

    if identity.google_token:
        await revoke_google_token(identity.google_token)

    await integration_service.disconnect_gmail(org_id, session)
    return DisconnectResponse(org_id=org_id)


@router.get("/gmail/status", response_model=GmailStatusResponse)
async def gmail_status(
    org_id: Optional[str] = Query(None, alias="orgId"),
    identity: SessionIdentity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
    allowlist: SuperAdminAllowlist = Depends(get_superadmin_allowlist),
):
    org_id = await authorize_org(identity, (org_id or "").strip() or None, session, allowlist)
    return await integration_service.gmail_status(org_id, session)


# ---------------------------------------------------------------------------
# Google Calendar
# ---------------------------------------------------------------------------

@router.post("/google/disconnect", response_model=DisconnectResponse)
async def disconnect_google_calendar(
    body: Optional[GoogleDisconnectRequest] = Body(None),
    identity: SessionIdentity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
    allowlist: SuperAdminAllowlist = Depends(get_superadmin_allowlist),
):
    """Disconnect one Google account (accountEmail) or all of them for an org."""
    body = body or GoogleDisconnectRequest()
    org_id = await authorize_org(identity, body.org_id, session, allowlist)

    deleted = await integration_service.disconnect_google_calendar(
        org_id, session, account_email=body.account_email
    )
    return DisconnectResponse(org_id=org_id, deleted=deleted)


@router.get("/google/status", response_model=GoogleStatusResponse)
async def google_status(
    org_id: Optional[str] = Query(None, alias="orgId"),
    identity: SessionIdentity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
    allowlist: SuperAdminAllowlist = Depends(get_superadmin_allowlist),
):
    org_id = await authorize_org(identity, (org_id or "").strip() or None, session, allowlist)
    return await integration_service.google_calendar_status(org_id, session)
