"""
Superadmin API endpoints.

GET  /api/v1/admin/access           — Does the caller pass the superadmin gate?
GET  /api/v1/admin/org-info         — Org summary with integration state
GET  /api/v1/admin/global-controls  — Platform kill switches
POST /api/v1/admin/global-controls  — Update platform kill switches
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.allowlist import SuperAdminAllowlist, get_superadmin_allowlist
from app.core.auth import SessionIdentity, get_identity, require_superadmin
from app.core.config import get_settings
from app.core.database import get_session
from app.models.organization import Organization
from app.services import org_settings as settings_service
from app.services.integrations import latest_calendar_connection
from app.services.roles import can_access_superadmin_by_email
from aroha_shared.schemas.organizations import (
    AccessResponse,
    GlobalControls,
    GlobalControlsResponse,
    OrgInfoResponse,
    OrgSummary,
)

log = structlog.get_logger()
router = APIRouter()


@router.get("/access", response_model=AccessResponse)
async def access(
    identity: SessionIdentity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
    allowlist: SuperAdminAllowlist = Depends(get_superadmin_allowlist),
):
    """Report whether the caller may open the superadmin console."""
    allowed = await can_access_superadmin_by_email(identity.email, session, allowlist)
    return AccessResponse(email=identity.email, superadmin=allowed)


@router.get("/org-info", response_model=OrgInfoResponse)
async def org_info(
    org_id: str = Query(..., alias="orgId", min_length=1),
    _: SessionIdentity = Depends(require_superadmin),
    session: AsyncSession = Depends(get_session),
):
    result = await session.execute(select(Organization).where(Organization.id == org_id.strip()))
    org = result.scalar_one_or_none()
    if not org:
        raise HTTPException(status_code=404, detail="Org not found")

    row = await settings_service.load_org_settings(org.id, session)
    data = row.data if row is not None else {}
    connection = await latest_calendar_connection(org.id, session)
    return OrgInfoResponse(
        org=OrgSummary.model_validate(org),
        gmail=settings_service.read_gmail_integration(data),
        google=settings_service.read_google_calendar_integration(data),
        google_connection_email=connection.account_email if connection is not None else None,
    )


# ---------------------------------------------------------------------------
# Global controls (stored on the HQ org)
# ---------------------------------------------------------------------------

async def _hq_org_id(session: AsyncSession) -> str:
    slug = get_settings().superadmin_org_slug.strip()
    org_id = None
    if slug:
        result = await session.execute(select(Organization.id).where(Organization.slug == slug))
        org_id = result.scalar_one_or_none()
    if not org_id:
        raise HTTPException(status_code=404, detail="Superadmin org not found")
    return org_id


@router.get("/global-controls", response_model=GlobalControlsResponse)
async def get_global_controls(
    _: SessionIdentity = Depends(require_superadmin),
    session: AsyncSession = Depends(get_session),
):
    org_id = await _hq_org_id(session)
    row = await settings_service.load_org_settings(org_id, session)
    controls = settings_service.read_global_controls(row.data if row is not None else {})
    return GlobalControlsResponse(controls=controls)


@router.post("/global-controls", response_model=GlobalControlsResponse)
async def update_global_controls(
    body: GlobalControls,
    identity: SessionIdentity = Depends(require_superadmin),
    session: AsyncSession = Depends(get_session),
):
    """Replace the global controls; other settings of the HQ org are kept."""
    org_id = await _hq_org_id(session)
    row = await settings_service.load_org_settings(org_id, session, for_update=True)
    data = row.data if row is not None else {}
    next_data = settings_service.write_global_controls(data, body)
    await settings_service.upsert_org_settings(org_id, next_data, session, existing=row)

    log.info("admin.global_controls_updated", org_id=org_id, by=identity.email)
    return GlobalControlsResponse(controls=body)
