"""
Integration service — disconnect workflows and status views for Gmail and
Google Calendar.

Each workflow runs on the caller's session; the request commits or rolls
back all of its statements together.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.calendar_connection import CalendarConnection
from app.services.org_settings import (
    CALENDAR_SYNC_ERRORS_KEY,
    calendar_sync_errors,
    load_org_settings,
    read_gmail_integration,
    read_google_calendar_integration,
    update_org_settings,
    upsert_org_settings,
    write_gmail_integration,
    write_google_calendar_integration,
)
from aroha_shared.schemas.common import CalendarProvider
from aroha_shared.schemas.organizations import (
    GmailStatusResponse,
    GoogleStatusResponse,
)

log = structlog.get_logger()

GMAIL_DISCONNECTED = {
    "connected": False,
    "accountEmail": None,
    "lastError": None,
}

GOOGLE_CALENDAR_DISCONNECTED = {
    "connected": False,
    "calendarId": None,
    "accountEmail": None,
    "syncEnabled": False,
    "lastSyncAt": None,
    "lastSyncError": None,
}

# Grace window before an expired Google token counts as needing reconnect
TOKEN_EXPIRY_GRACE = timedelta(minutes=2)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


async def disconnect_gmail(org_id: str, session: AsyncSession) -> dict:
    """Mark Gmail as disconnected for an org. Idempotent.

    A missing settings row is treated as an empty document and created.
    Returns the written settings document.
    """
    row = await load_org_settings(org_id, session, for_update=True)
    data = (row.data or {}) if row is not None else {}
    next_data = write_gmail_integration(data, GMAIL_DISCONNECTED)
    row = await upsert_org_settings(org_id, next_data, session, existing=row)

    log.info("integration.gmail_disconnected", org_id=org_id)
    return row.data


async def disconnect_google_calendar(
    org_id: str,
    session: AsyncSession,
    account_email: Optional[str] = None,
) -> int:
    """Remove Google calendar connections and reset the integration block.

    Only connections for account_email are removed when it is given; all
    Google connections of the org otherwise. Orgs without a settings row
    stop after the delete. Returns the number of connections removed.
    """
    stmt = delete(CalendarConnection).where(
        CalendarConnection.org_id == org_id,
        CalendarConnection.provider == CalendarProvider.GOOGLE.value,
    )
    if account_email:
        stmt = stmt.where(CalendarConnection.account_email == account_email)
    result = await session.execute(stmt)
    deleted = result.rowcount or 0

    row = await load_org_settings(org_id, session, for_update=True)
    if row is None:
        log.info(
            "integration.google_disconnected",
            org_id=org_id,
            deleted=deleted,
            settings_updated=False,
        )
        return deleted

    data = {
        key: value
        for key, value in (row.data or {}).items()
        if key != CALENDAR_SYNC_ERRORS_KEY
    }
    next_data = write_google_calendar_integration(data, GOOGLE_CALENDAR_DISCONNECTED)
    await update_org_settings(row, next_data, session)

    log.info(
        "integration.google_disconnected",
        org_id=org_id,
        deleted=deleted,
        account_email=account_email,
        settings_updated=True,
    )
    return deleted


async def latest_calendar_connection(
    org_id: str, session: AsyncSession
) -> Optional[CalendarConnection]:
    result = await session.execute(
        select(CalendarConnection)
        .where(
            CalendarConnection.org_id == org_id,
            CalendarConnection.provider == CalendarProvider.GOOGLE.value,
        )
        .order_by(CalendarConnection.updated_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def google_calendar_status(
    org_id: str,
    session: AsyncSession,
    *,
    now: Optional[datetime] = None,
) -> GoogleStatusResponse:
    """Connection view combining the settings block with the newest connection row."""
    now = now or datetime.now(timezone.utc)
    row = await load_org_settings(org_id, session)
    data = row.data if row is not None else {}
    google = read_google_calendar_integration(data)
    connection = await latest_calendar_connection(org_id, session)

    errors = calendar_sync_errors(data)
    expires_at = _as_utc(connection.expires_at) if connection is not None else None
    connected = bool(google.connected and google.calendar_id)
    needs_reconnect = connected and (
        expires_at is None or expires_at < now - TOKEN_EXPIRY_GRACE
    )

    return GoogleStatusResponse(
        org_id=org_id,
        connected=connected,
        email=(connection.account_email if connection is not None else None)
        or google.account_email,
        expires_at=expires_at,
        needs_reconnect=needs_reconnect,
        calendar_id=google.calendar_id,
        last_sync_at=google.last_sync_at,
        last_error=errors[0] if errors and isinstance(errors[0], dict) else None,
    )


async def gmail_status(org_id: str, session: AsyncSession) -> GmailStatusResponse:
    row = await load_org_settings(org_id, session)
    gmail = read_gmail_integration(row.data if row is not None else {})
    return GmailStatusResponse(
        org_id=org_id,
        connected=gmail.connected,
        account_email=gmail.account_email,
        last_error=gmail.last_error,
    )
