"""
Organization settings service — typed access to OrgSettings.data.

The write_* helpers are pure: they return a new document in which only the
integration block they own has changed. Persistence goes through
load_org_settings and upsert_org_settings / update_org_settings.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Type, TypeVar, Union

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.org_settings import OrgSettings
from aroha_shared.schemas.organizations import (
    GlobalControls,
    GmailIntegration,
    GoogleCalendarIntegration,
    IntegrationState,
)

log = structlog.get_logger()

IntegrationT = TypeVar("IntegrationT", bound=IntegrationState)
IntegrationPatch = Union[Mapping[str, Any], IntegrationState]

CALENDAR_SYNC_ERRORS_KEY = "calendarSyncErrors"
GLOBAL_CONTROLS_KEY = "globalControls"

# Pre-2026 documents nested integrations under "integrations" and mirrored
# a few Google fields at the top level.
LEGACY_INTEGRATIONS_KEY = "integrations"
LEGACY_NESTED_KEYS = {
    GmailIntegration.document_key: "gmail",
    GoogleCalendarIntegration.document_key: "googleCalendar",
}
LEGACY_GOOGLE_TOP_LEVEL = {
    "calendarId": "googleCalendarId",
    "accountEmail": "googleAccountEmail",
    "lastSyncAt": "calendarLastSyncAt",
}


def _as_dict(value: Any) -> dict:
    return dict(value) if isinstance(value, Mapping) else {}


def _str_or_none(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _patch_to_dict(model: Type[IntegrationState], patch: IntegrationPatch) -> dict:
    if isinstance(patch, IntegrationState):
        if not isinstance(patch, model):
            raise TypeError(
                f"Expected {model.__name__} patch, got {type(patch).__name__}"
            )
        return patch.model_dump(by_alias=True, exclude_unset=True)

    unknown = set(patch) - model.field_keys()
    if unknown:
        raise ValueError(
            f"Unknown {model.document_key} fields: {', '.join(sorted(unknown))}"
        )
    return dict(patch)


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------

def write_integration(
    document: Optional[Mapping[str, Any]],
    model: Type[IntegrationState],
    patch: IntegrationPatch,
) -> dict:
    """Merge a partial update into one integration block of a settings document.

    Keys missing from the patch keep their previous value; keys set to None
    are cleared. Every other top-level key is carried over untouched and the
    input document is never mutated.
    """
    current = _as_dict(document)
    block = {**_as_dict(current.get(model.document_key)), **_patch_to_dict(model, patch)}
    return {**current, model.document_key: block}


def write_gmail_integration(
    document: Optional[Mapping[str, Any]], patch: IntegrationPatch
) -> dict:
    return write_integration(document, GmailIntegration, patch)


def write_google_calendar_integration(
    document: Optional[Mapping[str, Any]], patch: IntegrationPatch
) -> dict:
    return write_integration(document, GoogleCalendarIntegration, patch)


def write_global_controls(
    document: Optional[Mapping[str, Any]], controls: GlobalControls
) -> dict:
    """Replace the globalControls block, keeping the rest of the document."""
    return {**_as_dict(document), GLOBAL_CONTROLS_KEY: controls.model_dump(by_alias=True)}


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------

def _integration_block(document: Mapping[str, Any], model: Type[IntegrationState]) -> dict:
    if model.document_key in document:
        return _as_dict(document.get(model.document_key))
    legacy = _as_dict(document.get(LEGACY_INTEGRATIONS_KEY))
    return _as_dict(legacy.get(LEGACY_NESTED_KEYS[model.document_key]))


def read_gmail_integration(document: Optional[Mapping[str, Any]]) -> GmailIntegration:
    block = _integration_block(_as_dict(document), GmailIntegration)
    connected = block.get("connected")
    return GmailIntegration(
        connected=connected if isinstance(connected, bool) else False,
        account_email=_str_or_none(block.get("accountEmail")),
        last_error=_str_or_none(block.get("lastError")),
    )


def calendar_sync_errors(document: Optional[Mapping[str, Any]]) -> list:
    errors = _as_dict(document).get(CALENDAR_SYNC_ERRORS_KEY)
    return list(errors) if isinstance(errors, list) else []


def read_google_calendar_integration(
    document: Optional[Mapping[str, Any]],
) -> GoogleCalendarIntegration:
    data = _as_dict(document)
    block = _integration_block(data, GoogleCalendarIntegration)

    def field(key: str) -> Optional[str]:
        # An explicit null in the block wins over legacy mirrors
        if key in block:
            return _str_or_none(block[key])
        legacy_key = LEGACY_GOOGLE_TOP_LEVEL.get(key)
        return _str_or_none(data.get(legacy_key)) if legacy_key else None

    if "lastSyncError" in block:
        last_sync_error = _str_or_none(block["lastSyncError"])
    else:
        errors = calendar_sync_errors(data)
        last_sync_error = _str_or_none(_as_dict(errors[0]).get("error")) if errors else None

    calendar_id = field("calendarId")
    connected = block.get("connected")
    sync_enabled = block.get("syncEnabled")
    return GoogleCalendarIntegration(
        connected=connected if isinstance(connected, bool) else bool(calendar_id),
        account_email=field("accountEmail"),
        calendar_id=calendar_id,
        sync_enabled=sync_enabled if isinstance(sync_enabled, bool) else True,
        last_sync_at=field("lastSyncAt"),
        last_sync_error=last_sync_error,
    )


def read_global_controls(document: Optional[Mapping[str, Any]]) -> GlobalControls:
    raw = _as_dict(_as_dict(document).get(GLOBAL_CONTROLS_KEY))
    return GlobalControls(
        **{
            info.alias: bool(raw.get(info.alias))
            for info in GlobalControls.model_fields.values()
        }
    )


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

async def load_org_settings(
    org_id: str, session: AsyncSession, *, for_update: bool = False
) -> Optional[OrgSettings]:
    """Fetch an org's settings row, optionally locking it for a read-merge-write."""
    stmt = select(OrgSettings).where(OrgSettings.org_id == org_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def upsert_org_settings(
    org_id: str,
    data: dict,
    session: AsyncSession,
    *,
    existing: Optional[OrgSettings] = None,
) -> OrgSettings:
    """Write the document, creating the row when the org has none yet."""
    row = existing
    if row is None:
        row = OrgSettings(org_id=org_id, data=data)
        log.info("org_settings.created", org_id=org_id)
    else:
        row.data = data
    session.add(row)
    await session.flush()
    return row


async def update_org_settings(row: OrgSettings, data: dict, session: AsyncSession) -> OrgSettings:
    """Write the document to a row that is known to exist."""
    row.data = data
    session.add(row)
    await session.flush()
    return row
