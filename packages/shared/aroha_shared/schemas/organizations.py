"""
Organization settings schemas shared between the server and its tooling.

Covers: the typed integration sub-objects stored in OrgSettings.data,
global controls, and the request/response bodies of the integration and
admin endpoints.

Settings documents use camelCase keys; models expose snake_case attributes
and dump by alias.
"""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# Bumped whenever an integration sub-object changes shape
SETTINGS_SCHEMA_VERSION = 1


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


# ---------------------------------------------------------------------------
# Integration sub-objects
# ---------------------------------------------------------------------------

class IntegrationState(CamelModel):
    """Base for one integration family's block in the settings document."""

    document_key: ClassVar[str]
    schema_version: ClassVar[int] = SETTINGS_SCHEMA_VERSION

    @classmethod
    def field_keys(cls) -> frozenset[str]:
        """Document keys this integration owns."""
        return frozenset(
            info.alias or name for name, info in cls.model_fields.items()
        )


class GmailIntegration(IntegrationState):
    document_key: ClassVar[str] = "gmailIntegration"

    connected: bool = False
    account_email: Optional[str] = None
    last_error: Optional[str] = None


class GoogleCalendarIntegration(IntegrationState):
    document_key: ClassVar[str] = "googleCalendarIntegration"

    connected: bool = False
    account_email: Optional[str] = None
    calendar_id: Optional[str] = None
    sync_enabled: bool = True
    last_sync_at: Optional[str] = None
    last_sync_error: Optional[str] = None


class GlobalControls(CamelModel):
    """Platform-wide kill switches kept in the HQ organization's settings."""

    disable_auto_send_all: bool = False
    disable_messages_hub_all: bool = False
    disable_email_ai_all: bool = Field(default=False, alias="disableEmailAIAll")
    disable_ai_summaries_all: bool = False


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class GmailDisconnectRequest(CamelModel):
    org_id: Optional[str] = Field(None, description="Target org; defaults to the caller's first org")

    @field_validator("org_id", mode="before")
    @classmethod
    def strip_blank(cls, value):
        return _blank_to_none(value)


class GoogleDisconnectRequest(CamelModel):
    org_id: Optional[str] = Field(None, description="Target org; defaults to the caller's first org")
    account_email: Optional[str] = Field(
        None,
        description="Disconnect only this Google account (all accounts when omitted)",
    )

    @field_validator("org_id", "account_email", mode="before")
    @classmethod
    def strip_blank(cls, value):
        return _blank_to_none(value)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class DisconnectResponse(CamelModel):
    ok: bool = True
    org_id: str
    deleted: Optional[int] = Field(None, description="Calendar connection rows removed")


class GoogleStatusResponse(CamelModel):
    ok: bool = True
    org_id: str
    connected: bool
    email: Optional[str] = None
    expires_at: Optional[datetime] = None
    needs_reconnect: bool
    calendar_id: Optional[str] = None
    last_sync_at: Optional[str] = None
    last_error: Optional[dict] = None


class GmailStatusResponse(CamelModel):
    ok: bool = True
    org_id: str
    connected: bool
    account_email: Optional[str] = None
    last_error: Optional[str] = None


class AccessResponse(CamelModel):
    ok: bool = True
    email: str
    superadmin: bool


class OrgSummary(CamelModel):
    id: str
    name: str
    slug: str
    timezone: str

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class OrgInfoResponse(CamelModel):
    ok: bool = True
    org: OrgSummary
    gmail: GmailIntegration
    google: GoogleCalendarIntegration
    google_connection_email: Optional[str] = None


class GlobalControlsResponse(CamelModel):
    ok: bool = True
    controls: GlobalControls
