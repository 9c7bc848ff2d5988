"""
Tests for the organization settings document helpers.

Covers:
- Pure merge of the Gmail and Google Calendar blocks
- Patch validation (unknown keys, wrong model type)
- Readers, including legacy document layouts
- Global controls
- Row persistence helpers
"""

from __future__ import annotations

import copy

import pytest

from app.services.org_settings import (
    calendar_sync_errors,
    load_org_settings,
    read_global_controls,
    read_gmail_integration,
    read_google_calendar_integration,
    update_org_settings,
    upsert_org_settings,
    write_gmail_integration,
    write_global_controls,
    write_google_calendar_integration,
)
from aroha_shared.schemas.organizations import (
    GlobalControls,
    GmailIntegration,
    GoogleCalendarIntegration,
)


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------

class TestWriteGmailIntegration:
    def test_merge_keeps_unrelated_keys(self):
        doc = {"a": 1, "gmailIntegration": {"connected": True, "foo": "x"}}
        result = write_gmail_integration(doc, {"connected": False})
        assert result == {"a": 1, "gmailIntegration": {"connected": False, "foo": "x"}}

    def test_input_not_mutated(self):
        doc = {"a": 1, "gmailIntegration": {"connected": True, "accountEmail": "ana@salon.nz"}}
        before = copy.deepcopy(doc)
        result = write_gmail_integration(doc, {"connected": False})
        assert doc == before
        assert result is not doc
        assert result["gmailIntegration"] is not doc["gmailIntegration"]

    def test_none_clears_value(self):
        doc = {"gmailIntegration": {"connected": True, "accountEmail": "ana@salon.nz"}}
        result = write_gmail_integration(doc, {"accountEmail": None})
        assert result["gmailIntegration"] == {"connected": True, "accountEmail": None}

    @pytest.mark.parametrize("doc", [None, {}, {"gmailIntegration": None}, {"gmailIntegration": "bad"}])
    def test_missing_block_starts_empty(self, doc):
        result = write_gmail_integration(doc, {"connected": False})
        assert result["gmailIntegration"] == {"connected": False}

    def test_typed_patch_dumps_only_set_fields(self):
        doc = {"gmailIntegration": {"connected": True, "lastError": "quota"}}
        result = write_gmail_integration(doc, GmailIntegration(account_email="ana@salon.nz"))
        assert result["gmailIntegration"] == {
            "connected": True,
            "lastError": "quota",
            "accountEmail": "ana@salon.nz",
        }

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="calendarId"):
            write_gmail_integration({}, {"calendarId": "primary"})

    def test_wrong_model_rejected(self):
        with pytest.raises(TypeError):
            write_gmail_integration({}, GoogleCalendarIntegration(connected=False))

    def test_other_block_untouched(self):
        google = {"connected": True, "calendarId": "primary"}
        doc = {"googleCalendarIntegration": google}
        result = write_gmail_integration(doc, {"connected": False})
        assert result["googleCalendarIntegration"] == google


class TestWriteGoogleCalendarIntegration:
    def test_merge_keeps_unrelated_keys(self):
        doc = {
            "timezone": "Pacific/Auckland",
            "calendarSyncErrors": [{"error": "boom"}],
            "googleCalendarIntegration": {"connected": True, "calendarId": "primary", "extra": 1},
        }
        result = write_google_calendar_integration(doc, {"connected": False, "calendarId": None})
        assert result == {
            "timezone": "Pacific/Auckland",
            "calendarSyncErrors": [{"error": "boom"}],
            "googleCalendarIntegration": {"connected": False, "calendarId": None, "extra": 1},
        }

    def test_empty_patch_keeps_block(self):
        doc = {"googleCalendarIntegration": {"connected": True}}
        assert write_google_calendar_integration(doc, {}) == doc

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="googleCalendarIntegration"):
            write_google_calendar_integration({}, {"lastError": "x"})


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------

class TestReadGmailIntegration:
    def test_defaults(self):
        assert read_gmail_integration(None) == GmailIntegration()

    def test_reads_block(self):
        gmail = read_gmail_integration(
            {"gmailIntegration": {"connected": True, "accountEmail": " ana@salon.nz "}}
        )
        assert gmail.connected is True
        assert gmail.account_email == "ana@salon.nz"

    def test_legacy_nested_layout(self):
        gmail = read_gmail_integration(
            {"integrations": {"gmail": {"connected": True, "accountEmail": "ana@salon.nz"}}}
        )
        assert gmail.connected is True
        assert gmail.account_email == "ana@salon.nz"

    def test_current_layout_wins_over_legacy(self):
        gmail = read_gmail_integration(
            {
                "gmailIntegration": {"connected": False},
                "integrations": {"gmail": {"connected": True}},
            }
        )
        assert gmail.connected is False

    def test_non_bool_connected_is_false(self):
        assert read_gmail_integration({"gmailIntegration": {"connected": "yes"}}).connected is False


class TestReadGoogleCalendarIntegration:
    def test_defaults(self):
        google = read_google_calendar_integration({})
        assert google.connected is False
        assert google.calendar_id is None
        assert google.sync_enabled is True

    def test_connected_defaults_to_calendar_presence(self):
        google = read_google_calendar_integration(
            {"googleCalendarIntegration": {"calendarId": "primary"}}
        )
        assert google.connected is True

    def test_legacy_top_level_mirrors(self):
        google = read_google_calendar_integration(
            {
                "googleCalendarId": "primary",
                "googleAccountEmail": "ana@salon.nz",
                "calendarLastSyncAt": "2026-01-01T00:00:00Z",
            }
        )
        assert google.calendar_id == "primary"
        assert google.account_email == "ana@salon.nz"
        assert google.last_sync_at == "2026-01-01T00:00:00Z"
        assert google.connected is True

    def test_explicit_null_beats_legacy_mirror(self):
        google = read_google_calendar_integration(
            {
                "googleCalendarIntegration": {"connected": False, "calendarId": None},
                "googleCalendarId": "primary",
            }
        )
        assert google.calendar_id is None
        assert google.connected is False

    def test_last_sync_error_from_sync_errors(self):
        google = read_google_calendar_integration(
            {"calendarSyncErrors": [{"error": "token expired", "at": "2026-01-01"}]}
        )
        assert google.last_sync_error == "token expired"

    def test_sync_errors_ignores_malformed(self):
        assert calendar_sync_errors({"calendarSyncErrors": "oops"}) == []
        assert calendar_sync_errors(None) == []


# ---------------------------------------------------------------------------
# Global controls
# ---------------------------------------------------------------------------

class TestGlobalControls:
    def test_read_defaults(self):
        assert read_global_controls({}) == GlobalControls()

    def test_read_coerces_truthy(self):
        controls = read_global_controls(
            {"globalControls": {"disableAutoSendAll": 1, "disableEmailAIAll": True}}
        )
        assert controls.disable_auto_send_all is True
        assert controls.disable_email_ai_all is True
        assert controls.disable_messages_hub_all is False

    def test_write_replaces_block_only(self):
        doc = {"gmailIntegration": {"connected": True}, "globalControls": {"old": True}}
        result = write_global_controls(doc, GlobalControls(disable_ai_summaries_all=True))
        assert result["gmailIntegration"] == {"connected": True}
        assert result["globalControls"] == {
            "disableAutoSendAll": False,
            "disableMessagesHubAll": False,
            "disableEmailAIAll": False,
            "disableAiSummariesAll": True,
        }


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

class TestPersistence:
    @pytest.mark.asyncio
    async def test_upsert_creates_then_updates(self, seed, session):
        await seed.org("org-1")

        created = await upsert_org_settings("org-1", {"a": 1}, session)
        await session.commit()
        assert await seed.settings_data("org-1") == {"a": 1}

        row = await load_org_settings("org-1", session, for_update=True)
        assert row.id == created.id
        await upsert_org_settings("org-1", {"a": 2}, session, existing=row)
        await session.commit()
        assert await seed.settings_data("org-1") == {"a": 2}

    @pytest.mark.asyncio
    async def test_update_existing_row(self, seed, session):
        await seed.org("org-1")
        await seed.settings("org-1", {"a": 1})

        row = await load_org_settings("org-1", session)
        await update_org_settings(row, {"b": 2}, session)
        await session.commit()
        assert await seed.settings_data("org-1") == {"b": 2}

    @pytest.mark.asyncio
    async def test_load_missing(self, session):
        assert await load_org_settings("nope", session) is None
