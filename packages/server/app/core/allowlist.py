"""
Superadmin allowlist resolved from configuration.

The allowlist is built once from Settings and handed to the authorization
gate as a dependency. Call reload_superadmin_allowlist() after changing the
environment to pick up new entries without a restart.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import structlog

from app.core.config import Settings, get_settings

log = structlog.get_logger()


def normalize_email(email: Optional[str]) -> str:
    """Trim and lower-case an email; returns "" for missing input."""
    return (email or "").strip().lower()


def parse_email_list(raw: Optional[str]) -> frozenset[str]:
    """Parse a comma-separated email list into a normalized set."""
    return frozenset(
        entry for entry in (normalize_email(part) for part in (raw or "").split(",")) if entry
    )


@dataclass(frozen=True)
class SuperAdminAllowlist:
    emails: frozenset[str] = frozenset()

    @classmethod
    def from_lists(cls, *raw_lists: Optional[str]) -> "SuperAdminAllowlist":
        emails: set[str] = set()
        for raw in raw_lists:
            emails |= parse_email_list(raw)
        return cls(emails=frozenset(emails))

    @classmethod
    def from_emails(cls, emails: Iterable[str]) -> "SuperAdminAllowlist":
        return cls.from_lists(",".join(emails))

    @classmethod
    def from_settings(cls, settings: Settings) -> "SuperAdminAllowlist":
        return cls.from_lists(settings.superadmins, settings.superadmin_emails)

    def __contains__(self, email: object) -> bool:
        if not isinstance(email, str):
            return False
        normalized = normalize_email(email)
        return bool(normalized) and normalized in self.emails

    def __len__(self) -> int:
        return len(self.emails)


_allowlist: SuperAdminAllowlist | None = None


def get_superadmin_allowlist() -> SuperAdminAllowlist:
    """FastAPI dependency returning the process-wide allowlist."""
    global _allowlist
    if _allowlist is None:
        _allowlist = SuperAdminAllowlist.from_settings(get_settings())
    return _allowlist


def reload_superadmin_allowlist() -> SuperAdminAllowlist:
    """Re-read configuration (environment and .env) and swap in a new allowlist."""
    global _allowlist
    get_settings.cache_clear()
    _allowlist = SuperAdminAllowlist.from_settings(get_settings())
    log.info("allowlist.reloaded", entries=len(_allowlist))
    return _allowlist
