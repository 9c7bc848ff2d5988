"""
Shared fixtures — in-memory SQLite for fast storage-backed tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, select

import app.models  # noqa: F401
from app.core.allowlist import SuperAdminAllowlist, get_superadmin_allowlist
from app.core.auth import create_session_token
from app.core.database import get_session
from app.main import app as fastapi_app
from app.models.calendar_connection import CalendarConnection
from app.models.membership import Membership
from app.models.org_settings import OrgSettings
from app.models.organization import Organization
from app.models.user import User

SUPERADMIN_EMAIL = "root@aroha.nz"


@pytest.fixture(autouse=True)
def mock_redis():
    """No Redis in tests: nothing is revoked unless a test says so."""
    redis = AsyncMock()
    redis.exists = AsyncMock(return_value=0)
    redis.setex = AsyncMock()
    with patch("app.core.auth.get_redis", return_value=redis):
        yield redis


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def allowlist():
    return SuperAdminAllowlist.from_emails([SUPERADMIN_EMAIL])


@pytest.fixture
async def client(session_factory, allowlist):
    async def _session():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    fastapi_app.dependency_overrides[get_session] = _session
    fastapi_app.dependency_overrides[get_superadmin_allowlist] = lambda: allowlist
    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()


def bearer(email: str, **claims) -> dict:
    token, _ = create_session_token(email, **claims)
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Seeding helpers
# ---------------------------------------------------------------------------

class Seeder:
    def __init__(self, factory):
        self._factory = factory

    async def org(self, org_id: str, slug: Optional[str] = None, name: str = "Salon") -> Organization:
        async with self._factory() as s:
            org = Organization(id=org_id, name=name, slug=slug or org_id)
            s.add(org)
            await s.commit()
            return org

    async def member(self, email: str, org_id: str, role: str = "owner") -> Membership:
        async with self._factory() as s:
            result = await s.execute(select(User).where(User.email == email.lower()))
            user = result.scalar_one_or_none()
            if user is None:
                user = User(email=email.lower())
                s.add(user)
                await s.flush()
            membership = Membership(user_id=user.id, org_id=org_id, role=role)
            s.add(membership)
            await s.commit()
            return membership

    async def settings(self, org_id: str, data: dict) -> OrgSettings:
        async with self._factory() as s:
            row = OrgSettings(org_id=org_id, data=data)
            s.add(row)
            await s.commit()
            return row

    async def connection(
        self,
        org_id: str,
        account_email: str,
        provider: str = "google",
        expires_at: Optional[datetime] = None,
    ) -> CalendarConnection:
        async with self._factory() as s:
            row = CalendarConnection(
                org_id=org_id,
                provider=provider,
                account_email=account_email,
                access_token="access",
                refresh_token="refresh",
                expires_at=expires_at or datetime.now(timezone.utc) + timedelta(hours=1),
            )
            s.add(row)
            await s.commit()
            return row

    async def settings_data(self, org_id: str) -> Optional[dict]:
        async with self._factory() as s:
            result = await s.execute(select(OrgSettings).where(OrgSettings.org_id == org_id))
            row = result.scalar_one_or_none()
            return row.data if row is not None else None

    async def connection_emails(self, org_id: str) -> set[str]:
        async with self._factory() as s:
            result = await s.execute(
                select(CalendarConnection.account_email).where(CalendarConnection.org_id == org_id)
            )
            return set(result.scalars().all())


@pytest.fixture
def seed(session_factory) -> Seeder:
    return Seeder(session_factory)
