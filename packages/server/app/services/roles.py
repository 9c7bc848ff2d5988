"""
Role checks — superadmin gate and org membership lookups.

All membership queries are scoped to the acting user's email.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.allowlist import SuperAdminAllowlist, normalize_email
from app.models.membership import Membership
from app.models.user import User
from aroha_shared.schemas.common import SUPERADMIN_ROLES

log = structlog.get_logger()


def is_superadmin_email(email: Optional[str], allowlist: SuperAdminAllowlist) -> bool:
    """Case-insensitive allowlist check. Empty or missing email is never a superadmin."""
    return email in allowlist if email else False


async def can_access_superadmin_by_email(
    email: Optional[str],
    session: AsyncSession,
    allowlist: SuperAdminAllowlist,
) -> bool:
    """Allowlisted emails pass outright; otherwise the user must own or
    administer at least one organization."""
    normalized = normalize_email(email)
    if not normalized:
        return False
    if is_superadmin_email(normalized, allowlist):
        return True

    result = await session.execute(
        select(Membership.id)
        .join(User, User.id == Membership.user_id)
        .where(func.lower(User.email) == normalized)
        .where(Membership.role.in_([role.value for role in SUPERADMIN_ROLES]))
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def resolve_org_id(
    email: Optional[str],
    input_org_id: Optional[str],
    session: AsyncSession,
) -> Optional[str]:
    """Explicit org id wins; otherwise the caller's first membership by org id."""
    if input_org_id:
        return input_org_id
    normalized = normalize_email(email)
    if not normalized:
        return None

    result = await session.execute(
        select(Membership.org_id)
        .join(User, User.id == Membership.user_id)
        .where(func.lower(User.email) == normalized)
        .order_by(Membership.org_id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def has_org_access(
    email: Optional[str],
    org_id: str,
    session: AsyncSession,
    allowlist: SuperAdminAllowlist,
) -> bool:
    """True for allowlisted superadmins and for any member of the org."""
    normalized = normalize_email(email)
    if not normalized:
        return False
    if is_superadmin_email(normalized, allowlist):
        return True

    result = await session.execute(
        select(Membership.id)
        .join(User, User.id == Membership.user_id)
        .where(Membership.org_id == org_id)
        .where(func.lower(User.email) == normalized)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None
