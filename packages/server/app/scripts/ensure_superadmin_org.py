"""
Script to ensure the HQ organization exists and every superadmin owns it.

Emails come from SUPERADMINS / SUPERADMIN_EMAILS unless --email is given.
"""

import argparse
import asyncio
import sys

import structlog
from sqlmodel import select

from app.core.allowlist import SuperAdminAllowlist, normalize_email
from app.core.config import get_settings
from app.core.database import get_session_context
from app.core.logging import configure_logging
from app.models.membership import Membership
from app.models.organization import Organization
from app.models.user import User
from aroha_shared.schemas.common import Role

log = structlog.get_logger()


async def ensure_superadmin_org(emails: list[str]) -> None:
    settings = get_settings()
    slug = settings.superadmin_org_slug

    async with get_session_context() as session:
        result = await session.execute(select(Organization).where(Organization.slug == slug))
        org = result.scalar_one_or_none()
        if not org:
            org = Organization(name=settings.superadmin_org_name, slug=slug)
            session.add(org)
            await session.flush()
            log.info("hq_org.created", org_id=org.id, slug=slug)

        for email in emails:
            result = await session.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
            if not user:
                user = User(email=email)
                session.add(user)
                await session.flush()
                log.info("hq_org.user_created", email=email)

            result = await session.execute(
                select(Membership).where(
                    Membership.user_id == user.id, Membership.org_id == org.id
                )
            )
            membership = result.scalar_one_or_none()
            if not membership:
                session.add(Membership(user_id=user.id, org_id=org.id, role=Role.OWNER.value))
                log.info("hq_org.owner_added", email=email, org_id=org.id)
            elif membership.role != Role.OWNER.value:
                membership.role = Role.OWNER.value
                session.add(membership)
                log.info("hq_org.owner_promoted", email=email, org_id=org.id)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Ensure the superadmin HQ org exists.")
    parser.add_argument("--email", help="Only ensure this email (defaults to the configured superadmins)")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level, "text")

    if args.email:
        targets = [normalize_email(args.email)]
    else:
        targets = sorted(SuperAdminAllowlist.from_settings(settings).emails)
    targets = [email for email in targets if email]
    if not targets:
        print(
            "No superadmins configured. Set SUPERADMINS (comma-separated) or pass --email.",
            file=sys.stderr,
        )
        sys.exit(1)

    asyncio.run(ensure_superadmin_org(targets))
