"""External calendar account linked to an organization."""

from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import IDMixin, TimestampMixin


class CalendarConnection(IDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "calendar_connections"
    __table_args__ = (
        sa.UniqueConstraint(
            "org_id", "provider", "account_email", name="uq_calendar_connections_account"
        ),
        sa.Index("ix_calendar_connections_org_provider", "org_id", "provider"),
    )

    org_id: str = Field(foreign_key="organizations.id", nullable=False)
    provider: str = Field(nullable=False)  # google
    account_email: str = Field(nullable=False)
    access_token: str = Field(nullable=False)
    refresh_token: str = Field(nullable=False)
    expires_at: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
