"""Per-organization settings document."""

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from .base import IDMixin, TimestampMixin

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
SettingsJSON = sa.JSON().with_variant(JSONB(), "postgresql")


class OrgSettings(IDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "org_settings"

    org_id: str = Field(foreign_key="organizations.id", unique=True, nullable=False, index=True)
    data: dict = Field(default_factory=dict, sa_type=SettingsJSON, nullable=False)
