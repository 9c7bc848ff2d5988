"""User-Organization membership."""

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import IDMixin


class Membership(IDMixin, SQLModel, table=True):
    __tablename__ = "memberships"
    __table_args__ = (sa.UniqueConstraint("user_id", "org_id", name="uq_memberships_user_org"),)

    user_id: str = Field(foreign_key="users.id", nullable=False, index=True)
    org_id: str = Field(foreign_key="organizations.id", nullable=False, index=True)
    role: str = Field(nullable=False, default="owner")  # owner | admin | member | staff
