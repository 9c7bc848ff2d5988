"""Organization (tenant) model."""

from sqlmodel import Field, SQLModel

from .base import IDMixin, TimestampMixin


class Organization(IDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "organizations"

    name: str = Field(nullable=False, index=True)
    slug: str = Field(unique=True, nullable=False, index=True)
    timezone: str = Field(default="Pacific/Auckland", nullable=False)
