# SQLModel definitions, imported here so Alembic sees the full metadata.
from .base import IDMixin, TimestampMixin  # noqa: F401
from .organization import Organization  # noqa: F401
from .user import User  # noqa: F401
from .membership import Membership  # noqa: F401
from .org_settings import OrgSettings  # noqa: F401
from .calendar_connection import CalendarConnection  # noqa: F401
