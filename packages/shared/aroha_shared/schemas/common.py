from enum import Enum
from pydantic import BaseModel

class Role(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    STAFF = "staff"

# Membership roles that grant superadmin console access
SUPERADMIN_ROLES: tuple["Role", ...] = (Role.OWNER, Role.ADMIN)

class CalendarProvider(str, Enum):
    GOOGLE = "google"

class ErrorDetail(BaseModel):
    code: str
    message: str
    status: int

class ErrorResponse(BaseModel):
    error: ErrorDetail
