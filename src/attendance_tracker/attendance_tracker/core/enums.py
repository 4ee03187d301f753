from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization."""

    ADMIN = "admin"
    FACULTY = "faculty"


class UserStatus(str, Enum):
    """Account lifecycle: signup -> pending, admin activation -> active."""

    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


class SlotOwnership(str, Enum):
    """Who currently holds the attendance of one (date, period, semester) slot."""

    OPEN = "open"
    TAKEN_BY_ME = "taken_by_me"
    TAKEN_BY_OTHER = "taken_by_other"


class AttendanceTier(str, Enum):
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"
