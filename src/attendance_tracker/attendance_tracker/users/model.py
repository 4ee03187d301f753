from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.enums import Role, UserStatus


@dataclass(frozen=True)
class User:
    """Domain entity: an admin or faculty account.

    Note: plain data object (no DB access code here).
    """

    user_id: str
    name: str
    email: str
    password_hash: str
    role: Role
    status: UserStatus
    abbreviation: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def display_tag(self) -> str:
        return self.abbreviation or self.name

    def public_dict(self) -> dict:
        """Shape returned by the JSON endpoints (never includes the hash)."""
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "status": self.status.value,
            "abbreviation": self.abbreviation,
        }


@dataclass(frozen=True)
class SessionUser:
    """Who is acting, resolved once at the session boundary.

    Views and services ask the capability predicates instead of comparing
    role/status strings themselves.
    """

    user_id: str
    name: str
    email: str
    role: Role
    status: UserStatus
    abbreviation: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "SessionUser":
        return cls(
            user_id=user.user_id,
            name=user.name,
            email=user.email,
            role=user.role,
            status=user.status,
            abbreviation=user.abbreviation,
        )

    @classmethod
    def from_session(cls, data: Mapping[str, Any]) -> Optional["SessionUser"]:
        if not data.get("user_id"):
            return None
        try:
            return cls(
                user_id=str(data["user_id"]),
                name=str(data.get("name") or ""),
                email=str(data.get("email") or ""),
                role=Role(data.get("role")),
                status=UserStatus(data.get("status")),
                abbreviation=data.get("abbreviation"),
            )
        except ValueError:
            return None

    def to_session(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "status": self.status.value,
            "abbreviation": self.abbreviation,
        }

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    @property
    def display_tag(self) -> str:
        return self.abbreviation or self.name

    def can_take_attendance(self) -> bool:
        return self.is_active

    def can_overwrite_attendance(self) -> bool:
        return self.is_active and self.is_admin

    def can_delete_all_attendance(self) -> bool:
        return self.is_active and self.is_admin

    def can_edit_faculty(self) -> bool:
        return self.is_active and self.is_admin

    def can_manage_students(self) -> bool:
        return self.is_active and self.is_admin
