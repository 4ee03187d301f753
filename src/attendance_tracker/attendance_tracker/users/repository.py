from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role, UserStatus
from .model import User


class UserRepository(Protocol):
    """Repository interface for users.

    Note (DIP): the service layer depends on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def list_all(self) -> Sequence[User]:
        """All accounts ordered by name."""

        raise NotImplementedError

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        status: UserStatus,
        abbreviation: Optional[str] = None,
    ) -> str:
        raise NotImplementedError

    def update_profile(
        self,
        user_id: str,
        *,
        name: str,
        email: str,
        role: Role,
        status: UserStatus,
        abbreviation: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def update_password_hash(self, user_id: str, password_hash: str) -> bool:
        raise NotImplementedError

    def set_status(self, user_id: str, status: UserStatus) -> bool:
        raise NotImplementedError

    def count_by_status(self, status: UserStatus) -> int:
        raise NotImplementedError
