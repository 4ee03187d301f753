from __future__ import annotations

import uuid
from typing import Any, Dict, Optional, Sequence

from ..core.enums import Role, UserStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_USER_COLUMNS = "id, name, email, password_hash, role, status, abbreviation, created_at, updated_at"


def _to_user(row: Dict[str, Any]) -> User:
    return User(
        user_id=str(row["id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        status=UserStatus(row["status"]),
        abbreviation=row.get("abbreviation"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id=%s", (user_id,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE LOWER(email)=LOWER(%s)", (email,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def list_all(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users ORDER BY name")
            return [_to_user(r) for r in fetchall(cur)]

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
        user_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(id, name, email, password_hash, role, status, abbreviation)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (user_id, name, email, password_hash, role.value, status.value, abbreviation),
            )
        return user_id

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users
                SET name=%s, email=%s, role=%s, status=%s, abbreviation=%s, updated_at=CURRENT_TIMESTAMP
                WHERE id=%s
                """,
                (name, email, role.value, status.value, abbreviation, user_id),
            )
            # MySQL reports 0 affected rows when nothing changed; existence is what matters.
            cur.execute("SELECT 1 AS ok FROM users WHERE id=%s", (user_id,))
            return fetchone(cur) is not None

    def update_password_hash(self, user_id: str, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET password_hash=%s, updated_at=CURRENT_TIMESTAMP WHERE id=%s",
                (password_hash, user_id),
            )
            return cur.rowcount > 0

    def set_status(self, user_id: str, status: UserStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET status=%s, updated_at=CURRENT_TIMESTAMP WHERE id=%s",
                (status.value, user_id),
            )
            return cur.rowcount > 0

    def count_by_status(self, status: UserStatus) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM users WHERE status=%s", (status.value,))
            row = fetchone(cur)
            return int(row["n"]) if row else 0
