from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path
from typing import Iterable

from werkzeug.security import generate_password_hash

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

DEMO_ADMIN_EMAIL = "admin@example.com"
DEMO_ADMIN_PASSWORD = "admin123"


def _strip_create_db_and_use(sql: str) -> str:
    # Schema files stay usable whatever the configured database name is.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_line_comments(sql: str) -> str:
    return "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a SQL script on ';' outside quoted strings."""
    buf: list[str] = []
    quote: str | None = None
    escape = False

    for ch in sql:
        buf.append(ch)
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_script(conn_factory: DatabaseConnection, path: Path) -> None:
    sql = _strip_line_comments(_strip_create_db_and_use(path.read_text(encoding="utf-8")))
    conn = conn_factory.connect()
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


def ensure_database_exists(config: DBConfig) -> None:
    conn = DatabaseConnection(config).connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(config: DBConfig, *, schema_path: str | Path) -> None:
    ensure_database_exists(config)
    _run_script(DatabaseConnection(config), Path(schema_path))
    logger.info("schema applied from %s", schema_path)


def apply_seed_sql(config: DBConfig, *, seed_path: str | Path) -> None:
    _run_script(DatabaseConnection(config), Path(seed_path))
    logger.info("seed applied from %s", seed_path)


def ensure_demo_admin(config: DBConfig) -> bool:
    """Create the demo admin when missing so a fresh install can log in.

    An existing account is left untouched (its password may have been changed).
    Returns True when the account was inserted.
    """
    conn = DatabaseConnection(config).connect()
    try:
        cur = conn.cursor(dictionary=True)
        cur.execute("SELECT id FROM users WHERE email=%s", (DEMO_ADMIN_EMAIL,))
        if cur.fetchone():
            return False

        cur.execute(
            """
            INSERT INTO users (id, name, email, password_hash, role, status, abbreviation)
            VALUES (%s, %s, %s, %s, 'admin', 'active', %s)
            """,
            (str(uuid.uuid4()), "Admin Demo", DEMO_ADMIN_EMAIL, generate_password_hash(DEMO_ADMIN_PASSWORD), "ADM"),
        )
        conn.commit()
        logger.info("demo admin %s created", DEMO_ADMIN_EMAIL)
        return True
    finally:
        conn.close()


def list_tables(config: DBConfig) -> list[str]:
    conn = DatabaseConnection(config).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
