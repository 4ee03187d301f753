from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.attendance_tracker.attendance_tracker.database.bootstrap import (
    DEMO_ADMIN_EMAIL,
    apply_seed_sql,
    ensure_demo_admin,
)
from src.attendance_tracker.attendance_tracker.database.connection import DBConfig


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    config = DBConfig.from_mapping(settings.DB_CONFIG)

    apply_seed_sql(config, seed_path=REPO_ROOT / "database" / "seed.sql")
    created = ensure_demo_admin(config)

    admin_note = "created" if created else "already present, left unchanged"
    print(f"OK: Seeded semesters; demo admin {DEMO_ADMIN_EMAIL} {admin_note} -> {config.host}:{config.port}/{config.database}")


if __name__ == "__main__":
    main()
