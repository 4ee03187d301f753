"""Settings shared by every environment, read from the process environment."""

import os


def env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def db_config_from_env(*, default_password: str = "", default_database: str = "attendance_tracker") -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", default_password),
        "database": os.getenv("DB_NAME", default_database),
    }


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Shared password for the public student report page; blank disables the page.
STUDENT_REPORT_PASSWORD = os.getenv("STUDENT_REPORT_PASSWORD", "")

GOOGLE_SHEETS_WEB_APP_URL = os.getenv("GOOGLE_SHEETS_WEB_APP_URL", "")
EXPORT_TIMEOUT_SECONDS = float(os.getenv("EXPORT_TIMEOUT_SECONDS", "10"))

ACCESS_TOKEN_TTL_MINUTES = int(os.getenv("ACCESS_TOKEN_TTL_MINUTES", "60"))
PASSWORD_RESET_TTL_MINUTES = int(os.getenv("PASSWORD_RESET_TTL_MINUTES", "30"))
