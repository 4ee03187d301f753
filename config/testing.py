from config.config import *  # noqa: F401,F403
from config.config import db_config_from_env

SECRET_KEY = "test-secret"

DB_CONFIG = db_config_from_env(default_database="attendance_tracker_test")

DEBUG = False
TESTING = True

# Tests never touch a real database on startup.
AUTO_INIT_DB = False
AUTO_SEED_DB = False

STUDENT_REPORT_PASSWORD = "student-pass"
GOOGLE_SHEETS_WEB_APP_URL = ""
