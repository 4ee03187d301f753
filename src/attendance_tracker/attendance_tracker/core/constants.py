"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

PERIODS = (1, 2, 3, 4, 5, 6)
FIRST_PERIOD = PERIODS[0]
LAST_PERIOD = PERIODS[-1]

GOOD_ATTENDANCE_ABOVE = 90
WARNING_ATTENDANCE_ABOVE = 75

MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 50
MAX_ABBREVIATION_LENGTH = 5

DEFAULT_ACCESS_TOKEN_MINUTES = 60
DEFAULT_RESET_TOKEN_MINUTES = 30
DEFAULT_EXPORT_TIMEOUT_SECONDS = 10
