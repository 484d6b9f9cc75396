"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DAYS_PER_WEEK = 7
DEFAULT_WEEKLY_REQUIRED_HOURS = 40
DEFAULT_ANNUAL_VACATION_DAYS = 20
DEFAULT_VACATION_DAYS_PER_REQUEST = 1
WEEKS_PER_PAYROLL_MONTH = 4
DEFAULT_LOCK_TIMEOUT_SECONDS = 10
DEFAULT_LIST_LIMIT = 500
