"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

LATE_TOLERANCE_MINUTES = 15

DEFAULT_USER_PAGE_SIZE = 50
DEFAULT_ADMIN_PAGE_SIZE = 100
DEFAULT_NOTIFICATION_LIMIT = 50

VERIFIED_NOTE = "Verified by admin"

SHIFT_REMINDER_LEAD_MINUTES = 60
SHIFT_REMINDER_TOLERANCE_MINUTES = 15
ATTENDANCE_REMINDER_LEAD_MINUTES = 30
LATE_CHECK_HOUR = 8
DAILY_SUMMARY_HOUR = 6
