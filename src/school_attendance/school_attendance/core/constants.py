"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MIN_PERIOD = 1
MAX_PERIOD = 8
MAX_PERIODS_PER_BULK = 8
MAX_STUDENTS_PER_PERIOD = 60
MAX_MODIFICATION_REASON = 200

MIN_GRADE = 1
MAX_GRADE = 12
MAX_RANGE_DAYS = 365

DEFAULT_GRACE_PERIOD_MINUTES = 15
MAX_GRACE_PERIOD_MINUTES = 60
DEFAULT_LOCK_AFTER_DAYS = 7
DEFAULT_MAX_EDIT_HOURS = 24

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
