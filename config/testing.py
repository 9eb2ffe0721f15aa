import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_attendance_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False

ATTENDANCE_GRACE_PERIOD_MINUTES = 15
ATTENDANCE_LOCK_AFTER_DAYS = 7
MAX_ATTENDANCE_EDIT_HOURS = 24
ATTENDANCE_COUNT_LATE_AS_ATTENDED = True
