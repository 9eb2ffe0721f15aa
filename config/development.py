import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_attendance"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Apply database/schema.sql on startup (CREATE IF NOT EXISTS only)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

# Fallbacks for schools without their own attendance policy columns
ATTENDANCE_GRACE_PERIOD_MINUTES = int(os.getenv("ATTENDANCE_GRACE_PERIOD_MINUTES", "15"))
ATTENDANCE_LOCK_AFTER_DAYS = int(os.getenv("ATTENDANCE_LOCK_AFTER_DAYS", "7"))
MAX_ATTENDANCE_EDIT_HOURS = int(os.getenv("MAX_ATTENDANCE_EDIT_HOURS", "24"))
ATTENDANCE_COUNT_LATE_AS_ATTENDED = bool(int(os.getenv("ATTENDANCE_COUNT_LATE_AS_ATTENDED", "1")))
