import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_attendance"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

ATTENDANCE_GRACE_PERIOD_MINUTES = int(os.getenv("ATTENDANCE_GRACE_PERIOD_MINUTES", "15"))
ATTENDANCE_LOCK_AFTER_DAYS = int(os.getenv("ATTENDANCE_LOCK_AFTER_DAYS", "7"))
MAX_ATTENDANCE_EDIT_HOURS = int(os.getenv("MAX_ATTENDANCE_EDIT_HOURS", "24"))
ATTENDANCE_COUNT_LATE_AS_ATTENDED = bool(int(os.getenv("ATTENDANCE_COUNT_LATE_AS_ATTENDED", "1")))
