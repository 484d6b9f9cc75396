import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "shift_roster_test"),
}

DEBUG = False
TESTING = True

STORAGE = os.getenv("STORAGE", "memory")
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")
LOCK_TIMEOUT_SECONDS = 2

AUTO_INIT_DB = False
