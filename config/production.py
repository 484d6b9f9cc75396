import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "shift_roster"),
}

DEBUG = False

STORAGE = os.getenv("STORAGE", "mysql")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOCK_TIMEOUT_SECONDS = int(os.getenv("LOCK_TIMEOUT_SECONDS", "10"))

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
