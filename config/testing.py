import os

SECRET_KEY = "test-secret"

JWT_SECRET = "test-jwt-secret"
JWT_EXPIRES_DAYS = 7

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "easydoor_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

PORT = 8009
DEFAULT_PAGE_LIMIT = 10

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
