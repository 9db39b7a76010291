import os

SECRET_KEY = "test-secret"
JWT_SECRET = "test-jwt-secret"
JWT_EXPIRES_DAYS = 7

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "employee_portal_test"),
}

EMAIL_BACKEND = "console"
OTP_TTL_MINUTES = 10

MAX_QUERY_DEPTH = 7
SLOW_OPERATION_MS = 1000

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
