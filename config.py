import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./test.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    APP_NAME = data.get("APP_NAME", "Account Security")
    SECRET_KEY = data.get("SECRET_KEY", "dev-secret-key-change-in-production")
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")

    # Password reset
    RESET_URL_BASE = data.get("RESET_URL_BASE", "http://localhost:3000/reset-password")
    RESET_TOKEN_TTL_MINUTES = int(data.get("RESET_TOKEN_TTL_MINUTES", 15))
    RESET_MAX_REQUESTS_PER_EMAIL = int(data.get("RESET_MAX_REQUESTS_PER_EMAIL", 3))
    RESET_MAX_REQUESTS_PER_IP = int(data.get("RESET_MAX_REQUESTS_PER_IP", 10))
    RESET_RATE_LIMIT_WINDOW_MINUTES = int(data.get("RESET_RATE_LIMIT_WINDOW_MINUTES", 60))
    RESET_STRICT_IP_BINDING = bool(data.get("RESET_STRICT_IP_BINDING", False))
    RESET_STRICT_USER_AGENT_BINDING = bool(data.get("RESET_STRICT_USER_AGENT_BINDING", False))

    # Login
    LOGIN_MAX_ATTEMPTS_PER_EMAIL = int(data.get("LOGIN_MAX_ATTEMPTS_PER_EMAIL", 10))
    LOGIN_MAX_ATTEMPTS_PER_IP = int(data.get("LOGIN_MAX_ATTEMPTS_PER_IP", 50))
    LOGIN_RATE_LIMIT_WINDOW_MINUTES = int(data.get("LOGIN_RATE_LIMIT_WINDOW_MINUTES", 15))
    RATE_LIMIT_BLOCK_MINUTES = int(data.get("RATE_LIMIT_BLOCK_MINUTES", 15))

    # Sessions
    SESSION_DEFAULT_HOURS = int(data.get("SESSION_DEFAULT_HOURS", 24))
    SESSION_REMEMBER_ME_DAYS = int(data.get("SESSION_REMEMBER_ME_DAYS", 30))
    SESSION_REFRESH_THRESHOLD = float(data.get("SESSION_REFRESH_THRESHOLD", 0.25))
    SESSION_STRICT_BINDING = bool(data.get("SESSION_STRICT_BINDING", False))

    # Two-factor
    TOTP_ISSUER = data.get("TOTP_ISSUER", "Account Security")
    TOTP_VALID_WINDOW = int(data.get("TOTP_VALID_WINDOW", 1))
    BACKUP_CODE_COUNT = int(data.get("BACKUP_CODE_COUNT", 8))
    TWO_FACTOR_CHALLENGE_TTL_MINUTES = int(data.get("TWO_FACTOR_CHALLENGE_TTL_MINUTES", 5))
    TWO_FACTOR_MAX_ATTEMPTS = int(data.get("TWO_FACTOR_MAX_ATTEMPTS", 5))

    # Passwords
    PASSWORD_MIN_LENGTH = int(data.get("PASSWORD_MIN_LENGTH", 8))
    PASSWORD_MIN_CHARACTER_CLASSES = int(data.get("PASSWORD_MIN_CHARACTER_CLASSES", 3))
    BCRYPT_ROUNDS = int(data.get("BCRYPT_ROUNDS", 12))

    # Storage
    AUDIT_RETENTION_DAYS = int(data.get("AUDIT_RETENTION_DAYS", 90))
    STORE_TIMEOUT_SECONDS = float(data.get("STORE_TIMEOUT_SECONDS", 5))
