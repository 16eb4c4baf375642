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
    STORE_BACKEND = data.get("STORE_BACKEND", "sql")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    JWT_ALGORITHM = data.get("JWT_ALGORITHM", "HS256")

    # Session lifecycle (all durations in seconds)
    ACCESS_TOKEN_TTL_SECONDS = int(data.get("ACCESS_TOKEN_TTL_SECONDS", 900))
    REFRESH_TOKEN_TTL_SECONDS = int(data.get("REFRESH_TOKEN_TTL_SECONDS", 604800))
    REFRESH_LEASE_TTL_SECONDS = int(data.get("REFRESH_LEASE_TTL_SECONDS", 10))
    REFRESH_TOKEN_SLIDING = bool(data.get("REFRESH_TOKEN_SLIDING", True))
    SESSION_MAX_AGE_SECONDS = data.get("SESSION_MAX_AGE_SECONDS")
    SWEEP_INTERVAL_SECONDS = int(data.get("SWEEP_INTERVAL_SECONDS", 300))
    SWEEP_GRACE_SECONDS = int(data.get("SWEEP_GRACE_SECONDS", 0))
    SWEEPER_ENABLED = bool(data.get("SWEEPER_ENABLED", True))
