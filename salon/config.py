"""Runtime configuration for the app (replaceable during tests/runtime)."""
import os
from typing import NamedTuple


class Settings(NamedTuple):
    database_url: str
    jwt_secret: str
    admin_jwt_secret: str
    token_ttl_seconds: int
    cookie_secure: bool
    upload_dir: str
    max_upload_bytes: int
    log_level: str


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default) in ("1", "true", "True", "yes")


def load_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./salon.db"),
        jwt_secret=os.getenv("JWT_SECRET", "dev-customer-secret-change-me-0001"),
        admin_jwt_secret=os.getenv("ADMIN_JWT_SECRET", "dev-admin-secret-change-me-000001"),
        token_ttl_seconds=int(os.getenv("TOKEN_TTL_SECONDS", str(60 * 60 * 6))),  # 6 hours
        cookie_secure=_env_flag("COOKIE_SECURE"),
        upload_dir=os.getenv("UPLOAD_DIR", "./uploads"),
        max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(8 * 1024 * 1024))),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


state = load_settings()


def get_settings() -> Settings:
    return state


def set_settings(**changes) -> Settings:
    global state
    state = state._replace(**changes)
    return state
