import logging
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    admin_user: str
    admin_pass: str
    frontend_url: str

    rate_limit_per_minute: int
    log_level: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _getenv_log_level(name: str, default: str = "INFO") -> str:
    level = _getenv(name, default).upper()
    return level if level in logging.getLevelNamesMapping() else default


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///regdesk.db"),
        admin_user=_getenv("ADMIN_USER"),
        # passwords keep surrounding whitespace
        admin_pass=os.environ.get("ADMIN_PASS") or "",
        frontend_url=_getenv("FRONTEND_URL"),
        rate_limit_per_minute=_getenv_int("RATE_LIMIT_PER_MINUTE", 60),
        log_level=_getenv_log_level("LOG_LEVEL"),
    )


def is_production(env: str | None) -> bool:
    return (env or "").strip().lower() in ("prod", "production")


def load_config() -> dict:
    s = load_settings()
    production = is_production(s.env)
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "ADMIN_USER": s.admin_user,
        "ADMIN_PASS": s.admin_pass,
        "FRONTEND_URL": s.frontend_url,
        "RATE_LIMIT_PER_MINUTE": s.rate_limit_per_minute,
        "LOG_LEVEL": s.log_level,
        # security defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Strict",
        "SESSION_COOKIE_SECURE": production,  # Require HTTPS in production
        # request bodies are small JSON documents (10KB)
        "MAX_CONTENT_LENGTH": 10 * 1024,
    }
