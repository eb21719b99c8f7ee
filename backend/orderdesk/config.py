# backend/orderdesk/config.py
from __future__ import annotations
import os


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/orderdesk.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///orderdesk.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Session tokens
    SESSION_TTL_MINUTES = _int_env("SESSION_TTL_MINUTES", 24 * 60)
    SESSION_IDLE_MINUTES = _int_env("SESSION_IDLE_MINUTES", 120)

    # Uploaded revisions and rendered documents
    STORAGE_PATH = os.environ.get("STORAGE_PATH", "./files")
    FILES_URL_PREFIX = os.environ.get("FILES_URL_PREFIX", "/files/")

    # Deadline for a single payment-creation transaction
    PAYMENT_TIMEOUT_SECONDS = _int_env("PAYMENT_TIMEOUT_SECONDS", 10)

    # bcrypt cost factor (tests lower it)
    BCRYPT_ROUNDS = _int_env("BCRYPT_ROUNDS", 12)

    # Seeded by `flask system init`
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@example.com")
    ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "ChangeMe123!")
    ADMIN_ROLE = os.environ.get("ADMIN_ROLE", "admin")


def config_summary(config) -> dict:
    """Sanitized configuration snapshot for startup logs (no secrets)."""
    return {
        "database": config.get("SQLALCHEMY_DATABASE_URI"),
        "log_level": config.get("LOG_LEVEL"),
        "session_ttl_minutes": config.get("SESSION_TTL_MINUTES"),
        "session_idle_minutes": config.get("SESSION_IDLE_MINUTES"),
        "storage_path": config.get("STORAGE_PATH"),
        "files_url_prefix": config.get("FILES_URL_PREFIX"),
        "payment_timeout_seconds": config.get("PAYMENT_TIMEOUT_SECONDS"),
        "admin_email": config.get("ADMIN_EMAIL"),
        "admin_role": config.get("ADMIN_ROLE"),
    }
