# backend/agriferti/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/agriferti.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///agriferti.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "sql" keeps products/customers/sales in the database,
    # "memory" keeps them in process (offline demo mode)
    STORE_BACKEND = os.environ.get("STORE_BACKEND", "sql")
    STORE_COMMIT_ATTEMPTS = int(os.environ.get("STORE_COMMIT_ATTEMPTS", "3"))
    STORE_RETRY_BACKOFF = float(os.environ.get("STORE_RETRY_BACKOFF", "0.1"))

    HEALTH_POLL_ENABLED = _env_bool("HEALTH_POLL_ENABLED", True)
    HEALTH_POLL_INTERVAL_SECONDS = float(os.environ.get("HEALTH_POLL_INTERVAL_SECONDS", "30"))

    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", str(24 * 30)))

    OTP_TTL_SECONDS = int(os.environ.get("OTP_TTL_SECONDS", "300"))
    OTP_MAX_ATTEMPTS = int(os.environ.get("OTP_MAX_ATTEMPTS", "5"))
    # Development only: echo the generated code back in the send-otp response
    OTP_ECHO_ENABLED = _env_bool("OTP_ECHO_ENABLED", False)

    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "10"))

    CORS_ORIGINS = [
        o.strip()
        for o in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if o.strip()
    ]

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
