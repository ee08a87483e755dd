# backend/kouriten/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str) -> list[str]:
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/kouriten.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///kouriten.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    CORS_ORIGINS = _env_list(
        "CORS_ORIGINS",
        "https://kouritensg.github.io,http://localhost:5173,http://127.0.0.1:5173",
    )

    # Stock and receiving policy
    ALLOW_NEGATIVE_STOCK = _env_bool("ALLOW_NEGATIVE_STOCK", False)
    ALLOW_OVER_RECEIVE = _env_bool("ALLOW_OVER_RECEIVE", False)

    # sequence | timestamp | random
    PO_NUMBER_STRATEGY = os.environ.get("PO_NUMBER_STRATEGY", "sequence")

    # Datastore keep-alive ping; 0 disables the background thread
    KEEPALIVE_INTERVAL_SECONDS = int(os.environ.get("KEEPALIVE_INTERVAL_SECONDS", "300"))

    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "12"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    KEEPALIVE_INTERVAL_SECONDS = 0
    ALLOW_NEGATIVE_STOCK = False
    ALLOW_OVER_RECEIVE = False
    PO_NUMBER_STRATEGY = "sequence"
