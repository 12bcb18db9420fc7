# backend/erp/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Signs session tokens; override in every real deployment
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///erp.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Adaptive hash cost, clamped to [10, 14] by auth_service.get_bcrypt_cost()
    BCRYPT_COST = os.environ.get("BCRYPT_COST", "12")

    SESSION_COOKIE_NAME = os.environ.get("SESSION_COOKIE_NAME", "erp_session")
    SESSION_MAX_AGE_SECONDS = int(os.environ.get("SESSION_MAX_AGE_SECONDS", str(8 * 60 * 60)))

    # "memory" keeps lockout state per process; "database" shares it across instances
    LOGIN_THROTTLE_BACKEND = os.environ.get("LOGIN_THROTTLE_BACKEND", "memory")

    # "last" overwrites item cost with the latest receipt; "weighted_average" blends it
    COSTING_METHOD = os.environ.get("COSTING_METHOD", "last")

    ALLOW_SELF_REGISTRATION = _env_flag("ALLOW_SELF_REGISTRATION", True)
    SEED_DEMO_DATA = _env_flag("SEED_DEMO_DATA", False)

    ADMIN_BOOTSTRAP_EMAIL = os.environ.get("ADMIN_BOOTSTRAP_EMAIL")
    ADMIN_BOOTSTRAP_PASSWORD = os.environ.get("ADMIN_BOOTSTRAP_PASSWORD")
    ADMIN_BOOTSTRAP_NAME = os.environ.get("ADMIN_BOOTSTRAP_NAME", "System Admin")
    ADMIN_BOOTSTRAP_ALLOW_RESET = _env_flag("ADMIN_BOOTSTRAP_ALLOW_RESET", False)
    ADMIN_BOOTSTRAP_FORCE = _env_flag("ADMIN_BOOTSTRAP_FORCE", False)

    # Browser origins allowed to call the API with credentials
    CORS_ALLOWED_ORIGINS = tuple(
        origin.strip()
        for origin in os.environ.get("CORS_ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
        if origin.strip()
    )
