# backend/erp/routes/system.py
"""
System health endpoint.

Checks database connectivity and that the default roles exist, for
load balancers and deployment debugging. No authentication required.
"""

import time

from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import User, Role, Permission, Item, Location
from ..permissions import DEFAULT_ROLE_PERMISSIONS
from erp.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def _elapsed_ms(start: float) -> float:
    return round((time.time() - start) * 1000, 2)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        details = {
            "users": db.session.query(User).count(),
            "items": db.session.query(Item).count(),
            "locations": db.session.query(Location).count(),
        }
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Database health check failed")
        return {"status": "unhealthy", "latency_ms": _elapsed_ms(start_time), "error": "Database error"}

    return {"status": "healthy", "latency_ms": _elapsed_ms(start_time), "details": details}


def check_auth_health() -> dict:
    """Degraded (still 200) when a default role or the permission grants are missing."""
    start_time = time.time()
    try:
        existing = {name for (name,) in db.session.query(Role.name).all()}
        permission_count = db.session.query(Permission).count()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Auth health check failed")
        return {"status": "unhealthy", "latency_ms": _elapsed_ms(start_time), "error": "Auth service error"}

    missing = sorted(set(DEFAULT_ROLE_PERMISSIONS) - existing)
    result = {
        "status": "degraded" if missing or not permission_count else "healthy",
        "latency_ms": _elapsed_ms(start_time),
        "details": {"permission_count": permission_count},
    }
    if missing:
        result["warning"] = f"Missing roles: {', '.join(missing)}"
    return result


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded
    - 503: a check is unhealthy
    """
    start_time = time.time()
    checks = {
        "database": check_database_health(),
        "auth_service": check_auth_health(),
    }
    statuses = {check["status"] for check in checks.values()}

    if "unhealthy" in statuses:
        overall, http_status = "unhealthy", 503
    elif "degraded" in statuses:
        overall, http_status = "degraded", 200
    else:
        overall, http_status = "healthy", 200

    return {
        "status": overall,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": _elapsed_ms(start_time),
        "checks": checks,
    }, http_status
