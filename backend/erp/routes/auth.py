# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

SECURITY FEATURES:
- Password policy on registration
- Per-email login throttle: 5 failures in 15 minutes lock the email for 10 minutes
- Generic "Invalid credentials" for unknown email and wrong password alike
- Signed, time-limited session token (Bearer header or HttpOnly cookie)
"""

import logging

from flask import Blueprint, request, current_app, g

from ..services import auth_service, session_service, login_throttle_service
from ..permissions import can_access_route, serialize_permissions
from ..responses import api_ok, api_error
from ..decorators import require_auth


logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _locked_response(email: str):
    seconds = login_throttle_service.lockout_remaining(email)
    return api_error(
        "Too many failed login attempts. Try again later.",
        429,
        locked=True,
        retry_after_seconds=seconds,
    )


def _non_string_field(data: dict, *names: str) -> str | None:
    """Name of the first supplied field whose value is not a string."""
    for name in names:
        value = data.get(name)
        if value is not None and not isinstance(value, str):
            return name
    return None


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and issue a session token.

    429 while the email is locked, even with correct credentials. Each bad
    attempt counts toward the lock; the attempt that reaches the limit
    already answers 429.
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return api_error("Request body must be a JSON object", 400)
    bad_field = _non_string_field(data, "email", "password")
    if bad_field:
        return api_error(f"{bad_field} must be a string", 400)

    email = auth_service.normalize_email(data.get("email"))
    password = data.get("password") or ""

    if not email or not password:
        return api_error("Email and password are required", 400)

    try:
        if login_throttle_service.is_locked(email):
            return _locked_response(email)

        user = auth_service.authenticate(email, password)

        if not user:
            failures = login_throttle_service.record_failure(email)
            logger.info("Login failed for %s (%d)", email, failures)
            if login_throttle_service.is_locked(email):
                return _locked_response(email)
            return api_error("Invalid credentials", 401)

        login_throttle_service.reset_failures(email)
        token = session_service.issue_token(user)
        context = session_service.load_token(token)
        logger.info("Login succeeded for %s", email)

        response, status = api_ok({
            "token": token,
            "user": context.to_dict(),
            "permissions": serialize_permissions(context.permissions),
            "expires_in": session_service.max_age_seconds(),
        })
        response.set_cookie(
            current_app.config["SESSION_COOKIE_NAME"],
            token,
            max_age=session_service.max_age_seconds(),
            httponly=True,
            samesite="Lax",
            secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        )
        return response, status

    except Exception:
        current_app.logger.exception("Failed to login user")
        return api_error("Internal server error", 500)


@auth_bp.post("/register")
def register_route():
    """Self-registration into the default signup role."""
    if not current_app.config.get("ALLOW_SELF_REGISTRATION", True):
        return api_error("Self-registration is disabled. Contact an administrator.", 403)

    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return api_error("Request body must be a JSON object", 400)
    bad_field = _non_string_field(data, "email", "password", "fullName", "full_name")
    if bad_field:
        return api_error(f"{bad_field} must be a string", 400)

    email = data.get("email")
    password = data.get("password")
    full_name = data.get("fullName") or data.get("full_name")

    if not email or not password or not full_name:
        return api_error("Email, password, and full name are required", 400)

    user = auth_service.register_user(email=email, password=password, full_name=full_name)
    return api_ok(user.to_dict(), 201)


@auth_bp.post("/logout")
def logout_route():
    """Stateless tokens: logout clears the cookie; clients drop their bearer token."""
    response, status = api_ok({"message": "Logged out"})
    response.delete_cookie(current_app.config["SESSION_COOKIE_NAME"])
    return response, status


@auth_bp.get("/me")
@require_auth
def me_route():
    return api_ok(g.current_user_context.to_dict())


@auth_bp.get("/can-access")
@require_auth
def can_access_route_view():
    """Navigation filter: may the current session open ?path=..."""
    path = request.args.get("path", "")
    if not path:
        return api_error("path is required", 400)
    allowed = can_access_route(g.current_user_context.permissions, path)
    return api_ok({"path": path, "allowed": allowed})


@auth_bp.get("/lockout-status")
def lockout_status_route():
    email = request.args.get("email", "")
    if not email:
        return api_error("email is required", 400)
    return api_ok(login_throttle_service.get_lockout_status(email))
