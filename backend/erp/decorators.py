# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import request, g, current_app

from .responses import api_error
from .services import session_service


def get_request_token() -> str | None:
    """Bearer token from the Authorization header, else the session cookie."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    cookie_name = current_app.config.get("SESSION_COOKIE_NAME", "erp_session")
    return request.cookies.get(cookie_name) or None


def require_auth(f):
    """
    Require a valid session token.

    Sets g.current_user_context (SessionContext) for the request.

    SECURITY: Returns 401 if the token is missing, tampered with or older
    than SESSION_MAX_AGE_SECONDS. Permissions come from the token snapshot,
    not from the database.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = get_request_token()
        if not token:
            return api_error("Authentication required", 401)

        context = session_service.load_token(token)
        if not context:
            return api_error("Invalid or expired session", 401)

        g.current_user_context = context
        return f(*args, **kwargs)

    return decorated_function


def require_permission(module: str, action: str):
    """
    Require an exact (module, action) grant in the session snapshot.

    Must be stacked below @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            context = getattr(g, "current_user_context", None)
            if context is None:
                return api_error("Authentication required", 401)

            if not context.has_permission(module, action):
                current_app.logger.info(
                    "Permission denied: user=%s needs %s:%s on %s",
                    context.user_id, module, action, request.path,
                )
                return api_error("Unauthorized - insufficient permissions", 403)

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def current_user_id() -> int | None:
    context = getattr(g, "current_user_context", None)
    return context.user_id if context else None
