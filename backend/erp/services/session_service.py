# Overview: Service-layer operations for session; signs and verifies stateless session tokens.

"""
Session Token Service

A session is a signed, timestamped token (itsdangerous) carrying a snapshot
of the user at login time: id, email, name, role and the role's flattened
permissions. Nothing is stored server-side.

SECURITY FEATURES:
- HMAC signature keyed by SECRET_KEY; tampered tokens are rejected
- Absolute lifetime of SESSION_MAX_AGE_SECONDS (8 hours by default)
- Permissions are NOT re-read per request; role changes take effect at the
  next login
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..models import User
from ..permissions import has_permission, normalize_permissions, serialize_permissions


TOKEN_SALT = "erp-session"
DEFAULT_MAX_AGE_SECONDS = 8 * 60 * 60


@dataclass
class SessionContext:
    """Decoded session snapshot attached to g for the duration of a request."""
    user_id: int
    email: str
    name: str
    role: str | None
    role_id: int | None
    permissions: list[tuple[str, str]] = field(default_factory=list)
    issued_at: datetime | None = None

    def has_permission(self, module: str, action: str) -> bool:
        return has_permission(self.permissions, module, action)

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "roleId": self.role_id,
            "permissions": serialize_permissions(self.permissions),
        }


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def max_age_seconds() -> int:
    return int(current_app.config.get("SESSION_MAX_AGE_SECONDS", DEFAULT_MAX_AGE_SECONDS))


def build_claims(user: User) -> dict:
    """Snapshot of the user and their role's permissions at issue time."""
    role = user.role
    return {
        "uid": user.id,
        "email": user.email,
        "name": user.full_name,
        "role": role.name if role else None,
        "role_id": role.id if role else None,
        "permissions": serialize_permissions(role.permission_pairs() if role else []),
    }


def issue_token(user: User) -> str:
    return _serializer().dumps(build_claims(user))


def load_token(token: str | None) -> SessionContext | None:
    """
    Verify signature and age. Returns None for missing, tampered, expired or
    malformed tokens.
    """
    if not token:
        return None
    try:
        claims, issued_at = _serializer().loads(
            token, max_age=max_age_seconds(), return_timestamp=True
        )
    except SignatureExpired:
        return None
    except BadSignature:
        return None

    if not isinstance(claims, dict) or "uid" not in claims:
        return None

    return SessionContext(
        user_id=claims["uid"],
        email=claims.get("email"),
        name=claims.get("name"),
        role=claims.get("role"),
        role_id=claims.get("role_id"),
        permissions=normalize_permissions(claims.get("permissions")),
        issued_at=issued_at.replace(tzinfo=None) if issued_at else None,
    )
