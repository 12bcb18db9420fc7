# Overview: Service-layer operations for auth; password policy, hashing and user accounts.

"""
Authentication Service

WHY: Every action must be attributable to a user. Passwords are hashed with
bcrypt and checked against a policy wherever a password is set: self
registration, admin user creation, admin password reset and admin bootstrap.

SECURITY NOTES:
- Emails are stored and compared lower-cased.
- authenticate() returns None for unknown email, wrong password and inactive
  users alike; callers must not distinguish the three.
- Hash cost comes from BCRYPT_COST, clamped to [10, 14].
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass

import bcrypt
from flask import current_app, has_app_context

from ..extensions import db
from ..models import User, Role
from ..permissions import DEFAULT_SIGNUP_ROLE
from ..validation import ValidationError, ConflictError, NotFoundError
from erp.time_utils import utcnow


logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
DEFAULT_BCRYPT_COST = 12
MIN_BCRYPT_COST = 10
MAX_BCRYPT_COST = 14

# Compared case-insensitively
BANNED_PASSWORDS = frozenset({
    "admin123",
    "manager123",
    "user123",
    "password",
    "123456",
    "welcome",
    "welco2026",
    "p@ssw0rd",
    "passw0rd!",
    "admin@123",
    "welcome@123",
    "qwerty@123",
})

USER_STATUSES = {"active", "inactive"}


class PasswordValidationError(Exception):
    """Raised when a password doesn't meet the policy."""
    pass


@dataclass(frozen=True)
class PasswordPolicyResult:
    valid: bool
    message: str | None = None


def validate_password_strength(password: str) -> PasswordPolicyResult:
    """
    Check a candidate password against the policy.

    Rules are evaluated in order and the first failure wins:
    - at least 8 characters
    - an uppercase letter, a lowercase letter, a digit
    - a symbol (any non-alphanumeric character)
    - not in BANNED_PASSWORDS
    """
    if password is not None and not isinstance(password, str):
        return PasswordPolicyResult(False, "Password must be a string")
    password = password or ""
    if len(password) < MIN_PASSWORD_LENGTH:
        return PasswordPolicyResult(False, "Password must be at least 8 characters")
    if not re.search(r"[A-Z]", password):
        return PasswordPolicyResult(False, "Password must include an uppercase letter")
    if not re.search(r"[a-z]", password):
        return PasswordPolicyResult(False, "Password must include a lowercase letter")
    if not re.search(r"[0-9]", password):
        return PasswordPolicyResult(False, "Password must include a number")
    if not re.search(r"[^A-Za-z0-9]", password):
        return PasswordPolicyResult(False, "Password must include a symbol")
    if password.lower() in BANNED_PASSWORDS:
        return PasswordPolicyResult(False, "Password is too common")
    return PasswordPolicyResult(True)


def enforce_password_policy(password: str) -> None:
    result = validate_password_strength(password)
    if not result.valid:
        raise PasswordValidationError(result.message)


def get_bcrypt_cost() -> int:
    """BCRYPT_COST from app config (or env outside an app); non-numeric -> 12; clamped to [10, 14]."""
    if has_app_context():
        raw = current_app.config.get("BCRYPT_COST", DEFAULT_BCRYPT_COST)
    else:
        raw = os.environ.get("BCRYPT_COST", DEFAULT_BCRYPT_COST)
    try:
        cost = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_BCRYPT_COST
    return min(max(cost, MIN_BCRYPT_COST), MAX_BCRYPT_COST)


def hash_password(password: str) -> str:
    """
    Validate then hash a password with bcrypt.

    Raises PasswordValidationError if the policy rejects it.
    """
    enforce_password_policy(password)
    salt = bcrypt.gensalt(rounds=get_bcrypt_cost())
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check. Malformed hashes never match."""
    if not isinstance(password, str) or not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def normalize_email(email: str | None) -> str:
    if email is not None and not isinstance(email, str):
        raise ValidationError("Email must be a string")
    return (email or "").strip().lower()


def authenticate(email: str, password: str) -> User | None:
    """
    Verify credentials and stamp last_login_at.

    Returns None for unknown email, wrong password, or inactive account.
    """
    normalized = normalize_email(email)
    if not normalized or not password:
        return None

    user = db.session.query(User).filter_by(email=normalized).first()
    if not user or not user.is_active:
        return None

    if not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def _resolve_role_id(role_id: int | None, role_name: str | None) -> int | None:
    if role_id is not None:
        if not db.session.get(Role, role_id):
            raise ValidationError("Role not found")
        return role_id
    if role_name:
        role = db.session.query(Role).filter_by(name=role_name).first()
        if not role:
            raise ValidationError(f"Role {role_name} not found")
        return role.id
    return None


def create_user(
    *,
    email: str,
    password: str,
    full_name: str,
    role_id: int | None = None,
    role_name: str | None = None,
    department_id: int | None = None,
    phone: str | None = None,
    status: str = "active",
) -> User:
    """
    Create a user with a policy-checked bcrypt hash.

    Raises:
        ValidationError: missing fields, unknown role, bad status
        ConflictError: email already registered
        PasswordValidationError: password rejected by policy
    """
    normalized = normalize_email(email)
    if full_name is not None and not isinstance(full_name, str):
        raise ValidationError("Full name must be a string")
    full_name = (full_name or "").strip()
    if not normalized or not full_name:
        raise ValidationError("Email, password, and full name are required")
    if status not in USER_STATUSES:
        raise ValidationError(f"Invalid status: {status}")

    if db.session.query(User).filter_by(email=normalized).first():
        raise ConflictError("Email is already registered")

    password_hash = hash_password(password)

    user = User(
        email=normalized,
        password_hash=password_hash,
        full_name=full_name,
        phone=phone or None,
        status=status,
        role_id=_resolve_role_id(role_id, role_name),
        department_id=department_id or None,
    )
    db.session.add(user)
    db.session.commit()

    logger.info("User created: %s (role_id=%s)", user.email, user.role_id)
    return user


def register_user(*, email: str, password: str, full_name: str) -> User:
    """
    Self-registration. The new account gets the default signup role, which
    is created with its default permissions if it does not exist yet.
    """
    from . import permission_service

    role = permission_service.ensure_role(DEFAULT_SIGNUP_ROLE)
    return create_user(email=email, password=password, full_name=full_name, role_id=role.id)


def update_user(user_id: int, patch: dict) -> User:
    """
    Apply an admin edit. A non-empty "password" resets the hash (policy-checked).
    """
    user = get_user(user_id)

    if "email" in patch and patch["email"] is not None:
        normalized = normalize_email(patch["email"])
        if not normalized:
            raise ValidationError("Email cannot be blank")
        if normalized != user.email:
            taken = db.session.query(User).filter_by(email=normalized).first()
            if taken:
                raise ConflictError("Email is already in use")
            user.email = normalized

    if "full_name" in patch and patch["full_name"] is not None:
        full_name = str(patch["full_name"]).strip()
        if not full_name:
            raise ValidationError("Full name cannot be blank")
        user.full_name = full_name

    if "phone" in patch:
        user.phone = patch["phone"] or None

    if "status" in patch and patch["status"] is not None:
        if patch["status"] not in USER_STATUSES:
            raise ValidationError(f"Invalid status: {patch['status']}")
        user.status = patch["status"]

    if "role_id" in patch:
        user.role_id = _resolve_role_id(patch["role_id"], None)

    if "department_id" in patch:
        user.department_id = patch["department_id"] or None

    if patch.get("password"):
        user.password_hash = hash_password(patch["password"])
        logger.info("Password reset for user %s", user.email)

    db.session.commit()
    return user


def delete_user(user_id: int, *, acting_user_id: int | None) -> None:
    """Hard delete. An admin cannot delete their own account."""
    if acting_user_id is not None and user_id == acting_user_id:
        raise ValidationError("You cannot delete your own account")
    user = get_user(user_id)
    db.session.delete(user)
    db.session.commit()
    logger.info("User deleted: %s", user.email)


def bootstrap_admin(
    *,
    email: str,
    password: str,
    full_name: str = "System Admin",
    allow_reset: bool = False,
    force: bool = False,
) -> tuple[User | None, str]:
    """
    Create or update the initial Admin account.

    Returns (user, outcome) where outcome is one of:
    - "created": new admin user
    - "updated": existing user's password/name/role reset (needs allow_reset
      when any admin exists)
    - "skipped_exists": an admin exists and allow_reset is off
    - "skipped_other_admin": a different admin exists and force is off
    """
    from . import permission_service

    normalized = normalize_email(email)
    if not normalized or not password:
        raise ValidationError("ADMIN_BOOTSTRAP_EMAIL and ADMIN_BOOTSTRAP_PASSWORD are required")

    enforce_password_policy(password)

    existing_admin = (
        db.session.query(User)
        .join(Role, Role.id == User.role_id)
        .filter(Role.name == "Admin")
        .order_by(User.id.asc())
        .first()
    )

    if existing_admin and not allow_reset:
        return existing_admin, "skipped_exists"
    if existing_admin and existing_admin.email != normalized and not force:
        return existing_admin, "skipped_other_admin"

    admin_role = permission_service.ensure_role("Admin")
    password_hash = hash_password(password)

    user = db.session.query(User).filter_by(email=normalized).first()
    if user:
        user.password_hash = password_hash
        user.full_name = full_name
        user.role_id = admin_role.id
        user.status = "active"
        outcome = "updated"
    else:
        user = User(
            email=normalized,
            password_hash=password_hash,
            full_name=full_name,
            role_id=admin_role.id,
            status="active",
        )
        db.session.add(user)
        outcome = "created"

    db.session.commit()
    logger.info("Admin bootstrap %s: %s", outcome, normalized)
    return user, outcome
