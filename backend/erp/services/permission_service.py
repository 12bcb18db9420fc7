# Overview: Service-layer operations for roles and their (module, action) grants.

"""
Role Administration

WHY: The permission matrix lives in the permissions table so an
administrator can grant or revoke a (module, action) on a role without a
deploy. The default matrix for Admin / Manager / User is seeded idempotently.

DESIGN PRINCIPLES:
- Fail closed: a role has exactly the pairs stored for it
- Idempotent seeding: re-running init never duplicates rows
- Referential safety: a role in use cannot be deleted
"""

from __future__ import annotations

import logging

from sqlalchemy import func

from ..extensions import db
from ..models import Role, Permission, User
from ..permissions import (
    DEFAULT_ROLE_PERMISSIONS,
    DEFAULT_ROLE_DESCRIPTIONS,
    validate_permission,
)
from ..validation import ValidationError, ConflictError, NotFoundError


logger = logging.getLogger(__name__)


def _grant_defaults(role: Role) -> int:
    existing = set(role.permission_pairs())
    added = 0
    for module, action in DEFAULT_ROLE_PERMISSIONS.get(role.name, []):
        if (module, action) in existing:
            continue
        role.permissions.append(Permission(module=module, action=action))
        existing.add((module, action))
        added += 1
    return added


def ensure_role(name: str) -> Role:
    """
    Get a role by name, creating it (with its default permissions) if missing.

    Existing roles are returned untouched.
    """
    role = db.session.query(Role).filter_by(name=name).first()
    if role:
        return role
    role = Role(name=name, description=DEFAULT_ROLE_DESCRIPTIONS.get(name))
    db.session.add(role)
    _grant_defaults(role)
    db.session.commit()
    logger.info("Role created: %s", name)
    return role


def initialize_default_roles() -> dict:
    """
    Create Admin, Manager and User with their default permission rows.

    Safe to run repeatedly: missing roles and missing pairs are added, extra
    grants made by an administrator are kept.
    """
    roles_created = 0
    permissions_added = 0

    for name in DEFAULT_ROLE_PERMISSIONS:
        role = db.session.query(Role).filter_by(name=name).first()
        if not role:
            role = Role(name=name, description=DEFAULT_ROLE_DESCRIPTIONS.get(name))
            db.session.add(role)
            roles_created += 1
        permissions_added += _grant_defaults(role)

    db.session.commit()
    return {"roles_created": roles_created, "permissions_added": permissions_added}


def get_role(role_id: int) -> Role:
    role = db.session.get(Role, role_id)
    if not role:
        raise NotFoundError("Role not found")
    return role


def get_role_by_name(name: str) -> Role:
    role = db.session.query(Role).filter_by(name=name).first()
    if not role:
        raise NotFoundError(f"Role {name} not found")
    return role


def list_roles() -> list[dict]:
    """Roles with their permissions and the number of users holding them."""
    counts = dict(
        db.session.query(User.role_id, func.count(User.id))
        .filter(User.role_id.isnot(None))
        .group_by(User.role_id)
        .all()
    )
    roles = db.session.query(Role).order_by(Role.name.asc()).all()
    results = []
    for role in roles:
        data = role.to_dict(include_permissions=True)
        data["user_count"] = counts.get(role.id, 0)
        results.append(data)
    return results


def create_role(*, name: str, description: str | None = None, permissions=None) -> Role:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Role name is required")
    if db.session.query(Role).filter_by(name=name).first():
        raise ConflictError("Role already exists")

    role = Role(name=name, description=description)
    seen = set()
    for entry in permissions or []:
        module, action = (entry.get("module"), entry.get("action")) if isinstance(entry, dict) else entry
        validate_permission(module, action)
        if (module, action) in seen:
            continue
        seen.add((module, action))
        role.permissions.append(Permission(module=module, action=action))

    db.session.add(role)
    db.session.commit()
    logger.info("Role created: %s with %d permissions", name, len(seen))
    return role


def grant_permission(role: Role, module: str, action: str) -> bool:
    """Returns False when the role already holds the pair."""
    validate_permission(module, action)
    if (module, action) in set(role.permission_pairs()):
        return False
    role.permissions.append(Permission(module=module, action=action))
    db.session.commit()
    logger.info("Granted %s:%s to role %s", module, action, role.name)
    return True


def revoke_permission(role: Role, module: str, action: str) -> bool:
    """Returns False when the role did not hold the pair."""
    validate_permission(module, action)
    for perm in list(role.permissions):
        if perm.module == module and perm.action == action:
            role.permissions.remove(perm)
            db.session.commit()
            logger.info("Revoked %s:%s from role %s", module, action, role.name)
            return True
    return False


def delete_role(role_id: int) -> None:
    role = get_role(role_id)
    in_use = db.session.query(User).filter_by(role_id=role.id).count()
    if in_use:
        raise ConflictError(f"Role is assigned to {in_use} user(s) and cannot be deleted")
    db.session.delete(role)
    db.session.commit()
    logger.info("Role deleted: %s", role.name)
