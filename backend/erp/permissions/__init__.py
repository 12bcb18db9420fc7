# Overview: Permission system package.
# Re-exports all public APIs.

from .categories import PermissionModule, PermissionAction, MODULES, ACTIONS
from .definitions import (
    DEFAULT_ROLE_PERMISSIONS,
    DEFAULT_ROLE_DESCRIPTIONS,
    DEFAULT_SIGNUP_ROLE,
    ROUTE_PERMISSIONS,
)
from .helpers import (
    has_permission,
    can_access_route,
    required_permission_for_route,
    get_default_permissions_for_role,
    normalize_permissions,
    serialize_permissions,
    validate_permission,
)

__all__ = [
    "PermissionModule",
    "PermissionAction",
    "MODULES",
    "ACTIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "DEFAULT_ROLE_DESCRIPTIONS",
    "DEFAULT_SIGNUP_ROLE",
    "ROUTE_PERMISSIONS",
    "has_permission",
    "can_access_route",
    "required_permission_for_route",
    "get_default_permissions_for_role",
    "normalize_permissions",
    "serialize_permissions",
    "validate_permission",
]
