# Overview: Permission-set lookups used by the API gate and navigation filtering.

from __future__ import annotations

from collections.abc import Iterable, Mapping

from .categories import MODULES, ACTIONS
from .definitions import DEFAULT_ROLE_PERMISSIONS, ROUTE_PERMISSIONS


def _as_pair(entry) -> tuple[str, str]:
    if isinstance(entry, Mapping):
        return entry.get("module"), entry.get("action")
    module, action = entry
    return module, action


def normalize_permissions(permission_set: Iterable | None) -> list[tuple[str, str]]:
    """Flatten dicts or (module, action) pairs into a list of tuples."""
    if not permission_set:
        return []
    return [_as_pair(entry) for entry in permission_set]


def serialize_permissions(permission_set: Iterable | None) -> list[dict]:
    """Inverse of normalize_permissions; the shape carried in session tokens."""
    return [
        {"module": module, "action": action}
        for module, action in normalize_permissions(permission_set)
    ]


def has_permission(permission_set: Iterable | None, module: str, action: str) -> bool:
    """Exact (module, action) match. No wildcards, hierarchy or inheritance."""
    for entry in permission_set or ():
        if _as_pair(entry) == (module, action):
            return True
    return False


def required_permission_for_route(pathname: str) -> tuple[str, str] | None:
    """Return the (module, action) of the longest registered route prefix, if any."""
    best = None
    for route in ROUTE_PERMISSIONS:
        if pathname == route or pathname.startswith(route + "/"):
            if best is None or len(route) > len(best):
                best = route
    if best is None:
        return None
    return ROUTE_PERMISSIONS[best]


def can_access_route(permission_set: Iterable | None, pathname: str) -> bool:
    """
    Check navigation/API access for a path.

    Paths with no registered prefix are allowed (fail-open).
    """
    required = required_permission_for_route(pathname)
    if required is None:
        return True
    module, action = required
    return has_permission(permission_set, module, action)


def get_default_permissions_for_role(role_name: str) -> list[tuple[str, str]]:
    """Default matrix for a seeded role; unknown roles get nothing."""
    return list(DEFAULT_ROLE_PERMISSIONS.get(role_name, []))


def validate_permission(module: str, action: str) -> None:
    """Raise ValidationError for a module or action outside the fixed vocabulary."""
    from ..validation import ValidationError

    if module not in MODULES:
        raise ValidationError(f"Unknown module: {module}")
    if action not in ACTIONS:
        raise ValidationError(f"Unknown action: {action}")
