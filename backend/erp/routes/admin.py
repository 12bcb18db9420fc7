# Overview: Flask API routes for user and role administration.

from flask import Blueprint, request

from ..services import auth_service, permission_service, master_data_service
from ..permissions import PermissionModule as M, PermissionAction as A
from ..responses import api_ok, api_error
from ..decorators import require_auth, require_permission, current_user_id


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _user_patch(data: dict) -> dict:
    """Accept camelCase keys from the admin UI alongside snake_case."""
    aliases = {
        "fullName": "full_name",
        "roleId": "role_id",
        "departmentId": "department_id",
    }
    patch = {}
    for key, value in data.items():
        patch[aliases.get(key, key)] = value
    return patch


# --- Users --------------------------------------------------------------------

@admin_bp.get("/users")
@require_auth
@require_permission(M.ADMIN, A.READ)
def list_users_route():
    return api_ok([user.to_dict() for user in auth_service.list_users()])


@admin_bp.get("/users/<int:user_id>")
@require_auth
@require_permission(M.ADMIN, A.READ)
def get_user_route(user_id: int):
    return api_ok(auth_service.get_user(user_id).to_dict())


@admin_bp.post("/users")
@require_auth
@require_permission(M.ADMIN, A.WRITE)
def create_user_route():
    patch = _user_patch(request.get_json(silent=True) or {})
    if not patch.get("email") or not patch.get("password") or not patch.get("full_name"):
        return api_error("Email, password, and full name are required", 400)

    user = auth_service.create_user(
        email=patch["email"],
        password=patch["password"],
        full_name=patch["full_name"],
        role_id=patch.get("role_id"),
        department_id=patch.get("department_id"),
        phone=patch.get("phone"),
        status=patch.get("status") or "active",
    )
    return api_ok(user.to_dict(), 201)


@admin_bp.put("/users/<int:user_id>")
@require_auth
@require_permission(M.ADMIN, A.WRITE)
def update_user_route(user_id: int):
    """Edit profile/role/status; a non-empty password resets it (policy-checked)."""
    patch = _user_patch(request.get_json(silent=True) or {})
    user = auth_service.update_user(user_id, patch)
    return api_ok(user.to_dict())


@admin_bp.delete("/users/<int:user_id>")
@require_auth
@require_permission(M.ADMIN, A.DELETE)
def delete_user_route(user_id: int):
    auth_service.delete_user(user_id, acting_user_id=current_user_id())
    return api_ok({"message": "User deleted"})


# --- Roles --------------------------------------------------------------------

@admin_bp.get("/roles")
@require_auth
@require_permission(M.ADMIN, A.READ)
def list_roles_route():
    return api_ok(permission_service.list_roles())


@admin_bp.post("/roles")
@require_auth
@require_permission(M.ADMIN, A.WRITE)
def create_role_route():
    data = request.get_json(silent=True) or {}
    role = permission_service.create_role(
        name=data.get("name"),
        description=data.get("description"),
        permissions=data.get("permissions"),
    )
    return api_ok(role.to_dict(include_permissions=True), 201)


@admin_bp.post("/roles/<int:role_id>/permissions")
@require_auth
@require_permission(M.ADMIN, A.WRITE)
def grant_permission_route(role_id: int):
    data = request.get_json(silent=True) or {}
    role = permission_service.get_role(role_id)
    added = permission_service.grant_permission(role, data.get("module"), data.get("action"))
    return api_ok(role.to_dict(include_permissions=True), 201 if added else 200)


@admin_bp.delete("/roles/<int:role_id>/permissions")
@require_auth
@require_permission(M.ADMIN, A.WRITE)
def revoke_permission_route(role_id: int):
    data = request.get_json(silent=True) or {}
    module = data.get("module") or request.args.get("module")
    action = data.get("action") or request.args.get("action")
    role = permission_service.get_role(role_id)
    if not permission_service.revoke_permission(role, module, action):
        return api_error("Permission not granted to this role", 404)
    return api_ok(role.to_dict(include_permissions=True))


@admin_bp.delete("/roles/<int:role_id>")
@require_auth
@require_permission(M.ADMIN, A.DELETE)
def delete_role_route(role_id: int):
    permission_service.delete_role(role_id)
    return api_ok({"message": "Role deleted"})


@admin_bp.get("/departments")
@require_auth
@require_permission(M.ADMIN, A.READ)
def list_departments_route():
    return api_ok([d.to_dict() for d in master_data_service.list_departments()])
