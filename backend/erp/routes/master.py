# Overview: Flask API routes for master data (items, locations, customers, suppliers).

from flask import Blueprint, request

from ..services import master_data_service
from ..permissions import PermissionModule as M, PermissionAction as A
from ..responses import api_ok
from ..decorators import require_auth, require_permission


master_bp = Blueprint("master", __name__, url_prefix="/api")

# URL segment -> master_data_service kind
COLLECTIONS = {
    "items": "item",
    "locations": "location",
    "customers": "customer",
    "suppliers": "supplier",
}


def _kind(collection: str) -> str:
    return COLLECTIONS[collection]


def _include_inactive() -> bool:
    return request.args.get("include_inactive", "").lower() in {"1", "true", "yes"}


@master_bp.get("/<any(items, locations, customers, suppliers):collection>")
@require_auth
@require_permission(M.MASTER_DATA, A.READ)
def list_route(collection: str):
    kind = _kind(collection)
    records = master_data_service.list_records(
        kind,
        search=request.args.get("search") or None,
        include_inactive=_include_inactive(),
    )
    return api_ok([record.to_dict() for record in records])


@master_bp.get("/<any(items, locations, customers, suppliers):collection>/<int:record_id>")
@require_auth
@require_permission(M.MASTER_DATA, A.READ)
def get_route(collection: str, record_id: int):
    record = master_data_service.get_record(_kind(collection), record_id)
    return api_ok(record.to_dict())


@master_bp.post("/<any(items, locations, customers, suppliers):collection>")
@require_auth
@require_permission(M.MASTER_DATA, A.WRITE)
def create_route(collection: str):
    record = master_data_service.create_record(_kind(collection), request.get_json(silent=True) or {})
    return api_ok(record.to_dict(), 201)


@master_bp.put("/<any(items, locations, customers, suppliers):collection>/<int:record_id>")
@require_auth
@require_permission(M.MASTER_DATA, A.WRITE)
def update_route(collection: str, record_id: int):
    record = master_data_service.update_record(
        _kind(collection), record_id, request.get_json(silent=True) or {}
    )
    return api_ok(record.to_dict())


@master_bp.delete("/<any(items, locations, customers, suppliers):collection>/<int:record_id>")
@require_auth
@require_permission(M.MASTER_DATA, A.DELETE)
def delete_route(collection: str, record_id: int):
    """Soft delete (is_active = False)."""
    record = master_data_service.deactivate_record(_kind(collection), record_id)
    return api_ok(record.to_dict())
