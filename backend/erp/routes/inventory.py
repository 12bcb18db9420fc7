# backend/erp/routes/inventory.py
"""
Inventory routes.

SECURITY: All routes require authentication.
- Stock and ledger views require inventory:read
- Receive, issue and transfer require inventory:write

Time semantics:
- start/end accept ISO-8601 with Z/offsets and are normalized to UTC-naive.
- Both bounds are inclusive.
"""
from flask import Blueprint, request

from ..services import stock_service
from ..permissions import PermissionModule as M, PermissionAction as A
from ..validation import ValidationError, positive_int, optional_int
from erp.time_utils import parse_iso_datetime
from ..responses import api_ok
from ..decorators import require_auth, require_permission, current_user_id


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def _optional_datetime(name: str):
    try:
        return parse_iso_datetime(request.args.get(name))
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 datetime")


def _summary(item_id: int, location_id: int) -> dict:
    return {
        "item_id": item_id,
        "location_id": location_id,
        "on_hand": stock_service.get_on_hand(item_id, location_id),
    }


@inventory_bp.post("/receive")
@require_auth
@require_permission(M.INVENTORY, A.WRITE)
def receive_route():
    """Stock in. unit_cost_cents, when given, updates the item cost per COSTING_METHOD."""
    payload = request.get_json(silent=True) or {}
    item_id = positive_int(payload.get("item_id"), "item_id")
    location_id = positive_int(payload.get("location_id"), "location_id")

    entry = stock_service.receive(
        item_id=item_id,
        location_id=location_id,
        quantity=payload.get("quantity"),
        unit_cost_cents=payload.get("unit_cost_cents"),
        reference_type=payload.get("reference_type"),
        reference_id=optional_int(payload.get("reference_id"), "reference_id"),
        remarks=payload.get("remarks"),
        transaction_type=payload.get("transaction_type") or "purchase",
        user_id=current_user_id(),
    )
    return api_ok({"transaction": entry.to_dict(), "summary": _summary(item_id, location_id)}, 201)


@inventory_bp.post("/issue")
@require_auth
@require_permission(M.INVENTORY, A.WRITE)
def issue_route():
    """Stock out. 400 "Insufficient stock" when the location holds less than requested."""
    payload = request.get_json(silent=True) or {}
    item_id = positive_int(payload.get("item_id"), "item_id")
    location_id = positive_int(payload.get("location_id"), "location_id")

    entry = stock_service.issue(
        item_id=item_id,
        location_id=location_id,
        quantity=payload.get("quantity"),
        reference_type=payload.get("reference_type"),
        reference_id=optional_int(payload.get("reference_id"), "reference_id"),
        remarks=payload.get("remarks"),
        transaction_type=payload.get("transaction_type") or "sale",
        user_id=current_user_id(),
    )
    return api_ok({"transaction": entry.to_dict(), "summary": _summary(item_id, location_id)}, 201)


@inventory_bp.post("/transfer")
@require_auth
@require_permission(M.INVENTORY, A.WRITE)
def transfer_route():
    payload = request.get_json(silent=True) or {}
    out_entry, in_entry = stock_service.transfer(
        item_id=positive_int(payload.get("item_id"), "item_id"),
        from_location_id=positive_int(payload.get("from_location_id"), "from_location_id"),
        to_location_id=positive_int(payload.get("to_location_id"), "to_location_id"),
        quantity=payload.get("quantity"),
        remarks=payload.get("remarks"),
        user_id=current_user_id(),
    )
    return api_ok({"out": out_entry.to_dict(), "in": in_entry.to_dict()}, 201)


@inventory_bp.get("/stock")
@require_auth
@require_permission(M.INVENTORY, A.READ)
def stock_route():
    rows = stock_service.list_stock(
        search=request.args.get("search") or None,
        location_id=optional_int(request.args.get("location_id"), "location_id"),
    )
    return api_ok([row.to_dict() for row in rows])


@inventory_bp.get("/ledger")
@require_auth
@require_permission(M.INVENTORY, A.READ)
def ledger_route():
    limit = optional_int(request.args.get("limit"), "limit") or 500
    rows = stock_service.list_ledger(
        item_id=optional_int(request.args.get("item_id"), "item_id"),
        location_id=optional_int(request.args.get("location_id"), "location_id"),
        start=_optional_datetime("start"),
        end=_optional_datetime("end"),
        limit=limit,
    )
    return api_ok([row.to_dict() for row in rows])


@inventory_bp.get("/consistency")
@require_auth
@require_permission(M.INVENTORY, A.APPROVE)
def consistency_route():
    mismatches = stock_service.verify_stock_consistency()
    return api_ok({"consistent": not mismatches, "mismatches": mismatches})
