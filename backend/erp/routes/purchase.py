# Overview: Flask API routes for purchasing; requisitions, orders, receipts, bills, letters of credit.

from flask import Blueprint, request

from ..services import purchase_service
from ..permissions import PermissionModule as M, PermissionAction as A
from ..responses import api_ok, api_error
from ..decorators import require_auth, require_permission, current_user_id


purchase_bp = Blueprint("purchase", __name__, url_prefix="/api/purchase")


def _payload() -> dict:
    return request.get_json(silent=True) or {}


# --- Requisitions -------------------------------------------------------------

@purchase_bp.get("/requisitions")
@require_auth
@require_permission(M.PURCHASE, A.READ)
def list_requisitions_route():
    rows = purchase_service.list_requisitions(status=request.args.get("status") or None)
    return api_ok([r.to_dict() for r in rows])


@purchase_bp.post("/requisitions")
@require_auth
@require_permission(M.PURCHASE, A.WRITE)
def create_requisition_route():
    requisition = purchase_service.create_requisition(_payload(), user_id=current_user_id())
    return api_ok(requisition.to_dict(), 201)


@purchase_bp.get("/requisitions/<int:requisition_id>")
@require_auth
@require_permission(M.PURCHASE, A.READ)
def get_requisition_route(requisition_id: int):
    return api_ok(purchase_service.get_requisition(requisition_id).to_dict())


@purchase_bp.post("/requisitions/<int:requisition_id>/approve")
@require_auth
@require_permission(M.PURCHASE, A.APPROVE)
def approve_requisition_route(requisition_id: int):
    requisition = purchase_service.approve_requisition(requisition_id, user_id=current_user_id())
    return api_ok(requisition.to_dict())


@purchase_bp.post("/requisitions/<int:requisition_id>/reject")
@require_auth
@require_permission(M.PURCHASE, A.APPROVE)
def reject_requisition_route(requisition_id: int):
    requisition = purchase_service.reject_requisition(requisition_id, user_id=current_user_id())
    return api_ok(requisition.to_dict())


# --- Purchase orders ----------------------------------------------------------

@purchase_bp.get("/orders")
@require_auth
@require_permission(M.PURCHASE, A.READ)
def list_orders_route():
    rows = purchase_service.list_purchase_orders(
        status=request.args.get("status") or None,
        supplier_id=request.args.get("supplier_id", type=int),
    )
    return api_ok([r.to_dict() for r in rows])


@purchase_bp.post("/orders")
@require_auth
@require_permission(M.PURCHASE, A.WRITE)
def create_order_route():
    order = purchase_service.create_purchase_order(_payload())
    return api_ok(order.to_dict(), 201)


@purchase_bp.get("/orders/<int:order_id>")
@require_auth
@require_permission(M.PURCHASE, A.READ)
def get_order_route(order_id: int):
    return api_ok(purchase_service.get_purchase_order(order_id).to_dict())


@purchase_bp.put("/orders/<int:order_id>/status")
@require_auth
@require_permission(M.PURCHASE, A.WRITE)
def update_order_status_route(order_id: int):
    status = _payload().get("status")
    if not status:
        return api_error("status is required", 400)
    order = purchase_service.update_purchase_order_status(order_id, status)
    return api_ok(order.to_dict())


@purchase_bp.post("/orders/<int:order_id>/receive")
@require_auth
@require_permission(M.INVENTORY, A.WRITE)
def receive_order_route(order_id: int):
    order = purchase_service.receive_purchase_order(order_id, _payload(), user_id=current_user_id())
    return api_ok(order.to_dict(), 201)


# --- Supplier bills -----------------------------------------------------------

@purchase_bp.get("/bills")
@require_auth
@require_permission(M.PURCHASE, A.READ)
def list_bills_route():
    rows = purchase_service.list_bills(
        status=request.args.get("status") or None,
        supplier_id=request.args.get("supplier_id", type=int),
    )
    return api_ok([r.to_dict() for r in rows])


@purchase_bp.post("/bills")
@require_auth
@require_permission(M.PURCHASE, A.WRITE)
def create_bill_route():
    bill = purchase_service.create_bill(_payload())
    return api_ok(bill.to_dict(), 201)


# --- Letters of credit --------------------------------------------------------

@purchase_bp.get("/lc")
@require_auth
@require_permission(M.PURCHASE, A.READ)
def list_lc_route():
    rows = purchase_service.list_letters_of_credit(status=request.args.get("status") or None)
    return api_ok([r.to_dict() for r in rows])


@purchase_bp.post("/lc")
@require_auth
@require_permission(M.PURCHASE, A.WRITE)
def create_lc_route():
    lc = purchase_service.create_letter_of_credit(_payload())
    return api_ok(lc.to_dict(), 201)


@purchase_bp.get("/lc/<int:lc_id>")
@require_auth
@require_permission(M.PURCHASE, A.READ)
def get_lc_route(lc_id: int):
    data = purchase_service.get_letter_of_credit(lc_id).to_dict()
    data["landed_cost"] = purchase_service.landed_cost(lc_id)
    return api_ok(data)


@purchase_bp.put("/lc/<int:lc_id>/status")
@require_auth
@require_permission(M.PURCHASE, A.APPROVE)
def update_lc_status_route(lc_id: int):
    status = _payload().get("status")
    if not status:
        return api_error("status is required", 400)
    lc = purchase_service.update_letter_of_credit_status(lc_id, status)
    return api_ok(lc.to_dict())


@purchase_bp.post("/lc/<int:lc_id>/costs")
@require_auth
@require_permission(M.PURCHASE, A.WRITE)
def add_lc_cost_route(lc_id: int):
    cost = purchase_service.add_lc_cost(lc_id, _payload())
    return api_ok({"cost": cost.to_dict(), "landed_cost": purchase_service.landed_cost(lc_id)}, 201)
