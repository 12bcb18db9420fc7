# Overview: Flask API routes for the sales flow; quotations, orders, delivery challans, invoices.

from flask import Blueprint, request, g

from ..services import sales_service
from ..permissions import PermissionModule as M, PermissionAction as A
from ..responses import api_ok, api_error
from ..decorators import require_auth, require_permission, current_user_id


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

# Statuses that commit the company; plain sales:write may not set them on a quotation.
APPROVAL_STATUSES = {"accepted", "rejected"}


def _payload() -> dict:
    return request.get_json(silent=True) or {}


def _filters() -> dict:
    return {
        "status": request.args.get("status") or None,
        "customer_id": request.args.get("customer_id", type=int),
    }


@sales_bp.get("/quotations")
@require_auth
@require_permission(M.SALES, A.READ)
def list_quotations_route():
    return api_ok([q.to_dict() for q in sales_service.list_quotations(**_filters())])


@sales_bp.post("/quotations")
@require_auth
@require_permission(M.SALES, A.WRITE)
def create_quotation_route():
    quotation = sales_service.create_quotation(_payload(), user_id=current_user_id())
    return api_ok(quotation.to_dict(), 201)


@sales_bp.get("/quotations/<int:quotation_id>")
@require_auth
@require_permission(M.SALES, A.READ)
def get_quotation_route(quotation_id: int):
    return api_ok(sales_service.get_quotation(quotation_id).to_dict())


@sales_bp.put("/quotations/<int:quotation_id>/status")
@require_auth
@require_permission(M.SALES, A.WRITE)
def update_quotation_status_route(quotation_id: int):
    status = _payload().get("status")
    if not status:
        return api_error("status is required", 400)
    if status in APPROVAL_STATUSES and not g.current_user_context.has_permission(M.SALES, A.APPROVE):
        return api_error("Unauthorized - insufficient permissions", 403)
    quotation = sales_service.update_quotation_status(quotation_id, status)
    return api_ok(quotation.to_dict())


@sales_bp.get("/orders")
@require_auth
@require_permission(M.SALES, A.READ)
def list_orders_route():
    return api_ok([o.to_dict() for o in sales_service.list_sales_orders(**_filters())])


@sales_bp.post("/orders")
@require_auth
@require_permission(M.SALES, A.WRITE)
def create_order_route():
    order = sales_service.create_sales_order(_payload())
    return api_ok(order.to_dict(), 201)


@sales_bp.get("/orders/<int:order_id>")
@require_auth
@require_permission(M.SALES, A.READ)
def get_order_route(order_id: int):
    return api_ok(sales_service.get_sales_order(order_id).to_dict())


@sales_bp.put("/orders/<int:order_id>/status")
@require_auth
@require_permission(M.SALES, A.WRITE)
def update_order_status_route(order_id: int):
    status = _payload().get("status")
    if not status:
        return api_error("status is required", 400)
    order = sales_service.update_sales_order_status(order_id, status)
    return api_ok(order.to_dict())


@sales_bp.get("/delivery")
@require_auth
@require_permission(M.SALES, A.READ)
def list_challans_route():
    rows = sales_service.list_challans(sales_order_id=request.args.get("sales_order_id", type=int))
    return api_ok([c.to_dict() for c in rows])


@sales_bp.post("/delivery")
@require_auth
@require_permission(M.INVENTORY, A.WRITE)
def create_challan_route():
    """Dispatch goods against a sales order; issues stock for every line."""
    challan = sales_service.create_delivery_challan(_payload(), user_id=current_user_id())
    return api_ok(challan.to_dict(), 201)


@sales_bp.get("/invoices")
@require_auth
@require_permission(M.SALES, A.READ)
def list_invoices_route():
    return api_ok([i.to_dict() for i in sales_service.list_invoices(**_filters())])


@sales_bp.post("/invoices")
@require_auth
@require_permission(M.SALES, A.WRITE)
def create_invoice_route():
    invoice = sales_service.create_invoice(_payload())
    return api_ok(invoice.to_dict(), 201)


@sales_bp.get("/invoices/<int:invoice_id>")
@require_auth
@require_permission(M.SALES, A.READ)
def get_invoice_route(invoice_id: int):
    return api_ok(sales_service.get_invoice(invoice_id).to_dict())
