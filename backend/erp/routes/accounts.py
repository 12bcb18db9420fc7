# Overview: Flask API routes for accounts; chart of accounts, vouchers, payments, aging reports.

from flask import Blueprint, request

from ..services import accounts_service, payment_service, aging_service
from ..permissions import PermissionModule as M, PermissionAction as A
from ..validation import optional_date
from ..responses import api_ok
from ..decorators import require_auth, require_permission, current_user_id


accounts_bp = Blueprint("accounts", __name__, url_prefix="/api/accounts")


def _payload() -> dict:
    return request.get_json(silent=True) or {}


# --- Chart of accounts --------------------------------------------------------

@accounts_bp.get("/chart")
@require_auth
@require_permission(M.ACCOUNTS, A.READ)
def list_accounts_route():
    include_inactive = request.args.get("include_inactive", "false").lower() in ("1", "true", "yes")
    rows = accounts_service.list_accounts(
        account_type=request.args.get("account_type") or None,
        include_inactive=include_inactive,
    )
    return api_ok([a.to_dict() for a in rows])


@accounts_bp.post("/chart")
@require_auth
@require_permission(M.ACCOUNTS, A.WRITE)
def create_account_route():
    account = accounts_service.create_account(_payload())
    return api_ok(account.to_dict(), 201)


# --- Vouchers -----------------------------------------------------------------

@accounts_bp.get("/vouchers")
@require_auth
@require_permission(M.ACCOUNTS, A.READ)
def list_vouchers_route():
    rows = accounts_service.list_vouchers(
        voucher_type=request.args.get("voucher_type") or None,
        status=request.args.get("status") or None,
    )
    return api_ok([v.to_dict() for v in rows])


@accounts_bp.post("/vouchers")
@require_auth
@require_permission(M.ACCOUNTS, A.WRITE)
def create_voucher_route():
    voucher = accounts_service.create_voucher(_payload(), user_id=current_user_id())
    return api_ok(voucher.to_dict(), 201)


@accounts_bp.get("/vouchers/<int:voucher_id>")
@require_auth
@require_permission(M.ACCOUNTS, A.READ)
def get_voucher_route(voucher_id: int):
    return api_ok(accounts_service.get_voucher(voucher_id).to_dict())


@accounts_bp.post("/vouchers/<int:voucher_id>/submit")
@require_auth
@require_permission(M.ACCOUNTS, A.WRITE)
def submit_voucher_route(voucher_id: int):
    return api_ok(accounts_service.submit_voucher(voucher_id).to_dict())


@accounts_bp.post("/vouchers/<int:voucher_id>/approve")
@require_auth
@require_permission(M.ACCOUNTS, A.APPROVE)
def approve_voucher_route(voucher_id: int):
    return api_ok(accounts_service.approve_voucher(voucher_id, user_id=current_user_id()).to_dict())


@accounts_bp.post("/vouchers/<int:voucher_id>/post")
@require_auth
@require_permission(M.ACCOUNTS, A.APPROVE)
def post_voucher_route(voucher_id: int):
    return api_ok(accounts_service.post_voucher(voucher_id).to_dict())


@accounts_bp.post("/vouchers/<int:voucher_id>/cancel")
@require_auth
@require_permission(M.ACCOUNTS, A.WRITE)
def cancel_voucher_route(voucher_id: int):
    return api_ok(accounts_service.cancel_voucher(voucher_id).to_dict())


@accounts_bp.get("/trial-balance")
@require_auth
@require_permission(M.REPORTS, A.READ)
def trial_balance_route():
    return api_ok(accounts_service.trial_balance())


# --- Payments -----------------------------------------------------------------

@accounts_bp.get("/payments")
@require_auth
@require_permission(M.ACCOUNTS, A.READ)
def list_payments_route():
    rows = payment_service.list_payments(payment_type=request.args.get("payment_type") or None)
    return api_ok([p.to_dict() for p in rows])


@accounts_bp.post("/payments")
@require_auth
@require_permission(M.ACCOUNTS, A.WRITE)
def record_payment_route():
    payment = payment_service.record_payment(_payload())
    return api_ok(payment.to_dict(), 201)


# --- Aging --------------------------------------------------------------------

@accounts_bp.get("/receivables")
@require_auth
@require_permission(M.ACCOUNTS, A.READ)
def receivables_route():
    """Unpaid invoices bucketed by days past due (as of ?as_of=, default today)."""
    report = aging_service.receivables_report(
        customer_id=request.args.get("customer_id", type=int),
        today=optional_date(request.args.get("as_of"), "as_of"),
    )
    return api_ok(report.to_dict())


@accounts_bp.get("/payables")
@require_auth
@require_permission(M.ACCOUNTS, A.READ)
def payables_route():
    report = aging_service.payables_report(
        supplier_id=request.args.get("supplier_id", type=int),
        today=optional_date(request.args.get("as_of"), "as_of"),
    )
    return api_ok(report.to_dict())
