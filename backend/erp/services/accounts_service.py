# Overview: Service-layer operations for the general ledger; chart of accounts, vouchers, trial balance.

"""
Vouchers are balanced journal entries.

INVARIANTS:
- Each entry has exactly one of debit_cents / credit_cents positive.
- sum(debit) == sum(credit) > 0; total_cents is that sum.
- Only posted vouchers feed trial_balance().
"""

from __future__ import annotations

import logging

from sqlalchemy import func

from ..extensions import db
from ..models import ChartOfAccount, Voucher, VoucherEntry
from ..validation import ValidationError, ConflictError, NotFoundError, positive_int, non_negative_int, optional_int, optional_date
from erp.time_utils import today, utcnow
from . import document_service, lifecycle_service
from .concurrency import atomic


logger = logging.getLogger(__name__)

ACCOUNT_TYPES = ("asset", "liability", "equity", "income", "expense")
VOUCHER_TYPES = ("journal", "payment", "receipt", "contra")

# Debit-normal account types; the rest are credit-normal
DEBIT_NORMAL = {"asset", "expense"}


def list_accounts(*, account_type: str | None = None, include_inactive: bool = False) -> list[ChartOfAccount]:
    query = db.session.query(ChartOfAccount)
    if account_type:
        query = query.filter(ChartOfAccount.account_type == account_type)
    if not include_inactive:
        query = query.filter(ChartOfAccount.is_active.is_(True))
    return query.order_by(ChartOfAccount.code.asc()).all()


def get_account(account_id: int) -> ChartOfAccount:
    account = db.session.get(ChartOfAccount, account_id)
    if not account:
        raise NotFoundError("Account not found")
    return account


def create_account(payload: dict) -> ChartOfAccount:
    code = (payload.get("code") or "").strip()
    name = (payload.get("name") or "").strip()
    account_type = payload.get("account_type")
    if not code or not name:
        raise ValidationError("Code and name are required")
    if account_type not in ACCOUNT_TYPES:
        raise ValidationError(f"account_type must be one of: {', '.join(ACCOUNT_TYPES)}")
    if db.session.query(ChartOfAccount).filter_by(code=code).first():
        raise ConflictError("Account code already exists")

    parent_id = optional_int(payload.get("parent_id"), "parent_id")
    if parent_id:
        parent = get_account(parent_id)
        if parent.account_type != account_type:
            raise ValidationError("Parent account must have the same account type")

    account = ChartOfAccount(
        code=code,
        name=name,
        account_type=account_type,
        parent_id=parent_id,
        description=payload.get("description"),
        is_active=True,
    )
    db.session.add(account)
    db.session.commit()
    return account


# (code, name, account_type, parent code)
DEFAULT_ACCOUNTS = (
    ("1000", "Assets", "asset", None),
    ("1100", "Cash & Bank", "asset", "1000"),
    ("1200", "Accounts Receivable", "asset", "1000"),
    ("1300", "Inventory", "asset", "1000"),
    ("2000", "Liabilities", "liability", None),
    ("2100", "Accounts Payable", "liability", "2000"),
    ("4000", "Revenue", "income", None),
    ("4100", "Sales Revenue", "income", "4000"),
    ("5000", "Expenses", "expense", None),
    ("5100", "Cost of Goods Sold", "expense", "5000"),
)


def seed_default_accounts() -> int:
    """Create the starter chart of accounts. Existing codes are left alone."""
    by_code = {a.code: a for a in db.session.query(ChartOfAccount).all()}
    created = 0
    for code, name, account_type, parent_code in DEFAULT_ACCOUNTS:
        if code in by_code:
            continue
        parent = by_code.get(parent_code) if parent_code else None
        account = ChartOfAccount(code=code, name=name, account_type=account_type, parent=parent, is_active=True)
        db.session.add(account)
        by_code[code] = account
        created += 1
    db.session.commit()
    return created


def list_vouchers(*, voucher_type: str | None = None, status: str | None = None) -> list[Voucher]:
    query = db.session.query(Voucher)
    if voucher_type:
        query = query.filter(Voucher.voucher_type == voucher_type)
    if status:
        query = query.filter(Voucher.status == status)
    return query.order_by(Voucher.created_at.desc(), Voucher.id.desc()).all()


def get_voucher(voucher_id: int) -> Voucher:
    voucher = db.session.get(Voucher, voucher_id)
    if not voucher:
        raise NotFoundError("Voucher not found")
    return voucher


def _validate_entries(raw_entries) -> tuple[list[VoucherEntry], int]:
    if not isinstance(raw_entries, list) or len(raw_entries) < 2:
        raise ValidationError("A voucher needs at least two entries")

    entries = []
    total_debit = 0
    total_credit = 0
    for index, raw in enumerate(raw_entries):
        raw = raw if isinstance(raw, dict) else {}
        account_id = positive_int(raw.get("account_id"), f"entries[{index}].account_id")
        account = get_account(account_id)
        if not account.is_active:
            raise ValidationError(f"entries[{index}] account is inactive")
        debit = non_negative_int(raw.get("debit_cents"), f"entries[{index}].debit_cents", default=0)
        credit = non_negative_int(raw.get("credit_cents"), f"entries[{index}].credit_cents", default=0)
        if (debit > 0) == (credit > 0):
            raise ValidationError(f"entries[{index}] must have either a debit or a credit amount")
        total_debit += debit
        total_credit += credit
        entries.append(VoucherEntry(
            account_id=account_id,
            debit_cents=debit,
            credit_cents=credit,
            narration=raw.get("narration"),
        ))

    if total_debit != total_credit:
        raise ValidationError(
            f"Voucher is not balanced: debits {total_debit} != credits {total_credit}"
        )
    return entries, total_debit


def create_voucher(payload: dict, *, user_id: int | None = None) -> Voucher:
    voucher_type = payload.get("voucher_type")
    if voucher_type not in VOUCHER_TYPES:
        raise ValidationError(f"voucher_type must be one of: {', '.join(VOUCHER_TYPES)}")
    entries, total = _validate_entries(payload.get("entries"))
    transaction_date = optional_date(payload.get("transaction_date"), "transaction_date") or today()

    def _op():
        voucher = Voucher(
            voucher_number=document_service.next_voucher_number(voucher_type),
            voucher_type=voucher_type,
            narrative=payload.get("narrative"),
            total_cents=total,
            status="draft",
            transaction_date=transaction_date,
            created_by_user_id=user_id,
        )
        voucher.entries = entries
        db.session.add(voucher)
        db.session.flush()
        return voucher

    voucher = atomic(_op)
    logger.info("Voucher created: %s total=%s", voucher.voucher_number, voucher.total_cents)
    return voucher


def submit_voucher(voucher_id: int) -> Voucher:
    voucher = get_voucher(voucher_id)
    lifecycle_service.transition(voucher, "pending")
    db.session.commit()
    return voucher


def approve_voucher(voucher_id: int, *, user_id: int | None = None) -> Voucher:
    """pending -> approved. A draft is submitted and approved in one step."""
    voucher = get_voucher(voucher_id)
    if voucher.status == "draft":
        lifecycle_service.transition(voucher, "pending")
    lifecycle_service.transition(voucher, "approved")
    voucher.approved_by_user_id = user_id
    voucher.approved_at = utcnow()
    db.session.commit()
    return voucher


def post_voucher(voucher_id: int) -> Voucher:
    voucher = get_voucher(voucher_id)
    lifecycle_service.transition(voucher, "posted")
    voucher.posted_at = utcnow()
    db.session.commit()
    logger.info("Voucher posted: %s", voucher.voucher_number)
    return voucher


def cancel_voucher(voucher_id: int) -> Voucher:
    voucher = get_voucher(voucher_id)
    lifecycle_service.transition(voucher, "cancelled")
    db.session.commit()
    return voucher


def trial_balance() -> dict:
    """
    Per-account debit/credit sums over posted vouchers.

    balance_cents is signed by the account's normal side (debit-normal for
    assets and expenses).
    """
    rows = (
        db.session.query(
            ChartOfAccount,
            func.coalesce(func.sum(VoucherEntry.debit_cents), 0).label("debit"),
            func.coalesce(func.sum(VoucherEntry.credit_cents), 0).label("credit"),
        )
        .join(VoucherEntry, VoucherEntry.account_id == ChartOfAccount.id)
        .join(Voucher, Voucher.id == VoucherEntry.voucher_id)
        .filter(Voucher.status == "posted")
        .group_by(ChartOfAccount.id)
        .order_by(ChartOfAccount.code.asc())
        .all()
    )

    accounts = []
    total_debit = 0
    total_credit = 0
    for account, debit, credit in rows:
        debit = int(debit)
        credit = int(credit)
        total_debit += debit
        total_credit += credit
        balance = debit - credit if account.account_type in DEBIT_NORMAL else credit - debit
        accounts.append({
            "account_id": account.id,
            "code": account.code,
            "name": account.name,
            "account_type": account.account_type,
            "debit_cents": debit,
            "credit_cents": credit,
            "balance_cents": balance,
        })

    return {
        "accounts": accounts,
        "total_debit_cents": total_debit,
        "total_credit_cents": total_credit,
        "balanced": total_debit == total_credit,
    }
