# Overview: Receivables/payables aging buckets over outstanding invoices and bills.

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date

from ..extensions import db
from ..models import SalesInvoice, SupplierBill
from erp.time_utils import today as utc_today, parse_iso_date, to_iso_date


BUCKETS = ("current", "days30", "days60", "days90Plus")


@dataclass
class AgingReport:
    """
    Outstanding balances split by days past due.

    INVARIANT: total == current + days30 + days60 + days90Plus.
    """
    current: int = 0
    days30: int = 0
    days60: int = 0
    days90_plus: int = 0
    rows: list[dict] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.current + self.days30 + self.days60 + self.days90_plus

    def add(self, bucket: str, amount: int) -> None:
        if bucket == "current":
            self.current += amount
        elif bucket == "days30":
            self.days30 += amount
        elif bucket == "days60":
            self.days60 += amount
        else:
            self.days90_plus += amount

    def to_dict(self) -> dict:
        return {
            "aging": {
                "current": self.current,
                "days30": self.days30,
                "days60": self.days60,
                "days90Plus": self.days90_plus,
            },
            "total": self.total,
            "documents": self.rows,
        }


def bucket_for(days: int) -> str:
    """days <= 0 current; <= 30 days30; <= 60 days60; otherwise days90Plus."""
    if days <= 0:
        return "current"
    if days <= 30:
        return "days30"
    if days <= 60:
        return "days60"
    return "days90Plus"


def _field(doc, name):
    if isinstance(doc, Mapping):
        return doc.get(name)
    return getattr(doc, name, None)


def compute_aging(documents: Iterable, today: date) -> AgingReport:
    """
    Bucket outstanding documents by how far past due they are.

    Each document exposes total_cents, paid_cents, due_date and status
    (as attributes or mapping keys). Paid documents are skipped. Pure: no
    database access.
    """
    report = AgingReport()
    for doc in documents:
        if _field(doc, "status") == "paid":
            continue
        total = int(_field(doc, "total_cents") or 0)
        paid = int(_field(doc, "paid_cents") or 0)
        balance = total - paid
        due = parse_iso_date(_field(doc, "due_date"))
        days = (today - due).days
        bucket = bucket_for(days)
        report.add(bucket, balance)

        row = {key: _field(doc, key) for key in ("id", "number", "party_id", "party_name")}
        row.update({
            "due_date": to_iso_date(due),
            "total_cents": total,
            "paid_cents": paid,
            "balance_cents": balance,
            "days_overdue": max(0, days),
            "bucket": bucket,
            "status": _field(doc, "status"),
        })
        report.rows.append(row)
    return report


def receivables_report(*, customer_id: int | None = None, today: date | None = None) -> AgingReport:
    """Aging over unpaid/partial sales invoices, measured on net amount."""
    query = db.session.query(SalesInvoice).filter(SalesInvoice.status != "paid")
    if customer_id:
        query = query.filter(SalesInvoice.customer_id == customer_id)
    invoices = query.order_by(SalesInvoice.due_date.asc(), SalesInvoice.id.asc()).all()

    documents = [
        {
            "id": inv.id,
            "number": inv.invoice_number,
            "party_id": inv.customer_id,
            "party_name": inv.customer.name if inv.customer else None,
            "total_cents": inv.amount_due_cents,
            "paid_cents": inv.paid_cents,
            "due_date": inv.due_date,
            "status": inv.status,
        }
        for inv in invoices
    ]
    return compute_aging(documents, today or utc_today())


def payables_report(*, supplier_id: int | None = None, today: date | None = None) -> AgingReport:
    """Aging over unpaid/partial supplier bills, measured on net amount."""
    query = db.session.query(SupplierBill).filter(SupplierBill.status != "paid")
    if supplier_id:
        query = query.filter(SupplierBill.supplier_id == supplier_id)
    bills = query.order_by(SupplierBill.due_date.asc(), SupplierBill.id.asc()).all()

    documents = [
        {
            "id": bill.id,
            "number": bill.bill_number,
            "party_id": bill.supplier_id,
            "party_name": bill.supplier.name if bill.supplier else None,
            "total_cents": bill.amount_due_cents,
            "paid_cents": bill.paid_cents,
            "due_date": bill.due_date,
            "status": bill.status,
        }
        for bill in bills
    ]
    return compute_aging(documents, today or utc_today())
