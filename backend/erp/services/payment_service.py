# Overview: Service-layer operations for payments; applies money to invoices and bills.

"""
Payment Application

- incoming: from a customer, optionally against one of their invoices
- outgoing: to a supplier, optionally against one of their bills

Applying a payment updates the document's paid amount and status
(partial/paid) and decrements the party's running balance, all in one
transaction. A payment may not exceed the document's outstanding balance.
"""

from __future__ import annotations

import logging

from ..extensions import db
from ..models import Customer, Supplier, SalesInvoice, SupplierBill, Payment
from ..validation import ValidationError, NotFoundError, positive_int, optional_int
from . import document_service, lifecycle_service
from .concurrency import atomic, lock_for_update


logger = logging.getLogger(__name__)

PAYMENT_TYPES = ("incoming", "outgoing")
PAYMENT_MODES = ("cash", "cheque", "bank_transfer")


def list_payments(*, payment_type: str | None = None) -> list[Payment]:
    query = db.session.query(Payment)
    if payment_type:
        query = query.filter(Payment.payment_type == payment_type)
    return query.order_by(Payment.payment_date.desc(), Payment.id.desc()).all()


def _apply(document, amount: int) -> None:
    """Add amount to a locked invoice/bill and advance its status."""
    outstanding = document.balance_cents
    if outstanding <= 0:
        raise ValidationError("Document is already fully paid")
    if amount > outstanding:
        raise ValidationError(f"Payment exceeds outstanding balance ({outstanding})")
    document.paid_cents += amount
    new_status = "paid" if document.paid_cents >= document.amount_due_cents else "partial"
    lifecycle_service.advance(document, new_status)


def record_payment(payload: dict) -> Payment:
    payment_type = payload.get("payment_type")
    if payment_type not in PAYMENT_TYPES:
        raise ValidationError("payment_type must be 'incoming' or 'outgoing'")
    amount = positive_int(payload.get("amount_cents"), "amount_cents")
    payment_mode = payload.get("payment_mode") or "cash"
    if payment_mode not in PAYMENT_MODES:
        raise ValidationError(f"payment_mode must be one of: {', '.join(PAYMENT_MODES)}")

    invoice_id = optional_int(payload.get("invoice_id"), "invoice_id")
    bill_id = optional_int(payload.get("bill_id"), "bill_id")

    if payment_type == "incoming":
        customer_id = positive_int(payload.get("customer_id"), "customer_id")
        if bill_id:
            raise ValidationError("Incoming payments cannot reference a bill")
    else:
        supplier_id = positive_int(payload.get("supplier_id"), "supplier_id")
        if invoice_id:
            raise ValidationError("Outgoing payments cannot reference an invoice")

    def _op():
        payment = Payment(
            payment_type=payment_type,
            amount_cents=amount,
            payment_mode=payment_mode,
            reference_number=payload.get("reference_number"),
            bank_name=payload.get("bank_name"),
            remarks=payload.get("remarks"),
        )

        if payment_type == "incoming":
            party = lock_for_update(db.session.query(Customer).filter_by(id=customer_id)).first()
            if not party:
                raise NotFoundError("Customer not found")
            payment.party_type = "customer"
            payment.customer_id = party.id
            if invoice_id:
                invoice = lock_for_update(db.session.query(SalesInvoice).filter_by(id=invoice_id)).first()
                if not invoice:
                    raise NotFoundError("Invoice not found")
                if invoice.customer_id != party.id:
                    raise ValidationError("Invoice belongs to a different customer")
                _apply(invoice, amount)
                payment.invoice_id = invoice.id
        else:
            party = lock_for_update(db.session.query(Supplier).filter_by(id=supplier_id)).first()
            if not party:
                raise NotFoundError("Supplier not found")
            payment.party_type = "supplier"
            payment.supplier_id = party.id
            if bill_id:
                bill = lock_for_update(db.session.query(SupplierBill).filter_by(id=bill_id)).first()
                if not bill:
                    raise NotFoundError("Bill not found")
                if bill.supplier_id != party.id:
                    raise ValidationError("Bill belongs to a different supplier")
                _apply(bill, amount)
                payment.bill_id = bill.id

        party.balance_cents = (party.balance_cents or 0) - amount
        payment.payment_number = document_service.next_document_number(f"payment_{payment_type}")
        db.session.add(payment)
        db.session.flush()
        return payment

    payment = atomic(_op)
    logger.info(
        "Payment applied: %s %s amount=%s",
        payment.payment_number, payment.payment_type, payment.amount_cents,
    )
    return payment
