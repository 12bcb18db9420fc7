# Overview: Service-layer operations for purchasing; requisitions, orders, receipts, bills and LCs.

"""
Purchase Flow

    PurchaseRequisition (pending) --approve--> approved --PO--> converted
    PurchaseOrder (issued) --receive--> partial / received --> closed
    SupplierBill --> supplier balance increased
    LetterOfCredit (open ... closed) with landed costs

Receiving against a purchase order posts stock through stock_service with
the order's unit price as the receipt cost; all lines of one receipt commit
together.
"""

from __future__ import annotations

import logging

from ..extensions import db
from ..models import (
    Item,
    Location,
    Supplier,
    PurchaseRequisition,
    PurchaseRequisitionLine,
    PurchaseOrder,
    PurchaseOrderLine,
    SupplierBill,
    SupplierBillLine,
    LetterOfCredit,
    LCCost,
)
from ..validation import (
    ValidationError,
    NotFoundError,
    positive_int,
    non_negative_int,
    optional_int,
    optional_date,
    required_date,
)
from erp.time_utils import today, utcnow
from . import document_service, lifecycle_service, pricing_service, stock_service
from .concurrency import atomic


logger = logging.getLogger(__name__)

ORDER_TYPES = {"local", "foreign"}
RATE_SCALE = 10_000


def _get(model, doc_id, label: str):
    doc = db.session.get(model, doc_id)
    if not doc:
        raise NotFoundError(f"{label} not found")
    return doc


def _get_supplier(supplier_id) -> Supplier:
    supplier = _get(Supplier, positive_int(supplier_id, "supplier_id"), "Supplier")
    if not supplier.is_active:
        raise ValidationError("Supplier is inactive")
    return supplier


def get_requisition(requisition_id: int) -> PurchaseRequisition:
    return _get(PurchaseRequisition, requisition_id, "Requisition")


def get_purchase_order(order_id: int) -> PurchaseOrder:
    return _get(PurchaseOrder, order_id, "Purchase order")


def get_bill(bill_id: int) -> SupplierBill:
    return _get(SupplierBill, bill_id, "Bill")


def get_letter_of_credit(lc_id: int) -> LetterOfCredit:
    return _get(LetterOfCredit, lc_id, "Letter of credit")


def list_requisitions(*, status: str | None = None) -> list[PurchaseRequisition]:
    query = db.session.query(PurchaseRequisition)
    if status:
        query = query.filter(PurchaseRequisition.status == status)
    return query.order_by(PurchaseRequisition.created_at.desc(), PurchaseRequisition.id.desc()).all()


def list_purchase_orders(*, status: str | None = None, supplier_id: int | None = None) -> list[PurchaseOrder]:
    query = db.session.query(PurchaseOrder)
    if status:
        query = query.filter(PurchaseOrder.status == status)
    if supplier_id:
        query = query.filter(PurchaseOrder.supplier_id == supplier_id)
    return query.order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc()).all()


def list_bills(*, status: str | None = None, supplier_id: int | None = None) -> list[SupplierBill]:
    query = db.session.query(SupplierBill)
    if status:
        query = query.filter(SupplierBill.status == status)
    if supplier_id:
        query = query.filter(SupplierBill.supplier_id == supplier_id)
    return query.order_by(SupplierBill.created_at.desc(), SupplierBill.id.desc()).all()


def list_letters_of_credit(*, status: str | None = None) -> list[LetterOfCredit]:
    query = db.session.query(LetterOfCredit)
    if status:
        query = query.filter(LetterOfCredit.status == status)
    return query.order_by(LetterOfCredit.created_at.desc(), LetterOfCredit.id.desc()).all()


# --- Requisitions -------------------------------------------------------------

def create_requisition(payload: dict, *, user_id: int | None = None) -> PurchaseRequisition:
    """Lines carry item and quantity only; pricing happens on the purchase order."""
    raw_lines = payload.get("lines")
    if not isinstance(raw_lines, list) or not raw_lines:
        raise ValidationError("At least one line is required")

    lines = []
    for index, raw in enumerate(raw_lines):
        raw = raw if isinstance(raw, dict) else {}
        item_id = positive_int(raw.get("item_id"), f"lines[{index}].item_id")
        _get(Item, item_id, "Item")
        lines.append(PurchaseRequisitionLine(
            item_id=item_id,
            quantity=positive_int(raw.get("quantity"), f"lines[{index}].quantity"),
            remarks=raw.get("remarks"),
        ))

    def _op():
        requisition = PurchaseRequisition(
            pr_number=document_service.next_document_number("purchase_requisition"),
            requested_by_user_id=user_id,
            department_id=optional_int(payload.get("department_id"), "department_id"),
            required_date=optional_date(payload.get("required_date"), "required_date"),
            remarks=payload.get("remarks"),
            status="pending",
        )
        requisition.lines = lines
        db.session.add(requisition)
        db.session.flush()
        return requisition

    requisition = atomic(_op)
    logger.info("Requisition created: %s", requisition.pr_number)
    return requisition


def approve_requisition(requisition_id: int, *, user_id: int | None = None) -> PurchaseRequisition:
    requisition = get_requisition(requisition_id)
    lifecycle_service.transition(requisition, "approved")
    requisition.approved_by_user_id = user_id
    requisition.approved_at = utcnow()
    db.session.commit()
    return requisition


def reject_requisition(requisition_id: int, *, user_id: int | None = None) -> PurchaseRequisition:
    requisition = get_requisition(requisition_id)
    lifecycle_service.transition(requisition, "rejected")
    requisition.approved_by_user_id = user_id
    requisition.approved_at = utcnow()
    db.session.commit()
    return requisition


# --- Purchase orders ----------------------------------------------------------

def create_purchase_order(payload: dict) -> PurchaseOrder:
    """
    Issue a purchase order.

    A referenced requisition must be approved and becomes converted in the
    same transaction. Foreign orders may reference a letter of credit for
    the same supplier.
    """
    supplier = _get_supplier(payload.get("supplier_id"))
    order_type = payload.get("order_type") or "local"
    if order_type not in ORDER_TYPES:
        raise ValidationError("order_type must be 'local' or 'foreign'")

    requisition_id = optional_int(payload.get("requisition_id"), "requisition_id")
    lc_id = optional_int(payload.get("lc_id"), "lc_id")
    if lc_id:
        if order_type != "foreign":
            raise ValidationError("Only foreign orders can reference a letter of credit")
        lc = get_letter_of_credit(lc_id)
        if lc.supplier_id != supplier.id:
            raise ValidationError("Letter of credit belongs to a different supplier")

    lines = pricing_service.price_lines(payload.get("lines"))
    totals = pricing_service.document_totals(lines, payload.get("discount_cents"))
    expected_date = optional_date(payload.get("expected_date"), "expected_date")

    def _op():
        if requisition_id:
            requisition = get_requisition(requisition_id)
            if requisition.status != "approved":
                raise ValidationError("Requisition must be approved before conversion")
            lifecycle_service.transition(requisition, "converted")

        order = PurchaseOrder(
            po_number=document_service.next_document_number("purchase_order"),
            supplier_id=supplier.id,
            requisition_id=requisition_id,
            lc_id=lc_id,
            order_type=order_type,
            expected_date=expected_date,
            remarks=payload.get("remarks"),
            status="issued",
            **totals.as_columns(),
        )
        order.lines = [PurchaseOrderLine(quantity_received=0, **line.as_columns()) for line in lines]
        db.session.add(order)
        db.session.flush()
        return order

    order = atomic(_op)
    logger.info("Purchase order created: %s", order.po_number)
    return order


def update_purchase_order_status(order_id: int, status: str) -> PurchaseOrder:
    order = get_purchase_order(order_id)
    lifecycle_service.transition(order, status)
    db.session.commit()
    return order


def receive_purchase_order(order_id: int, payload: dict, *, user_id: int | None = None) -> PurchaseOrder:
    """
    Receive goods against a purchase order into one location.

    payload.lines: [{"purchase_order_line_id", "quantity"}]. Quantities may
    not exceed ordered minus already received. Each line posts a "purchase"
    stock movement at the line's unit price.
    """
    location_id = positive_int(payload.get("location_id"), "location_id")
    raw_lines = payload.get("lines")
    if not isinstance(raw_lines, list) or not raw_lines:
        raise ValidationError("At least one line is required")

    def _op():
        order = get_purchase_order(order_id)
        if order.status not in ("issued", "partial"):
            raise ValidationError(f"Cannot receive a purchase order in status '{order.status}'")
        if not db.session.get(Location, location_id):
            raise NotFoundError("Location not found")

        order_lines = {line.id: line for line in order.lines}
        for index, raw in enumerate(raw_lines):
            raw = raw if isinstance(raw, dict) else {}
            line_id = positive_int(raw.get("purchase_order_line_id"), f"lines[{index}].purchase_order_line_id")
            quantity = positive_int(raw.get("quantity"), f"lines[{index}].quantity")
            order_line = order_lines.get(line_id)
            if order_line is None:
                raise ValidationError(f"lines[{index}] does not belong to this purchase order")
            outstanding = order_line.quantity - order_line.quantity_received
            if quantity > outstanding:
                raise ValidationError(
                    f"lines[{index}].quantity exceeds unreceived quantity ({outstanding})"
                )

            stock_service.receive_in_transaction(
                item_id=order_line.item_id,
                location_id=location_id,
                quantity=quantity,
                unit_cost_cents=order_line.unit_price_cents,
                transaction_type="purchase",
                reference_type="purchase_order",
                reference_id=order.id,
                remarks=f"Receipt against {order.po_number}",
                user_id=user_id,
            )
            order_line.quantity_received += quantity

        fully_received = all(line.quantity_received >= line.quantity for line in order.lines)
        lifecycle_service.advance(order, "received" if fully_received else "partial")
        db.session.flush()
        return order

    order = atomic(_op)
    logger.info("Goods received against %s (status=%s)", order.po_number, order.status)
    return order


# --- Supplier bills -----------------------------------------------------------

def create_bill(payload: dict) -> SupplierBill:
    """Record a supplier bill and add its net amount to the supplier's running balance."""
    supplier = _get_supplier(payload.get("supplier_id"))
    purchase_order_id = optional_int(payload.get("purchase_order_id"), "purchase_order_id")
    if purchase_order_id:
        order = get_purchase_order(purchase_order_id)
        if order.supplier_id != supplier.id:
            raise ValidationError("Purchase order belongs to a different supplier")

    bill_date = optional_date(payload.get("bill_date"), "bill_date") or today()
    due_date = required_date(payload.get("due_date"), "due_date")
    if due_date < bill_date:
        raise ValidationError("due_date cannot be before bill_date")

    lines = pricing_service.price_lines(payload.get("lines"))
    totals = pricing_service.document_totals(lines, payload.get("discount_cents"))

    def _op():
        bill = SupplierBill(
            bill_number=document_service.next_document_number("supplier_bill"),
            supplier_reference=payload.get("supplier_reference"),
            supplier_id=supplier.id,
            purchase_order_id=purchase_order_id,
            bill_date=bill_date,
            due_date=due_date,
            paid_cents=0,
            status="unpaid",
            **totals.as_columns(),
        )
        bill.lines = [SupplierBillLine(**line.as_columns()) for line in lines]
        db.session.add(bill)
        supplier.balance_cents = (supplier.balance_cents or 0) + bill.amount_due_cents
        db.session.flush()
        return bill

    bill = atomic(_op)
    logger.info("Supplier bill created: %s total=%s", bill.bill_number, bill.total_cents)
    return bill


# --- Letters of credit --------------------------------------------------------

def _exchange_rate(value, field: str) -> int:
    rate = non_negative_int(value, field, default=RATE_SCALE)
    if rate == 0:
        raise ValidationError(f"{field} must be > 0")
    return rate


def to_base_cents(amount_cents: int, exchange_rate_e4: int) -> int:
    """Convert a foreign amount to base currency, half-up to the cent."""
    return pricing_service.round_half_up(amount_cents * exchange_rate_e4, RATE_SCALE)


def create_letter_of_credit(payload: dict) -> LetterOfCredit:
    supplier = _get_supplier(payload.get("supplier_id"))
    bank_name = (payload.get("bank_name") or "").strip()
    if not bank_name:
        raise ValidationError("bank_name is required")
    amount = positive_int(payload.get("amount_cents"), "amount_cents")
    currency = (payload.get("currency") or "USD").strip().upper()
    if len(currency) != 3:
        raise ValidationError("currency must be a 3-letter code")

    issue_date = optional_date(payload.get("issue_date"), "issue_date")
    expiry_date = optional_date(payload.get("expiry_date"), "expiry_date")
    if issue_date and expiry_date and expiry_date < issue_date:
        raise ValidationError("expiry_date cannot be before issue_date")

    def _op():
        lc = LetterOfCredit(
            lc_number=document_service.next_document_number("letter_of_credit"),
            supplier_id=supplier.id,
            bank_name=bank_name,
            amount_cents=amount,
            currency=currency,
            exchange_rate_e4=_exchange_rate(payload.get("exchange_rate_e4"), "exchange_rate_e4"),
            issue_date=issue_date,
            expiry_date=expiry_date,
            remarks=payload.get("remarks"),
            status="open",
        )
        db.session.add(lc)
        db.session.flush()
        return lc

    lc = atomic(_op)
    logger.info("Letter of credit opened: %s", lc.lc_number)
    return lc


def update_letter_of_credit_status(lc_id: int, status: str) -> LetterOfCredit:
    lc = get_letter_of_credit(lc_id)
    lifecycle_service.transition(lc, status)
    db.session.commit()
    return lc


def add_lc_cost(lc_id: int, payload: dict) -> LCCost:
    lc = get_letter_of_credit(lc_id)
    if lc.status == "closed":
        raise ValidationError("Cannot add costs to a closed letter of credit")
    cost_type = (payload.get("cost_type") or "").strip()
    if not cost_type:
        raise ValidationError("cost_type is required")
    currency = (payload.get("currency") or "BDT").strip().upper()
    if len(currency) != 3:
        raise ValidationError("currency must be a 3-letter code")

    cost = LCCost(
        lc_id=lc.id,
        cost_type=cost_type,
        description=payload.get("description"),
        amount_cents=positive_int(payload.get("amount_cents"), "amount_cents"),
        currency=currency,
        exchange_rate_e4=_exchange_rate(payload.get("exchange_rate_e4"), "exchange_rate_e4"),
        reference_doc=payload.get("reference_doc"),
    )
    db.session.add(cost)
    db.session.commit()
    return cost


def landed_cost(lc_id: int) -> dict:
    """LC amount plus every booked cost, all converted to base currency."""
    lc = get_letter_of_credit(lc_id)
    lc_base = to_base_cents(lc.amount_cents, lc.exchange_rate_e4)
    costs_base = sum(to_base_cents(c.amount_cents, c.exchange_rate_e4) for c in lc.costs)
    return {
        "lc_id": lc.id,
        "lc_amount_base_cents": lc_base,
        "costs_base_cents": costs_base,
        "total_landed_cents": lc_base + costs_base,
    }
