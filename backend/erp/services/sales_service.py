# Overview: Service-layer operations for sales documents; quotation -> order -> challan -> invoice.

"""
Sales Flow

    Quotation (draft/sent/...) --accepted--> SalesOrder (confirmed)
        --DeliveryChallan--> stock issued, order partial/delivered
        --SalesInvoice--> customer balance increased

A delivery challan issues stock for every line in the same transaction that
records the challan and bumps the order lines' delivered quantity; a short
location rejects the whole challan.
"""

from __future__ import annotations

import logging

from ..extensions import db
from ..models import (
    Customer,
    Location,
    Quotation,
    QuotationLine,
    SalesOrder,
    SalesOrderLine,
    DeliveryChallan,
    DeliveryChallanLine,
    SalesInvoice,
    SalesInvoiceLine,
)
from ..validation import (
    ValidationError,
    NotFoundError,
    positive_int,
    optional_int,
    optional_date,
    required_date,
)
from erp.time_utils import today
from . import document_service, lifecycle_service, pricing_service, stock_service
from .concurrency import atomic


logger = logging.getLogger(__name__)


def _get_customer(customer_id) -> Customer:
    customer_id = positive_int(customer_id, "customer_id")
    customer = db.session.get(Customer, customer_id)
    if not customer:
        raise NotFoundError("Customer not found")
    if not customer.is_active:
        raise ValidationError("Customer is inactive")
    return customer


def _get(model, doc_id, label: str):
    doc = db.session.get(model, doc_id)
    if not doc:
        raise NotFoundError(f"{label} not found")
    return doc


def get_quotation(quotation_id: int) -> Quotation:
    return _get(Quotation, quotation_id, "Quotation")


def get_sales_order(order_id: int) -> SalesOrder:
    return _get(SalesOrder, order_id, "Sales order")


def get_invoice(invoice_id: int) -> SalesInvoice:
    return _get(SalesInvoice, invoice_id, "Invoice")


def _filtered(model, *, status=None, customer_id=None):
    query = db.session.query(model)
    if status:
        query = query.filter(model.status == status)
    if customer_id:
        query = query.filter(model.customer_id == customer_id)
    return query.order_by(model.created_at.desc(), model.id.desc()).all()


def list_quotations(*, status: str | None = None, customer_id: int | None = None) -> list[Quotation]:
    return _filtered(Quotation, status=status, customer_id=customer_id)


def list_sales_orders(*, status: str | None = None, customer_id: int | None = None) -> list[SalesOrder]:
    return _filtered(SalesOrder, status=status, customer_id=customer_id)


def list_challans(*, sales_order_id: int | None = None) -> list[DeliveryChallan]:
    query = db.session.query(DeliveryChallan)
    if sales_order_id:
        query = query.filter(DeliveryChallan.sales_order_id == sales_order_id)
    return query.order_by(DeliveryChallan.delivery_date.desc(), DeliveryChallan.id.desc()).all()


def list_invoices(*, status: str | None = None, customer_id: int | None = None) -> list[SalesInvoice]:
    return _filtered(SalesInvoice, status=status, customer_id=customer_id)


def create_quotation(payload: dict, *, user_id: int | None = None) -> Quotation:
    customer = _get_customer(payload.get("customer_id"))
    lines = pricing_service.price_lines(payload.get("lines"))
    totals = pricing_service.document_totals(lines, payload.get("discount_cents"))

    def _op():
        quotation = Quotation(
            quote_number=document_service.next_document_number("quotation"),
            customer_id=customer.id,
            created_by_user_id=user_id,
            valid_until=optional_date(payload.get("valid_until"), "valid_until"),
            remarks=payload.get("remarks"),
            terms=payload.get("terms"),
            status="draft",
            **totals.as_columns(),
        )
        quotation.lines = [QuotationLine(**line.as_columns()) for line in lines]
        db.session.add(quotation)
        db.session.flush()
        return quotation

    quotation = atomic(_op)
    logger.info("Quotation created: %s", quotation.quote_number)
    return quotation


def update_quotation_status(quotation_id: int, status: str) -> Quotation:
    quotation = get_quotation(quotation_id)
    lifecycle_service.transition(quotation, status)
    db.session.commit()
    return quotation


def create_sales_order(payload: dict) -> SalesOrder:
    """
    Create a confirmed sales order.

    With quotation_id the quotation must be accepted; its customer, lines
    and totals are copied. Otherwise lines are priced from the payload.
    """
    quotation_id = optional_int(payload.get("quotation_id"), "quotation_id")
    delivery_date = optional_date(payload.get("delivery_date"), "delivery_date")

    if quotation_id:
        quotation = get_quotation(quotation_id)
        if quotation.status != "accepted":
            raise ValidationError("Only accepted quotations can be converted to a sales order")
        customer_id = quotation.customer_id
        line_columns = [
            {
                "item_id": line.item_id,
                "description": line.description,
                "quantity": line.quantity,
                "unit_price_cents": line.unit_price_cents,
                "discount_cents": line.discount_cents,
                "tax_rate_bps": line.tax_rate_bps,
                "tax_cents": line.tax_cents,
                "line_total_cents": line.line_total_cents,
            }
            for line in quotation.lines
        ]
        total_columns = quotation.totals_dict()
    else:
        customer_id = _get_customer(payload.get("customer_id")).id
        lines = pricing_service.price_lines(payload.get("lines"))
        line_columns = [line.as_columns() for line in lines]
        total_columns = pricing_service.document_totals(lines, payload.get("discount_cents")).as_columns()

    def _op():
        order = SalesOrder(
            so_number=document_service.next_document_number("sales_order"),
            customer_id=customer_id,
            quotation_id=quotation_id,
            delivery_date=delivery_date,
            remarks=payload.get("remarks"),
            status="confirmed",
            **total_columns,
        )
        order.lines = [SalesOrderLine(quantity_delivered=0, **cols) for cols in line_columns]
        db.session.add(order)
        db.session.flush()
        return order

    order = atomic(_op)
    logger.info("Sales order created: %s", order.so_number)
    return order


def update_sales_order_status(order_id: int, status: str) -> SalesOrder:
    order = get_sales_order(order_id)
    lifecycle_service.transition(order, status)
    db.session.commit()
    return order


def create_delivery_challan(payload: dict, *, user_id: int | None = None) -> DeliveryChallan:
    """
    Deliver against a sales order from one location.

    payload.lines: [{"sales_order_line_id", "quantity"}]. Each quantity must
    not exceed the line's ordered minus already delivered. Stock is issued
    per line; everything commits together.
    """
    order_id = positive_int(payload.get("sales_order_id"), "sales_order_id")
    location_id = positive_int(payload.get("location_id"), "location_id")
    raw_lines = payload.get("lines")
    if not isinstance(raw_lines, list) or not raw_lines:
        raise ValidationError("At least one line is required")

    def _op():
        order = get_sales_order(order_id)
        if order.status not in ("confirmed", "processing", "partial"):
            raise ValidationError(f"Cannot deliver a sales order in status '{order.status}'")
        location = db.session.get(Location, location_id)
        if not location:
            raise NotFoundError("Location not found")

        order_lines = {line.id: line for line in order.lines}
        challan = DeliveryChallan(
            challan_number=document_service.next_document_number("delivery_challan"),
            sales_order_id=order.id,
            location_id=location_id,
            driver_name=payload.get("driver_name"),
            vehicle_number=payload.get("vehicle_number"),
            remarks=payload.get("remarks"),
        )
        db.session.add(challan)
        db.session.flush()

        for index, raw in enumerate(raw_lines):
            raw = raw if isinstance(raw, dict) else {}
            line_id = positive_int(raw.get("sales_order_line_id"), f"lines[{index}].sales_order_line_id")
            quantity = positive_int(raw.get("quantity"), f"lines[{index}].quantity")
            order_line = order_lines.get(line_id)
            if order_line is None:
                raise ValidationError(f"lines[{index}] does not belong to this sales order")
            outstanding = order_line.quantity - order_line.quantity_delivered
            if quantity > outstanding:
                raise ValidationError(
                    f"lines[{index}].quantity exceeds undelivered quantity ({outstanding})"
                )

            stock_service.issue_in_transaction(
                item_id=order_line.item_id,
                location_id=location_id,
                quantity=quantity,
                transaction_type="sale",
                reference_type="delivery_challan",
                reference_id=challan.id,
                remarks=f"Delivery {challan.challan_number}",
                user_id=user_id,
            )
            order_line.quantity_delivered += quantity
            challan.lines.append(DeliveryChallanLine(
                sales_order_line_id=order_line.id,
                item_id=order_line.item_id,
                quantity_delivered=quantity,
            ))

        if order.status == "confirmed":
            lifecycle_service.transition(order, "processing")
        fully_delivered = all(line.quantity_delivered >= line.quantity for line in order.lines)
        lifecycle_service.advance(order, "delivered" if fully_delivered else "partial")
        db.session.flush()
        return challan

    challan = atomic(_op)
    logger.info("Delivery challan created: %s for order %s", challan.challan_number, order_id)
    return challan


def create_invoice(payload: dict) -> SalesInvoice:
    """
    Invoice a customer. Increases the customer's running balance by the net amount.
    """
    customer = _get_customer(payload.get("customer_id"))
    sales_order_id = optional_int(payload.get("sales_order_id"), "sales_order_id")
    challan_id = optional_int(payload.get("challan_id"), "challan_id")
    invoice_date = optional_date(payload.get("invoice_date"), "invoice_date") or today()
    due_date = required_date(payload.get("due_date"), "due_date")
    if due_date < invoice_date:
        raise ValidationError("due_date cannot be before invoice_date")

    if sales_order_id:
        order = get_sales_order(sales_order_id)
        if order.customer_id != customer.id:
            raise ValidationError("Sales order belongs to a different customer")
    if challan_id:
        _get(DeliveryChallan, challan_id, "Delivery challan")

    lines = pricing_service.price_lines(payload.get("lines"))
    totals = pricing_service.document_totals(lines, payload.get("discount_cents"))

    def _op():
        invoice = SalesInvoice(
            invoice_number=document_service.next_document_number("sales_invoice"),
            customer_id=customer.id,
            sales_order_id=sales_order_id,
            challan_id=challan_id,
            invoice_date=invoice_date,
            due_date=due_date,
            paid_cents=0,
            status="unpaid",
            **totals.as_columns(),
        )
        invoice.lines = [SalesInvoiceLine(**line.as_columns()) for line in lines]
        db.session.add(invoice)
        customer.balance_cents = (customer.balance_cents or 0) + invoice.net_cents
        db.session.flush()
        return invoice

    invoice = atomic(_op)
    logger.info("Invoice created: %s net=%s", invoice.invoice_number, invoice.net_cents)
    return invoice
