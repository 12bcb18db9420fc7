from __future__ import annotations

from ..extensions import db
from erp.time_utils import to_utc_z, to_iso_date
from .documents import PricedLineMixin, DocumentTotalsMixin


class Quotation(DocumentTotalsMixin, db.Model):
    """Customer quotation. Status: draft, sent, revised, accepted, rejected, expired."""
    __tablename__ = "quotations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    quote_number = db.Column(db.String(32), nullable=False, unique=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    valid_until = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="draft", index=True)
    remarks = db.Column(db.Text, nullable=True)
    terms = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer")
    lines = db.relationship("QuotationLine", backref="quotation", lazy=True, cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "quote_number": self.quote_number,
            "customer_id": self.customer_id,
            "created_by_user_id": self.created_by_user_id,
            "valid_until": to_iso_date(self.valid_until),
            "status": self.status,
            "remarks": self.remarks,
            "terms": self.terms,
            **self.totals_dict(),
            "lines": [line.to_dict() for line in self.lines],
            "created_at": to_utc_z(self.created_at),
        }


class QuotationLine(PricedLineMixin, db.Model):
    __tablename__ = "quotation_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    quotation_id = db.Column(db.Integer, db.ForeignKey("quotations.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False)

    def to_dict(self) -> dict:
        return self.priced_dict()


class SalesOrder(DocumentTotalsMixin, db.Model):
    """
    Confirmed customer order.

    Status: confirmed, processing, partial, delivered, closed, cancelled.
    Delivery challans move it to partial/delivered.
    """
    __tablename__ = "sales_orders"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    so_number = db.Column(db.String(32), nullable=False, unique=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    quotation_id = db.Column(db.Integer, db.ForeignKey("quotations.id"), nullable=True)
    delivery_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="confirmed", index=True)
    remarks = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer")
    lines = db.relationship("SalesOrderLine", backref="sales_order", lazy=True, cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "so_number": self.so_number,
            "customer_id": self.customer_id,
            "quotation_id": self.quotation_id,
            "delivery_date": to_iso_date(self.delivery_date),
            "status": self.status,
            "remarks": self.remarks,
            **self.totals_dict(),
            "lines": [line.to_dict() for line in self.lines],
            "created_at": to_utc_z(self.created_at),
        }


class SalesOrderLine(PricedLineMixin, db.Model):
    __tablename__ = "sales_order_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sales_order_id = db.Column(db.Integer, db.ForeignKey("sales_orders.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False)
    quantity_delivered = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        data = self.priced_dict()
        data["quantity_delivered"] = self.quantity_delivered
        return data


class DeliveryChallan(db.Model):
    """Goods-out note against a sales order. Creating one issues stock."""
    __tablename__ = "delivery_challans"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    challan_number = db.Column(db.String(32), nullable=False, unique=True)
    sales_order_id = db.Column(db.Integer, db.ForeignKey("sales_orders.id"), nullable=False, index=True)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False)
    driver_name = db.Column(db.String(120), nullable=True)
    vehicle_number = db.Column(db.String(32), nullable=True)
    remarks = db.Column(db.Text, nullable=True)
    delivery_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sales_order = db.relationship("SalesOrder", backref=db.backref("challans", lazy=True))
    lines = db.relationship("DeliveryChallanLine", backref="challan", lazy=True, cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "challan_number": self.challan_number,
            "sales_order_id": self.sales_order_id,
            "location_id": self.location_id,
            "driver_name": self.driver_name,
            "vehicle_number": self.vehicle_number,
            "remarks": self.remarks,
            "delivery_date": to_utc_z(self.delivery_date),
            "lines": [
                {
                    "id": line.id,
                    "sales_order_line_id": line.sales_order_line_id,
                    "item_id": line.item_id,
                    "quantity_delivered": line.quantity_delivered,
                }
                for line in self.lines
            ],
        }


class DeliveryChallanLine(db.Model):
    __tablename__ = "delivery_challan_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    challan_id = db.Column(db.Integer, db.ForeignKey("delivery_challans.id"), nullable=False, index=True)
    sales_order_line_id = db.Column(db.Integer, db.ForeignKey("sales_order_lines.id"), nullable=False)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False)
    quantity_delivered = db.Column(db.Integer, nullable=False)


class SalesInvoice(DocumentTotalsMixin, db.Model):
    """
    Customer invoice. Status: unpaid, partial, paid (driven by payments only).

    Outstanding balance is net_cents - paid_cents.
    """
    __tablename__ = "sales_invoices"
    __table_args__ = (
        db.Index("ix_sales_invoices_status_due", "status", "due_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(32), nullable=False, unique=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    sales_order_id = db.Column(db.Integer, db.ForeignKey("sales_orders.id"), nullable=True)
    challan_id = db.Column(db.Integer, db.ForeignKey("delivery_challans.id"), nullable=True)
    invoice_date = db.Column(db.Date, nullable=False)
    due_date = db.Column(db.Date, nullable=False)
    paid_cents = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="unpaid", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer")
    lines = db.relationship("SalesInvoiceLine", backref="invoice", lazy=True, cascade="all, delete-orphan")

    @property
    def amount_due_cents(self) -> int:
        return self.net_cents

    @property
    def balance_cents(self) -> int:
        return self.amount_due_cents - self.paid_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "customer_id": self.customer_id,
            "customer_name": self.customer.name if self.customer else None,
            "sales_order_id": self.sales_order_id,
            "challan_id": self.challan_id,
            "invoice_date": to_iso_date(self.invoice_date),
            "due_date": to_iso_date(self.due_date),
            **self.totals_dict(),
            "paid_cents": self.paid_cents,
            "balance_cents": self.balance_cents,
            "status": self.status,
            "lines": [line.to_dict() for line in self.lines],
            "created_at": to_utc_z(self.created_at),
        }


class SalesInvoiceLine(PricedLineMixin, db.Model):
    __tablename__ = "sales_invoice_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("sales_invoices.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False)

    def to_dict(self) -> dict:
        return self.priced_dict()
