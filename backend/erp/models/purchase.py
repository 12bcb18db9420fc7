from __future__ import annotations

from ..extensions import db
from erp.time_utils import to_utc_z, to_iso_date
from .documents import PricedLineMixin, DocumentTotalsMixin


class PurchaseRequisition(db.Model):
    """Internal request to buy. Status: pending, approved, rejected, converted."""
    __tablename__ = "purchase_requisitions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    pr_number = db.Column(db.String(32), nullable=False, unique=True)
    requested_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=True)
    required_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    remarks = db.Column(db.Text, nullable=True)
    approved_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    lines = db.relationship(
        "PurchaseRequisitionLine", backref="requisition", lazy=True, cascade="all, delete-orphan"
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pr_number": self.pr_number,
            "requested_by_user_id": self.requested_by_user_id,
            "department_id": self.department_id,
            "required_date": to_iso_date(self.required_date),
            "status": self.status,
            "remarks": self.remarks,
            "approved_by_user_id": self.approved_by_user_id,
            "approved_at": to_utc_z(self.approved_at) if self.approved_at else None,
            "lines": [
                {"id": line.id, "item_id": line.item_id, "quantity": line.quantity, "remarks": line.remarks}
                for line in self.lines
            ],
            "created_at": to_utc_z(self.created_at),
        }


class PurchaseRequisitionLine(db.Model):
    __tablename__ = "purchase_requisition_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    requisition_id = db.Column(db.Integer, db.ForeignKey("purchase_requisitions.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    remarks = db.Column(db.String(255), nullable=True)


class LetterOfCredit(db.Model):
    """
    Bank-mediated payment guarantee backing a foreign purchase order.

    Status: open, shipped, documents_received, cleared, closed.
    """
    __tablename__ = "letters_of_credit"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    lc_number = db.Column(db.String(32), nullable=False, unique=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)
    bank_name = db.Column(db.String(120), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="USD")
    # Base-currency units per 1 foreign unit, scaled by 10_000
    exchange_rate_e4 = db.Column(db.Integer, nullable=False, default=10_000)
    issue_date = db.Column(db.Date, nullable=True)
    expiry_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(24), nullable=False, default="open", index=True)
    remarks = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    supplier = db.relationship("Supplier")
    costs = db.relationship("LCCost", backref="letter_of_credit", lazy=True, cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "lc_number": self.lc_number,
            "supplier_id": self.supplier_id,
            "bank_name": self.bank_name,
            "amount_cents": self.amount_cents,
            "currency": self.currency,
            "exchange_rate_e4": self.exchange_rate_e4,
            "issue_date": to_iso_date(self.issue_date),
            "expiry_date": to_iso_date(self.expiry_date),
            "status": self.status,
            "remarks": self.remarks,
            "costs": [cost.to_dict() for cost in self.costs],
            "created_at": to_utc_z(self.created_at),
        }


class LCCost(db.Model):
    """Landed cost booked against a letter of credit (bank charges, duty, freight...)."""
    __tablename__ = "lc_costs"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    lc_id = db.Column(db.Integer, db.ForeignKey("letters_of_credit.id"), nullable=False, index=True)
    cost_type = db.Column(db.String(32), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="BDT")
    exchange_rate_e4 = db.Column(db.Integer, nullable=False, default=10_000)
    reference_doc = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "lc_id": self.lc_id,
            "cost_type": self.cost_type,
            "description": self.description,
            "amount_cents": self.amount_cents,
            "currency": self.currency,
            "exchange_rate_e4": self.exchange_rate_e4,
            "reference_doc": self.reference_doc,
        }


class PurchaseOrder(DocumentTotalsMixin, db.Model):
    """
    Order to a supplier. Status: issued, partial, received, closed, cancelled.

    order_type is "local" or "foreign"; foreign orders may reference an LC.
    """
    __tablename__ = "purchase_orders"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    po_number = db.Column(db.String(32), nullable=False, unique=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)
    requisition_id = db.Column(db.Integer, db.ForeignKey("purchase_requisitions.id"), nullable=True)
    lc_id = db.Column(db.Integer, db.ForeignKey("letters_of_credit.id"), nullable=True)
    order_type = db.Column(db.String(16), nullable=False, default="local")
    expected_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="issued", index=True)
    remarks = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    supplier = db.relationship("Supplier")
    requisition = db.relationship("PurchaseRequisition", backref=db.backref("purchase_orders", lazy=True))
    letter_of_credit = db.relationship("LetterOfCredit", backref=db.backref("purchase_orders", lazy=True))
    lines = db.relationship("PurchaseOrderLine", backref="purchase_order", lazy=True, cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "po_number": self.po_number,
            "supplier_id": self.supplier_id,
            "requisition_id": self.requisition_id,
            "lc_id": self.lc_id,
            "order_type": self.order_type,
            "expected_date": to_iso_date(self.expected_date),
            "status": self.status,
            "remarks": self.remarks,
            **self.totals_dict(),
            "lines": [line.to_dict() for line in self.lines],
            "created_at": to_utc_z(self.created_at),
        }


class PurchaseOrderLine(PricedLineMixin, db.Model):
    __tablename__ = "purchase_order_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False)
    quantity_received = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        data = self.priced_dict()
        data["quantity_received"] = self.quantity_received
        return data


class SupplierBill(DocumentTotalsMixin, db.Model):
    """
    Supplier invoice. Status: unpaid, partial, paid (driven by payments only).

    The amount owed is total_cents (line totals before tax and document
    discount); outstanding balance is total_cents - paid_cents.
    """
    __tablename__ = "supplier_bills"
    __table_args__ = (
        db.Index("ix_supplier_bills_status_due", "status", "due_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bill_number = db.Column(db.String(32), nullable=False, unique=True)
    supplier_reference = db.Column(db.String(64), nullable=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=True)
    bill_date = db.Column(db.Date, nullable=False)
    due_date = db.Column(db.Date, nullable=False)
    paid_cents = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="unpaid", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    supplier = db.relationship("Supplier")
    lines = db.relationship("SupplierBillLine", backref="bill", lazy=True, cascade="all, delete-orphan")

    @property
    def amount_due_cents(self) -> int:
        return self.net_cents

    @property
    def balance_cents(self) -> int:
        return self.amount_due_cents - self.paid_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bill_number": self.bill_number,
            "supplier_reference": self.supplier_reference,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier.name if self.supplier else None,
            "purchase_order_id": self.purchase_order_id,
            "bill_date": to_iso_date(self.bill_date),
            "due_date": to_iso_date(self.due_date),
            **self.totals_dict(),
            "paid_cents": self.paid_cents,
            "balance_cents": self.balance_cents,
            "status": self.status,
            "lines": [line.to_dict() for line in self.lines],
            "created_at": to_utc_z(self.created_at),
        }


class SupplierBillLine(PricedLineMixin, db.Model):
    __tablename__ = "supplier_bill_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    bill_id = db.Column(db.Integer, db.ForeignKey("supplier_bills.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False)

    def to_dict(self) -> dict:
        return self.priced_dict()
