from __future__ import annotations

from ..extensions import db
from erp.time_utils import to_utc_z, to_iso_date


class ChartOfAccount(db.Model):
    """
    General ledger account. account_type: asset, liability, equity, income, expense.

    Accounts form a tree through parent_id.
    """
    __tablename__ = "chart_of_accounts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    account_type = db.Column(db.String(16), nullable=False)
    parent_id = db.Column(db.Integer, db.ForeignKey("chart_of_accounts.id"), nullable=True)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    parent = db.relationship("ChartOfAccount", remote_side=[id], backref=db.backref("children", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "account_type": self.account_type,
            "parent_id": self.parent_id,
            "description": self.description,
            "is_active": self.is_active,
            "children": [child.id for child in self.children],
        }


class Voucher(db.Model):
    """
    Journal voucher. Status: draft, pending, approved, posted, cancelled.

    INVARIANT: sum(debit) == sum(credit) over its entries; total_cents is
    that common sum. Only posted vouchers count toward the trial balance.
    """
    __tablename__ = "vouchers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    voucher_number = db.Column(db.String(32), nullable=False, unique=True)
    # journal / payment / receipt / contra
    voucher_type = db.Column(db.String(16), nullable=False, index=True)
    narrative = db.Column(db.Text, nullable=True)
    total_cents = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="draft", index=True)
    transaction_date = db.Column(db.Date, nullable=False)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    posted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    entries = db.relationship("VoucherEntry", backref="voucher", lazy=True, cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "voucher_number": self.voucher_number,
            "voucher_type": self.voucher_type,
            "narrative": self.narrative,
            "total_cents": self.total_cents,
            "status": self.status,
            "transaction_date": to_iso_date(self.transaction_date),
            "created_by_user_id": self.created_by_user_id,
            "approved_by_user_id": self.approved_by_user_id,
            "approved_at": to_utc_z(self.approved_at) if self.approved_at else None,
            "posted_at": to_utc_z(self.posted_at) if self.posted_at else None,
            "entries": [entry.to_dict() for entry in self.entries],
            "created_at": to_utc_z(self.created_at),
        }


class VoucherEntry(db.Model):
    """One debit or credit line of a voucher."""
    __tablename__ = "voucher_entries"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    voucher_id = db.Column(db.Integer, db.ForeignKey("vouchers.id"), nullable=False, index=True)
    account_id = db.Column(db.Integer, db.ForeignKey("chart_of_accounts.id"), nullable=False, index=True)
    debit_cents = db.Column(db.Integer, nullable=False, default=0)
    credit_cents = db.Column(db.Integer, nullable=False, default=0)
    narration = db.Column(db.String(255), nullable=True)

    account = db.relationship("ChartOfAccount")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "account_code": self.account.code if self.account else None,
            "debit_cents": self.debit_cents,
            "credit_cents": self.credit_cents,
            "narration": self.narration,
        }


class Payment(db.Model):
    """
    Money received from a customer (incoming) or paid to a supplier (outgoing).

    Applied against at most one invoice or bill.
    """
    __tablename__ = "payments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    payment_number = db.Column(db.String(32), nullable=False, unique=True)
    # incoming / outgoing
    payment_type = db.Column(db.String(16), nullable=False, index=True)
    # customer / supplier
    party_type = db.Column(db.String(16), nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("sales_invoices.id"), nullable=True)
    bill_id = db.Column(db.Integer, db.ForeignKey("supplier_bills.id"), nullable=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    # cash / cheque / bank_transfer
    payment_mode = db.Column(db.String(16), nullable=False, default="cash")
    reference_number = db.Column(db.String(64), nullable=True)
    bank_name = db.Column(db.String(120), nullable=True)
    remarks = db.Column(db.Text, nullable=True)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    invoice = db.relationship("SalesInvoice", backref=db.backref("payments", lazy=True))
    bill = db.relationship("SupplierBill", backref=db.backref("payments", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "payment_number": self.payment_number,
            "payment_type": self.payment_type,
            "party_type": self.party_type,
            "customer_id": self.customer_id,
            "supplier_id": self.supplier_id,
            "invoice_id": self.invoice_id,
            "bill_id": self.bill_id,
            "amount_cents": self.amount_cents,
            "payment_mode": self.payment_mode,
            "reference_number": self.reference_number,
            "bank_name": self.bank_name,
            "remarks": self.remarks,
            "payment_date": to_utc_z(self.payment_date),
        }
