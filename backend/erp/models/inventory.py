from __future__ import annotations

from ..extensions import db
from erp.time_utils import to_utc_z


class StockLedger(db.Model):
    """
    Append-only record of signed stock movements.

    INVARIANT: for every (item, location), SUM(quantity) over ledger rows
    equals ItemStock.quantity. stock_service writes both in one transaction.
    Rows are never updated or deleted.
    """
    __tablename__ = "stock_ledger"
    __table_args__ = (
        db.Index("ix_stock_ledger_item_location", "item_id", "location_id"),
        db.Index("ix_stock_ledger_reference", "reference_type", "reference_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False, index=True)

    # purchase / sale / transfer_in / transfer_out / adjustment / return
    transaction_type = db.Column(db.String(16), nullable=False, index=True)

    # Positive for stock in, negative for stock out
    quantity = db.Column(db.Integer, nullable=False)
    unit_cost_cents = db.Column(db.Integer, nullable=True)

    reference_type = db.Column(db.String(32), nullable=True)
    reference_id = db.Column(db.Integer, nullable=True)
    remarks = db.Column(db.String(255), nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    transaction_date = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        index=True,
    )

    item = db.relationship("Item")
    location = db.relationship("Location")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "item_code": self.item.code if self.item else None,
            "item_name": self.item.name if self.item else None,
            "location_id": self.location_id,
            "location_code": self.location.code if self.location else None,
            "transaction_type": self.transaction_type,
            "quantity": self.quantity,
            "unit_cost_cents": self.unit_cost_cents,
            "reference_type": self.reference_type,
            "reference_id": self.reference_id,
            "remarks": self.remarks,
            "created_by_user_id": self.created_by_user_id,
            "transaction_date": to_utc_z(self.transaction_date),
        }


class ItemStock(db.Model):
    """
    Current on-hand quantity per (item, location).

    Derived from StockLedger and never independently authoritative.
    """
    __tablename__ = "item_stock"
    __table_args__ = (
        db.UniqueConstraint("item_id", "location_id", name="uq_item_stock_item_location"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    item = db.relationship("Item", backref=db.backref("stock", lazy=True))
    location = db.relationship("Location")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "item": self.item.to_dict() if self.item else None,
            "location_id": self.location_id,
            "location": self.location.to_dict() if self.location else None,
            "quantity": self.quantity,
            "updated_at": to_utc_z(self.updated_at),
        }
