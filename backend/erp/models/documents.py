from __future__ import annotations

from ..extensions import db


class DocumentSequence(db.Model):
    """
    Per-document-type counter backing PREFIX-00001 style numbers.

    next_number is the number the next allocation will receive.
    """
    __tablename__ = "document_sequences"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(32), nullable=False, unique=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)


class PricedLineMixin:
    """
    Columns shared by every priced document line.

    Totals are computed by pricing_service at creation and stored; they are
    never recomputed afterwards.
    """
    description = db.Column(db.String(255), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=0)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    line_total_cents = db.Column(db.Integer, nullable=False, default=0)

    def priced_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "discount_cents": self.discount_cents,
            "tax_rate_bps": self.tax_rate_bps,
            "tax_cents": self.tax_cents,
            "line_total_cents": self.line_total_cents,
        }


class DocumentTotalsMixin:
    """total = sum of line totals; net = total + tax - document discount."""
    total_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    net_cents = db.Column(db.Integer, nullable=False, default=0)

    def totals_dict(self) -> dict:
        return {
            "total_cents": self.total_cents,
            "discount_cents": self.discount_cents,
            "tax_cents": self.tax_cents,
            "net_cents": self.net_cents,
        }
