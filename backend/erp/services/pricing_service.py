# Overview: Line and document totals for priced documents (quotations, orders, invoices, bills).

"""
Pricing rules (integer cents, tax in basis points):

    line_total = quantity * unit_price - discount
    line_tax   = round_half_up(line_total * tax_rate_bps / 10000)
    total      = sum(line_total)
    tax        = sum(line_tax)
    net        = total + tax - document discount

Totals are computed once when a document is created and stored.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..validation import ValidationError, positive_int, non_negative_int


BPS_DENOMINATOR = 10_000
MAX_TAX_RATE_BPS = 10_000


@dataclass(frozen=True)
class PricedLine:
    item_id: int
    quantity: int
    unit_price_cents: int
    discount_cents: int
    tax_rate_bps: int
    line_total_cents: int
    tax_cents: int
    description: str | None = None

    def as_columns(self) -> dict:
        return {
            "item_id": self.item_id,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "discount_cents": self.discount_cents,
            "tax_rate_bps": self.tax_rate_bps,
            "tax_cents": self.tax_cents,
            "line_total_cents": self.line_total_cents,
        }


@dataclass(frozen=True)
class DocumentTotals:
    total_cents: int
    discount_cents: int
    tax_cents: int
    net_cents: int

    def as_columns(self) -> dict:
        return {
            "total_cents": self.total_cents,
            "discount_cents": self.discount_cents,
            "tax_cents": self.tax_cents,
            "net_cents": self.net_cents,
        }


def round_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounding .5 away from zero."""
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    sign = -1 if numerator < 0 else 1
    return sign * ((abs(numerator) * 2 + denominator) // (2 * denominator))


def price_line(raw: dict, index: int = 0) -> PricedLine:
    """Validate one incoming line dict and compute its totals."""
    if not isinstance(raw, dict):
        raise ValidationError(f"lines[{index}] must be an object")

    item_id = positive_int(raw.get("item_id"), f"lines[{index}].item_id")
    quantity = positive_int(raw.get("quantity"), f"lines[{index}].quantity")
    unit_price = non_negative_int(raw.get("unit_price_cents"), f"lines[{index}].unit_price_cents")
    discount = non_negative_int(raw.get("discount_cents"), f"lines[{index}].discount_cents", default=0)
    tax_rate = non_negative_int(raw.get("tax_rate_bps"), f"lines[{index}].tax_rate_bps", default=0)
    if tax_rate > MAX_TAX_RATE_BPS:
        raise ValidationError(f"lines[{index}].tax_rate_bps cannot exceed {MAX_TAX_RATE_BPS}")

    gross = quantity * unit_price
    if discount > gross:
        raise ValidationError(f"lines[{index}].discount_cents exceeds line amount")

    line_total = gross - discount
    tax = round_half_up(line_total * tax_rate, BPS_DENOMINATOR)

    description = raw.get("description")
    return PricedLine(
        item_id=item_id,
        quantity=quantity,
        unit_price_cents=unit_price,
        discount_cents=discount,
        tax_rate_bps=tax_rate,
        line_total_cents=line_total,
        tax_cents=tax,
        description=str(description).strip() if description else None,
    )


def price_lines(raw_lines) -> list[PricedLine]:
    if not isinstance(raw_lines, list) or not raw_lines:
        raise ValidationError("At least one line is required")
    return [price_line(raw, index) for index, raw in enumerate(raw_lines)]


def document_totals(lines: list[PricedLine], document_discount_cents=0) -> DocumentTotals:
    discount = non_negative_int(document_discount_cents, "discount_cents", default=0)
    total = sum(line.line_total_cents for line in lines)
    tax = sum(line.tax_cents for line in lines)
    if discount > total + tax:
        raise ValidationError("discount_cents exceeds document amount")
    return DocumentTotals(
        total_cents=total,
        discount_cents=discount,
        tax_cents=tax,
        net_cents=total + tax - discount,
    )
