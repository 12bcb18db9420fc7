# Overview: Service-layer operations for stock; keeps the ledger and the on-hand cache in step.

"""
Stock Ledger Invariants (authoritative)

Model:
- StockLedger is append-only. Each row is a signed quantity movement for one
  (item, location): positive in, negative out.
- ItemStock caches the on-hand quantity per (item, location).
- For every (item, location): SUM(StockLedger.quantity) == ItemStock.quantity.

Atomicity:
- receive(), issue() and transfer() each run as ONE transaction. The ledger
  append, the ItemStock upsert and any item cost update commit together or
  not at all.
- The *_in_transaction() variants flush without committing so document flows
  (delivery challans, purchase receipts) can bundle stock moves with their
  own writes and commit once.

Business rules:
- Quantities are positive integers; the sign comes from the direction.
- An issue larger than the on-hand quantity (missing row == 0) is rejected
  with InsufficientStockError and writes nothing.
- Item cost follows COSTING_METHOD:
    last              cost_price_cents = unit cost of the latest receipt
    weighted_average  (on_hand * old_cost + qty * unit_cost) / (on_hand + qty),
                      half-up to the cent, over the item's on-hand across
                      all locations
"""

from __future__ import annotations

import logging
from datetime import datetime

from flask import current_app
from sqlalchemy import func, or_

from ..extensions import db
from ..models import Item, Location, StockLedger, ItemStock
from ..validation import ValidationError, NotFoundError, positive_int, non_negative_int
from erp.time_utils import utcnow
from .concurrency import lock_for_update, atomic


logger = logging.getLogger(__name__)

INBOUND_TYPES = {"purchase", "transfer_in", "adjustment", "return"}
OUTBOUND_TYPES = {"sale", "transfer_out", "adjustment", "return"}
TRANSACTION_TYPES = INBOUND_TYPES | OUTBOUND_TYPES

COSTING_METHODS = {"last", "weighted_average"}


class InsufficientStockError(ValidationError):
    """Issue quantity exceeds what the location holds."""

    def __init__(self, *, item_id: int, location_id: int, available: int, requested: int):
        super().__init__("Insufficient stock")
        self.item_id = item_id
        self.location_id = location_id
        self.available = available
        self.requested = requested


def _get_active_item(item_id: int) -> Item:
    item = db.session.get(Item, item_id)
    if not item:
        raise NotFoundError("Item not found")
    if not item.is_active:
        raise ValidationError("Item is inactive")
    return item


def _get_active_location(location_id: int) -> Location:
    location = db.session.get(Location, location_id)
    if not location:
        raise NotFoundError("Location not found")
    if not location.is_active:
        raise ValidationError("Location is inactive")
    return location


def _locked_stock_row(item_id: int, location_id: int) -> ItemStock | None:
    query = db.session.query(ItemStock).filter_by(item_id=item_id, location_id=location_id)
    return lock_for_update(query).first()


def _costing_method() -> str:
    method = current_app.config.get("COSTING_METHOD", "last")
    if method not in COSTING_METHODS:
        raise ValueError(f"Unknown COSTING_METHOD: {method}")
    return method


def weighted_average_cost(on_hand: int, old_cost: int | None, quantity: int, unit_cost: int) -> int:
    """Blend a receipt into the running cost, nearest cent (half-up)."""
    if old_cost is None or on_hand <= 0:
        return unit_cost
    units = on_hand + quantity
    total = on_hand * old_cost + quantity * unit_cost
    return (total + units // 2) // units


def get_item_on_hand(item_id: int) -> int:
    """On-hand across every location."""
    total = (
        db.session.query(func.coalesce(func.sum(ItemStock.quantity), 0))
        .filter(ItemStock.item_id == item_id)
        .scalar()
    )
    return int(total or 0)


def _apply_cost(item: Item, quantity: int, unit_cost_cents: int) -> None:
    if _costing_method() == "weighted_average":
        on_hand = get_item_on_hand(item.id)
        item.cost_price_cents = weighted_average_cost(on_hand, item.cost_price_cents, quantity, unit_cost_cents)
    else:
        item.cost_price_cents = unit_cost_cents


def receive_in_transaction(
    *,
    item_id: int,
    location_id: int,
    quantity,
    unit_cost_cents=None,
    reference_type: str | None = None,
    reference_id: int | None = None,
    remarks: str | None = None,
    transaction_type: str = "purchase",
    user_id: int | None = None,
    transaction_date: datetime | None = None,
) -> StockLedger:
    """Receive without committing. Caller owns the transaction."""
    quantity = positive_int(quantity, "quantity")
    if unit_cost_cents is not None:
        unit_cost_cents = non_negative_int(unit_cost_cents, "unit_cost_cents")
    if transaction_type not in INBOUND_TYPES:
        raise ValidationError(f"Invalid inbound transaction type: {transaction_type}")

    item = _get_active_item(item_id)
    _get_active_location(location_id)

    # Cost uses on-hand before this receipt; a zero or missing cost leaves it alone
    if unit_cost_cents:
        _apply_cost(item, quantity, unit_cost_cents)

    entry = StockLedger(
        item_id=item_id,
        location_id=location_id,
        transaction_type=transaction_type,
        quantity=quantity,
        unit_cost_cents=unit_cost_cents,
        reference_type=reference_type,
        reference_id=reference_id,
        remarks=remarks,
        created_by_user_id=user_id,
        transaction_date=transaction_date or utcnow(),
    )
    db.session.add(entry)

    stock = _locked_stock_row(item_id, location_id)
    if stock is None:
        stock = ItemStock(item_id=item_id, location_id=location_id, quantity=0)
        db.session.add(stock)
    stock.quantity = (stock.quantity or 0) + quantity

    db.session.flush()
    return entry


def issue_in_transaction(
    *,
    item_id: int,
    location_id: int,
    quantity,
    reference_type: str | None = None,
    reference_id: int | None = None,
    remarks: str | None = None,
    transaction_type: str = "sale",
    user_id: int | None = None,
    transaction_date: datetime | None = None,
) -> StockLedger:
    """Issue without committing. Caller owns the transaction."""
    quantity = positive_int(quantity, "quantity")
    if transaction_type not in OUTBOUND_TYPES:
        raise ValidationError(f"Invalid outbound transaction type: {transaction_type}")

    item = _get_active_item(item_id)
    _get_active_location(location_id)

    stock = _locked_stock_row(item_id, location_id)
    available = stock.quantity if stock else 0
    if available < quantity:
        raise InsufficientStockError(
            item_id=item_id,
            location_id=location_id,
            available=available,
            requested=quantity,
        )

    entry = StockLedger(
        item_id=item_id,
        location_id=location_id,
        transaction_type=transaction_type,
        quantity=-quantity,
        unit_cost_cents=item.cost_price_cents,
        reference_type=reference_type,
        reference_id=reference_id,
        remarks=remarks,
        created_by_user_id=user_id,
        transaction_date=transaction_date or utcnow(),
    )
    db.session.add(entry)
    stock.quantity = available - quantity

    db.session.flush()
    return entry


def receive(**kwargs) -> StockLedger:
    """
    Append a positive ledger row and increment ItemStock, atomically.

    Accepts the keyword arguments of receive_in_transaction().
    """
    entry = atomic(lambda: receive_in_transaction(**kwargs))
    logger.info(
        "Stock received: item=%s location=%s qty=%s type=%s",
        entry.item_id, entry.location_id, entry.quantity, entry.transaction_type,
    )
    return entry


def issue(**kwargs) -> StockLedger:
    """
    Append a negative ledger row and decrement ItemStock, atomically.

    Raises InsufficientStockError (nothing written) when stock is short.
    """
    entry = atomic(lambda: issue_in_transaction(**kwargs))
    logger.info(
        "Stock issued: item=%s location=%s qty=%s type=%s",
        entry.item_id, entry.location_id, -entry.quantity, entry.transaction_type,
    )
    return entry


def transfer(
    *,
    item_id: int,
    from_location_id: int,
    to_location_id: int,
    quantity,
    remarks: str | None = None,
    user_id: int | None = None,
) -> tuple[StockLedger, StockLedger]:
    """Move stock between locations as one transaction (transfer_out + transfer_in)."""
    if from_location_id == to_location_id:
        raise ValidationError("Source and destination locations must differ")

    def _op():
        now = utcnow()
        out_entry = issue_in_transaction(
            item_id=item_id,
            location_id=from_location_id,
            quantity=quantity,
            transaction_type="transfer_out",
            remarks=remarks,
            user_id=user_id,
            transaction_date=now,
        )
        in_entry = receive_in_transaction(
            item_id=item_id,
            location_id=to_location_id,
            quantity=quantity,
            transaction_type="transfer_in",
            reference_type="stock_ledger",
            reference_id=out_entry.id,
            remarks=remarks,
            user_id=user_id,
            transaction_date=now,
        )
        out_entry.reference_type = "stock_ledger"
        out_entry.reference_id = in_entry.id
        return out_entry, in_entry

    out_entry, in_entry = atomic(_op)
    logger.info(
        "Stock transferred: item=%s qty=%s from=%s to=%s",
        item_id, in_entry.quantity, from_location_id, to_location_id,
    )
    return out_entry, in_entry


def get_on_hand(item_id: int, location_id: int) -> int:
    stock = db.session.query(ItemStock).filter_by(item_id=item_id, location_id=location_id).first()
    return stock.quantity if stock else 0


def list_stock(*, search: str | None = None, location_id: int | None = None) -> list[ItemStock]:
    query = db.session.query(ItemStock).join(Item, Item.id == ItemStock.item_id)
    if location_id:
        query = query.filter(ItemStock.location_id == location_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Item.name.ilike(pattern), Item.code.ilike(pattern)))
    return query.order_by(Item.name.asc(), ItemStock.location_id.asc()).all()


def list_ledger(
    *,
    item_id: int | None = None,
    location_id: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = 500,
) -> list[StockLedger]:
    """Newest first. start/end are inclusive."""
    query = db.session.query(StockLedger)
    if item_id:
        query = query.filter(StockLedger.item_id == item_id)
    if location_id:
        query = query.filter(StockLedger.location_id == location_id)
    if start:
        query = query.filter(StockLedger.transaction_date >= start)
    if end:
        query = query.filter(StockLedger.transaction_date <= end)
    limit = max(1, min(limit, 500))
    return (
        query.order_by(StockLedger.transaction_date.desc(), StockLedger.id.desc())
        .limit(limit)
        .all()
    )


def ledger_balance(item_id: int, location_id: int) -> int:
    total = (
        db.session.query(func.coalesce(func.sum(StockLedger.quantity), 0))
        .filter(StockLedger.item_id == item_id, StockLedger.location_id == location_id)
        .scalar()
    )
    return int(total or 0)


def verify_stock_consistency() -> list[dict]:
    """
    Compare ledger sums with ItemStock for every (item, location) either side knows.

    Returns one dict per mismatch; empty when consistent.
    """
    ledger_sums = {
        (row.item_id, row.location_id): int(row.total or 0)
        for row in db.session.query(
            StockLedger.item_id,
            StockLedger.location_id,
            func.sum(StockLedger.quantity).label("total"),
        ).group_by(StockLedger.item_id, StockLedger.location_id)
    }
    cached = {
        (row.item_id, row.location_id): row.quantity
        for row in db.session.query(ItemStock.item_id, ItemStock.location_id, ItemStock.quantity)
    }

    mismatches = []
    for key in sorted(set(ledger_sums) | set(cached)):
        ledger_qty = ledger_sums.get(key, 0)
        stock_qty = cached.get(key, 0)
        if ledger_qty != stock_qty:
            mismatches.append({
                "item_id": key[0],
                "location_id": key[1],
                "ledger_quantity": ledger_qty,
                "stock_quantity": stock_qty,
            })
    return mismatches
