# Overview: Service-layer operations for master data (items, locations, customers, suppliers).

from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Item, Location, Customer, Supplier, Department
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    ConflictError,
    NotFoundError,
    validate_payload,
    enforce_rules_money,
)


ITEM_POLICY = ModelValidationPolicy(
    writable_fields={
        "code", "name", "description", "unit", "category", "barcode",
        "cost_price_cents", "sale_price_cents", "reorder_level", "is_active",
    },
    required_on_create={"code", "name"},
)

LOCATION_POLICY = ModelValidationPolicy(
    writable_fields={"code", "name", "address", "type", "is_active"},
    required_on_create={"code", "name"},
)

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"code", "name", "email", "phone", "address", "credit_limit_cents", "is_active"},
    required_on_create={"code", "name"},
)

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={"code", "name", "email", "phone", "address", "country", "is_active"},
    required_on_create={"code", "name"},
)

# entity -> (model, policy, money fields, searchable columns, unique columns)
ENTITIES = {
    "item": (Item, ITEM_POLICY, ("cost_price_cents", "sale_price_cents"), ("code", "name", "barcode"), ("code", "barcode")),
    "location": (Location, LOCATION_POLICY, (), ("code", "name"), ("code",)),
    "customer": (Customer, CUSTOMER_POLICY, ("credit_limit_cents",), ("code", "name", "email", "phone"), ("code",)),
    "supplier": (Supplier, SUPPLIER_POLICY, (), ("code", "name", "email", "phone"), ("code",)),
}

LOCATION_TYPES = {"warehouse", "site", "store"}


def _entity(kind: str):
    try:
        return ENTITIES[kind]
    except KeyError:
        raise ValueError(f"Unknown master data kind: {kind}")


def _label(kind: str) -> str:
    return kind.capitalize()


def _check_rules(kind: str, patch: dict) -> None:
    _, _, money_fields, _, _ = _entity(kind)
    enforce_rules_money(patch, *money_fields)
    if kind == "item" and patch.get("barcode") == "":
        patch["barcode"] = None
    if kind == "item" and patch.get("reorder_level") is not None and patch["reorder_level"] < 0:
        raise ValidationError("reorder_level must be >= 0")
    if kind == "location" and patch.get("type") is not None and patch["type"] not in LOCATION_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(sorted(LOCATION_TYPES))}")


def _check_unique(kind: str, patch: dict, exclude_id: int | None = None) -> None:
    model, _, _, _, unique_fields = _entity(kind)
    for field in unique_fields:
        value = patch.get(field)
        if not value:
            continue
        query = db.session.query(model).filter(getattr(model, field) == value)
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        if query.first():
            raise ConflictError(f"{_label(kind)} {field} already exists")


def list_records(kind: str, *, search: str | None = None, include_inactive: bool = False) -> list:
    """Active records by default, ordered by name. search matches code/name (and contact fields)."""
    model, _, _, searchable, _ = _entity(kind)
    query = db.session.query(model)
    if not include_inactive:
        query = query.filter(model.is_active.is_(True))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(*[getattr(model, col).ilike(pattern) for col in searchable]))
    return query.order_by(model.name.asc(), model.id.asc()).all()


def get_record(kind: str, record_id: int):
    model, _, _, _, _ = _entity(kind)
    record = db.session.get(model, record_id)
    if not record:
        raise NotFoundError(f"{_label(kind)} not found")
    return record


def create_record(kind: str, payload: dict):
    model, policy, _, _, _ = _entity(kind)
    patch = validate_payload(model=model, payload=payload, policy=policy, partial=False)
    _check_rules(kind, patch)
    _check_unique(kind, patch)

    record = model(**patch)
    db.session.add(record)
    db.session.commit()
    return record


def update_record(kind: str, record_id: int, payload: dict):
    model, policy, _, _, _ = _entity(kind)
    record = get_record(kind, record_id)
    patch = validate_payload(model=model, payload=payload, policy=policy, partial=True)
    _check_rules(kind, patch)
    _check_unique(kind, patch, exclude_id=record.id)

    for key, value in patch.items():
        setattr(record, key, value)
    db.session.commit()
    return record


def deactivate_record(kind: str, record_id: int):
    """Soft delete: history (ledger rows, documents) keeps pointing at the record."""
    record = get_record(kind, record_id)
    record.is_active = False
    db.session.commit()
    return record


def list_departments() -> list[Department]:
    return db.session.query(Department).order_by(Department.name.asc()).all()


def ensure_department(code: str, name: str) -> Department:
    department = db.session.query(Department).filter_by(code=code).first()
    if department:
        return department
    department = Department(code=code, name=name)
    db.session.add(department)
    db.session.commit()
    return department


def ensure_location(code: str, name: str, type: str = "warehouse") -> Location:
    location = db.session.query(Location).filter_by(code=code).first()
    if location:
        return location
    location = Location(code=code, name=name, type=type)
    db.session.add(location)
    db.session.commit()
    return location
