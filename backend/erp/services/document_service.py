# Overview: Service-layer operations for document numbering.

from __future__ import annotations

from ..extensions import db
from ..models import DocumentSequence
from .concurrency import lock_for_update


# document_type -> number prefix
DOCUMENT_PREFIXES = {
    "quotation": "QT",
    "sales_order": "SO",
    "delivery_challan": "DC",
    "sales_invoice": "INV",
    "purchase_requisition": "PR",
    "purchase_order": "PO",
    "supplier_bill": "BILL",
    "letter_of_credit": "LC",
    "payment_incoming": "RCV",
    "payment_outgoing": "PAY",
}

DEFAULT_PAD = 5


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


def voucher_prefix(voucher_type: str) -> str:
    """First two letters of the voucher type, upper-cased (journal -> JO)."""
    prefix = (voucher_type or "").strip()[:2].upper()
    if len(prefix) < 2:
        raise DocumentSequenceError("voucher_type must be at least two characters")
    return prefix


def format_document_number(prefix: str, number: int, pad: int = DEFAULT_PAD) -> str:
    return f"{prefix}-{number:0{pad}d}"


def allocate_number(document_type: str) -> int:
    """
    Reserve the next integer for a document type within the caller's transaction.

    The sequence row is locked for update so concurrent allocations
    serialize on it. Does not commit; the number is only consumed if the
    caller's transaction commits.
    """
    if not document_type:
        raise DocumentSequenceError("document_type is required")

    query = db.session.query(DocumentSequence).filter_by(document_type=document_type)
    seq = lock_for_update(query).first()
    if seq is None:
        seq = DocumentSequence(document_type=document_type, next_number=1)
        db.session.add(seq)

    number = seq.next_number
    seq.next_number = number + 1
    db.session.flush()
    return number


def next_document_number(document_type: str, prefix: str | None = None, pad: int = DEFAULT_PAD) -> str:
    """
    Allocate the next PREFIX-00001 style number for a document type.

    prefix defaults to DOCUMENT_PREFIXES[document_type].
    """
    if prefix is None:
        prefix = DOCUMENT_PREFIXES.get(document_type)
        if prefix is None:
            raise DocumentSequenceError(f"Unknown document type: {document_type}")
    return format_document_number(prefix, allocate_number(document_type), pad)


def next_voucher_number(voucher_type: str) -> str:
    prefix = voucher_prefix(voucher_type)
    return next_document_number(f"voucher_{prefix}", prefix)
