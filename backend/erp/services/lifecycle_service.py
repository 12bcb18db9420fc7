# Overview: Status machines for purchase, sales and accounting documents.

"""
Document Lifecycles

Every document type has its own transition table. A transition not listed
is rejected with LifecycleError (a ValidationError, so the API answers 400).

    requisition:       pending -> approved | rejected; approved -> converted
    purchase_order:    issued -> partial | received | cancelled;
                       partial -> received | cancelled; received -> closed
    letter_of_credit:  open -> shipped -> documents_received -> cleared -> closed
    quotation:         draft -> sent;
                       sent | revised -> revised | accepted | rejected | expired;
                       revised -> sent
    sales_order:       confirmed -> processing | cancelled;
                       processing -> partial | delivered | cancelled;
                       partial -> delivered; delivered -> closed
    invoice / bill:    unpaid -> partial | paid; partial -> paid
    voucher:           draft -> pending | cancelled;
                       pending -> approved | cancelled; approved -> posted

Invoice and bill statuses are driven only by payments.
"""

from __future__ import annotations

from ..models import (
    PurchaseRequisition,
    PurchaseOrder,
    LetterOfCredit,
    Quotation,
    SalesOrder,
    SalesInvoice,
    SupplierBill,
    Voucher,
)
from ..validation import ValidationError


class LifecycleError(ValidationError):
    """Raised when a status change is not allowed from the current status."""
    pass


TRANSITIONS: dict[str, dict[str, set[str]]] = {
    "requisition": {
        "pending": {"approved", "rejected"},
        "approved": {"converted"},
    },
    "purchase_order": {
        "issued": {"partial", "received", "cancelled"},
        "partial": {"received", "cancelled"},
        "received": {"closed"},
    },
    "letter_of_credit": {
        "open": {"shipped"},
        "shipped": {"documents_received"},
        "documents_received": {"cleared"},
        "cleared": {"closed"},
    },
    "quotation": {
        "draft": {"sent"},
        "sent": {"revised", "accepted", "rejected", "expired"},
        "revised": {"sent", "accepted", "rejected", "expired"},
    },
    "sales_order": {
        "confirmed": {"processing", "cancelled"},
        "processing": {"partial", "delivered", "cancelled"},
        "partial": {"delivered"},
        "delivered": {"closed"},
    },
    "invoice": {
        "unpaid": {"partial", "paid"},
        "partial": {"paid"},
    },
    "voucher": {
        "draft": {"pending", "cancelled"},
        "pending": {"approved", "cancelled"},
        "approved": {"posted"},
    },
}

MODEL_KINDS = {
    PurchaseRequisition: "requisition",
    PurchaseOrder: "purchase_order",
    LetterOfCredit: "letter_of_credit",
    Quotation: "quotation",
    SalesOrder: "sales_order",
    SalesInvoice: "invoice",
    SupplierBill: "invoice",
    Voucher: "voucher",
}


def statuses(kind: str) -> set[str]:
    table = TRANSITIONS[kind]
    result = set(table)
    for targets in table.values():
        result |= targets
    return result


def can_transition(kind: str, from_status: str, to_status: str) -> bool:
    if kind not in TRANSITIONS:
        raise ValueError(f"Unknown lifecycle: {kind}")
    return to_status in TRANSITIONS[kind].get(from_status, set())


def kind_of(doc) -> str:
    kind = MODEL_KINDS.get(type(doc))
    if kind is None:
        raise ValueError(f"No lifecycle for {type(doc).__name__}")
    return kind


def transition(doc, new_status: str, *, kind: str | None = None) -> None:
    """
    Move doc to new_status or raise LifecycleError. Does not commit.
    """
    kind = kind or kind_of(doc)
    if new_status not in statuses(kind):
        raise LifecycleError(f"Invalid status '{new_status}'")
    if not can_transition(kind, doc.status, new_status):
        raise LifecycleError(f"Cannot change status from '{doc.status}' to '{new_status}'")
    doc.status = new_status


def advance(doc, new_status: str, *, kind: str | None = None) -> None:
    """Like transition(), but staying in the current status is a no-op."""
    if doc.status == new_status:
        return
    transition(doc, new_status, kind=kind)
