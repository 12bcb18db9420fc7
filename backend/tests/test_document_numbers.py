import pytest

from erp.models import DocumentSequence
from erp.services import document_service
from erp.services.document_service import DocumentSequenceError


def test_numbers_increment_per_type(db_session):
    assert document_service.next_document_number("sales_order") == "SO-00001"
    assert document_service.next_document_number("sales_order") == "SO-00002"
    assert document_service.next_document_number("purchase_order") == "PO-00001"
    db_session.commit()

    seq = db_session.query(DocumentSequence).filter_by(document_type="sales_order").one()
    assert seq.next_number == 3


def test_rolled_back_number_is_not_consumed(db_session):
    assert document_service.next_document_number("quotation") == "QT-00001"
    db_session.rollback()
    assert document_service.next_document_number("quotation") == "QT-00001"


def test_voucher_numbers_use_type_prefix(db_session):
    assert document_service.next_voucher_number("journal") == "JO-00001"
    assert document_service.next_voucher_number("payment") == "PA-00001"
    assert document_service.next_voucher_number("journal") == "JO-00002"


def test_unknown_document_type(db_session):
    with pytest.raises(DocumentSequenceError):
        document_service.next_document_number("spaceship")


def test_format_document_number():
    assert document_service.format_document_number("INV", 42) == "INV-00042"
    assert document_service.format_document_number("INV", 123456) == "INV-123456"
