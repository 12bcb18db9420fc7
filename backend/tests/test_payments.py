"""
Payments applied to invoices and bills.
"""

import pytest

from erp.models import Customer, Payment
from erp.services import payment_service, purchase_service, sales_service
from erp.validation import ValidationError


@pytest.fixture
def invoice(customer, item):
    return sales_service.create_invoice({
        "customer_id": customer.id,
        "due_date": "2099-12-31",
        "lines": [{"item_id": item.id, "quantity": 5, "unit_price_cents": 200}],
    })


@pytest.fixture
def bill(supplier, item):
    return purchase_service.create_bill({
        "supplier_id": supplier.id,
        "due_date": "2099-12-31",
        "lines": [{"item_id": item.id, "quantity": 2, "unit_price_cents": 750}],
    })


def _receipt(customer, amount, **extra):
    payload = {
        "payment_type": "incoming",
        "customer_id": customer.id,
        "amount_cents": amount,
    }
    payload.update(extra)
    return payment_service.record_payment(payload)


class TestIncoming:

    def test_partial_then_full_payment(self, customer, invoice):
        assert customer.balance_cents == 1000

        first = _receipt(customer, 400, invoice_id=invoice.id)
        assert first.payment_number == "RCV-00001"
        assert first.party_type == "customer"
        invoice = sales_service.get_invoice(invoice.id)
        assert invoice.status == "partial"
        assert invoice.paid_cents == 400
        assert customer.balance_cents == 600

        _receipt(customer, 600, invoice_id=invoice.id, payment_mode="cheque", reference_number="CHQ-1")
        invoice = sales_service.get_invoice(invoice.id)
        assert invoice.status == "paid"
        assert invoice.balance_cents == 0
        assert customer.balance_cents == 0

    def test_overpayment_rejected(self, customer, invoice, db_session):
        with pytest.raises(ValidationError, match="exceeds outstanding"):
            _receipt(customer, 1001, invoice_id=invoice.id)

        assert db_session.query(Payment).count() == 0
        assert sales_service.get_invoice(invoice.id).paid_cents == 0
        assert customer.balance_cents == 1000

    def test_paid_invoice_rejects_more(self, customer, invoice):
        _receipt(customer, 1000, invoice_id=invoice.id)
        with pytest.raises(ValidationError, match="already fully paid"):
            _receipt(customer, 1, invoice_id=invoice.id)

    def test_on_account_payment_reduces_balance(self, customer, invoice):
        payment = _receipt(customer, 250)

        assert payment.invoice_id is None
        assert customer.balance_cents == 750
        assert sales_service.get_invoice(invoice.id).status == "unpaid"

    def test_incoming_cannot_reference_bill(self, customer, bill):
        with pytest.raises(ValidationError):
            _receipt(customer, 100, bill_id=bill.id)

    def test_invoice_of_other_customer_rejected(self, customer, invoice, db_session):
        other = Customer(code="C-009", name="Someone Else")
        db_session.add(other)
        db_session.commit()

        with pytest.raises(ValidationError):
            _receipt(other, 100, invoice_id=invoice.id)

    def test_unknown_payment_mode_rejected(self, customer):
        with pytest.raises(ValidationError):
            _receipt(customer, 100, payment_mode="barter")


class TestOutgoing:

    def test_bill_payment_updates_bill_and_supplier(self, supplier, bill):
        payment = payment_service.record_payment({
            "payment_type": "outgoing",
            "supplier_id": supplier.id,
            "bill_id": bill.id,
            "amount_cents": 1500,
            "payment_mode": "bank_transfer",
            "bank_name": "City Bank",
        })

        assert payment.payment_number == "PAY-00001"
        assert payment.party_type == "supplier"
        assert purchase_service.get_bill(bill.id).status == "paid"
        assert supplier.balance_cents == 0

    def test_outgoing_cannot_reference_invoice(self, supplier, invoice):
        with pytest.raises(ValidationError):
            payment_service.record_payment({
                "payment_type": "outgoing",
                "supplier_id": supplier.id,
                "invoice_id": invoice.id,
                "amount_cents": 100,
            })

    @pytest.mark.parametrize("amount", [0, -5, "12.5", None])
    def test_amount_must_be_positive_integer(self, supplier, amount):
        with pytest.raises(ValidationError):
            payment_service.record_payment({
                "payment_type": "outgoing",
                "supplier_id": supplier.id,
                "amount_cents": amount,
            })

    def test_unknown_payment_type_rejected(self, supplier):
        with pytest.raises(ValidationError):
            payment_service.record_payment({"payment_type": "refund", "amount_cents": 1})
