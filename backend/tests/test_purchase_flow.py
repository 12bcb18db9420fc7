"""
Procurement flow: requisition -> purchase order -> goods receipt -> bill,
plus letters of credit and landed cost.
"""

from datetime import date

import pytest

from erp.models import Supplier, StockLedger
from erp.services import aging_service, payment_service, purchase_service, stock_service
from erp.services.lifecycle_service import LifecycleError
from erp.validation import ValidationError


def _order_payload(supplier, item, quantity=10, unit_price_cents=450, **extra):
    payload = {
        "supplier_id": supplier.id,
        "lines": [{"item_id": item.id, "quantity": quantity, "unit_price_cents": unit_price_cents}],
    }
    payload.update(extra)
    return payload


class TestRequisitions:

    def test_approved_requisition_converts_to_order(self, supplier, item, manager_user):
        requisition = purchase_service.create_requisition(
            {"lines": [{"item_id": item.id, "quantity": 10}]},
            user_id=manager_user.id,
        )
        assert requisition.status == "pending"
        assert requisition.pr_number == "PR-00001"

        purchase_service.approve_requisition(requisition.id, user_id=manager_user.id)
        order = purchase_service.create_purchase_order(
            _order_payload(supplier, item, requisition_id=requisition.id)
        )

        assert order.status == "issued"
        assert order.requisition_id == requisition.id
        assert purchase_service.get_requisition(requisition.id).status == "converted"

    def test_pending_requisition_cannot_convert(self, supplier, item, manager_user):
        requisition = purchase_service.create_requisition(
            {"lines": [{"item_id": item.id, "quantity": 1}]},
            user_id=manager_user.id,
        )

        with pytest.raises(ValidationError):
            purchase_service.create_purchase_order(
                _order_payload(supplier, item, requisition_id=requisition.id)
            )
        assert purchase_service.get_requisition(requisition.id).status == "pending"

    def test_rejected_requisition_cannot_be_approved(self, item, manager_user):
        requisition = purchase_service.create_requisition(
            {"lines": [{"item_id": item.id, "quantity": 1}]},
            user_id=manager_user.id,
        )
        purchase_service.reject_requisition(requisition.id, user_id=manager_user.id)

        with pytest.raises(LifecycleError):
            purchase_service.approve_requisition(requisition.id, user_id=manager_user.id)

    def test_requisition_needs_lines(self, db_session):
        with pytest.raises(ValidationError):
            purchase_service.create_requisition({"lines": []})


class TestGoodsReceipt:

    def test_partial_then_full_receipt(self, supplier, item, warehouse):
        order = purchase_service.create_purchase_order(_order_payload(supplier, item, quantity=10))
        line_id = order.lines[0].id

        order = purchase_service.receive_purchase_order(
            order.id,
            {"location_id": warehouse.id, "lines": [{"purchase_order_line_id": line_id, "quantity": 4}]},
        )
        assert order.status == "partial"
        assert stock_service.get_on_hand(item.id, warehouse.id) == 4

        order = purchase_service.receive_purchase_order(
            order.id,
            {"location_id": warehouse.id, "lines": [{"purchase_order_line_id": line_id, "quantity": 6}]},
        )
        assert order.status == "received"
        assert order.lines[0].quantity_received == 10
        assert stock_service.get_on_hand(item.id, warehouse.id) == 10
        assert item.cost_price_cents == 450

    def test_receipt_ledger_rows_reference_the_order(self, supplier, item, warehouse, db_session):
        order = purchase_service.create_purchase_order(_order_payload(supplier, item, quantity=3))
        purchase_service.receive_purchase_order(
            order.id,
            {"location_id": warehouse.id, "lines": [{"purchase_order_line_id": order.lines[0].id, "quantity": 3}]},
        )

        entry = db_session.query(StockLedger).one()
        assert entry.transaction_type == "purchase"
        assert entry.reference_type == "purchase_order"
        assert entry.reference_id == order.id
        assert entry.unit_cost_cents == 450

    def test_over_receipt_rejected(self, supplier, item, warehouse, db_session):
        order = purchase_service.create_purchase_order(_order_payload(supplier, item, quantity=5))

        with pytest.raises(ValidationError):
            purchase_service.receive_purchase_order(
                order.id,
                {"location_id": warehouse.id, "lines": [{"purchase_order_line_id": order.lines[0].id, "quantity": 6}]},
            )
        assert stock_service.get_on_hand(item.id, warehouse.id) == 0
        assert db_session.query(StockLedger).count() == 0

    def test_cancelled_order_cannot_receive(self, supplier, item, warehouse):
        order = purchase_service.create_purchase_order(_order_payload(supplier, item))
        purchase_service.update_purchase_order_status(order.id, "cancelled")

        with pytest.raises(ValidationError):
            purchase_service.receive_purchase_order(
                order.id,
                {"location_id": warehouse.id, "lines": [{"purchase_order_line_id": order.lines[0].id, "quantity": 1}]},
            )


class TestBills:

    def test_bill_increases_supplier_balance(self, supplier, item):
        bill = purchase_service.create_bill({
            "supplier_id": supplier.id,
            "bill_date": "2026-10-01",
            "due_date": "2026-10-31",
            "lines": [{"item_id": item.id, "quantity": 4, "unit_price_cents": 500, "tax_rate_bps": 500}],
        })

        assert bill.status == "unpaid"
        assert bill.total_cents == 2000
        assert bill.tax_cents == 100
        assert supplier.balance_cents == bill.net_cents == 2100

    def test_discounted_taxed_bill_is_owed_at_net(self, supplier, item):
        bill = purchase_service.create_bill({
            "supplier_id": supplier.id,
            "bill_date": "2026-10-01",
            "due_date": "2026-10-31",
            "discount_cents": 3000,
            "lines": [{"item_id": item.id, "quantity": 10, "unit_price_cents": 1000, "tax_rate_bps": 1000}],
        })

        assert (bill.total_cents, bill.tax_cents, bill.net_cents) == (10000, 1000, 8000)
        assert bill.balance_cents == 8000
        assert supplier.balance_cents == 8000

        report = aging_service.payables_report(today=date(2026, 11, 15))
        assert report.days30 == 8000
        assert report.total == 8000

        with pytest.raises(ValidationError, match="exceeds outstanding"):
            payment_service.record_payment({
                "payment_type": "outgoing",
                "supplier_id": supplier.id,
                "bill_id": bill.id,
                "amount_cents": 8001,
            })

        payment_service.record_payment({
            "payment_type": "outgoing",
            "supplier_id": supplier.id,
            "bill_id": bill.id,
            "amount_cents": 8000,
        })
        assert purchase_service.get_bill(bill.id).status == "paid"
        assert supplier.balance_cents == 0
        assert aging_service.payables_report(today=date(2026, 11, 15)).total == 0

    def test_bill_requires_due_date(self, supplier, item):
        with pytest.raises(ValidationError):
            purchase_service.create_bill({
                "supplier_id": supplier.id,
                "lines": [{"item_id": item.id, "quantity": 1, "unit_price_cents": 100}],
            })

    def test_due_date_before_bill_date_rejected(self, supplier, item):
        with pytest.raises(ValidationError):
            purchase_service.create_bill({
                "supplier_id": supplier.id,
                "bill_date": "2026-10-10",
                "due_date": "2026-10-01",
                "lines": [{"item_id": item.id, "quantity": 1, "unit_price_cents": 100}],
            })


class TestLettersOfCredit:

    def _open_lc(self, supplier, **extra):
        payload = {
            "supplier_id": supplier.id,
            "bank_name": "City Bank",
            "amount_cents": 10_000,
            "currency": "usd",
            "exchange_rate_e4": 1_100_000,
        }
        payload.update(extra)
        return purchase_service.create_letter_of_credit(payload)

    def test_landed_cost_converts_to_base(self, supplier):
        lc = self._open_lc(supplier)
        assert lc.currency == "USD"
        assert lc.status == "open"

        purchase_service.add_lc_cost(lc.id, {"cost_type": "bank_charge", "amount_cents": 5_000})
        purchase_service.add_lc_cost(
            lc.id, {"cost_type": "freight", "amount_cents": 15, "currency": "USD", "exchange_rate_e4": 1_100_000}
        )

        result = purchase_service.landed_cost(lc.id)
        assert result["lc_amount_base_cents"] == 1_100_000
        assert result["costs_base_cents"] == 5_000 + 1_650
        assert result["total_landed_cents"] == 1_106_650

    def test_closed_lc_rejects_costs(self, supplier):
        lc = self._open_lc(supplier)
        for status in ("shipped", "documents_received", "cleared", "closed"):
            purchase_service.update_letter_of_credit_status(lc.id, status)

        with pytest.raises(ValidationError):
            purchase_service.add_lc_cost(lc.id, {"cost_type": "insurance", "amount_cents": 100})

    def test_lc_status_cannot_skip_steps(self, supplier):
        lc = self._open_lc(supplier)
        with pytest.raises(LifecycleError):
            purchase_service.update_letter_of_credit_status(lc.id, "cleared")

    def test_foreign_order_links_lc_of_same_supplier(self, supplier, item):
        lc = self._open_lc(supplier)
        order = purchase_service.create_purchase_order(
            _order_payload(supplier, item, order_type="foreign", lc_id=lc.id)
        )
        assert order.lc_id == lc.id

    def test_lc_of_other_supplier_rejected(self, supplier, item, db_session):
        other = Supplier(code="S-002", name="Other Steel")
        db_session.add(other)
        db_session.commit()
        lc = self._open_lc(other)

        with pytest.raises(ValidationError):
            purchase_service.create_purchase_order(
                _order_payload(supplier, item, order_type="foreign", lc_id=lc.id)
            )

    def test_local_order_cannot_reference_lc(self, supplier, item):
        lc = self._open_lc(supplier)
        with pytest.raises(ValidationError):
            purchase_service.create_purchase_order(_order_payload(supplier, item, lc_id=lc.id))
