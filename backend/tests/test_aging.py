"""
Receivables/payables aging.

Buckets: days past due <= 0 current, <= 30 days30, <= 60 days60, else days90Plus.
"""

from datetime import date, timedelta

import pytest

from erp.services.aging_service import bucket_for, compute_aging


TODAY = date(2026, 6, 30)


def _doc(days_overdue, total=10_000, paid=0, status="unpaid"):
    return {
        "total_cents": total,
        "paid_cents": paid,
        "due_date": TODAY - timedelta(days=days_overdue),
        "status": status,
    }


@pytest.mark.parametrize(
    "days,bucket",
    [(-5, "current"), (0, "current"), (1, "days30"), (30, "days30"), (31, "days60"),
     (45, "days60"), (60, "days60"), (61, "days90Plus"), (95, "days90Plus")],
)
def test_bucket_boundaries(days, bucket):
    assert bucket_for(days) == bucket


def test_invoice_45_days_overdue_is_days60():
    report = compute_aging([_doc(45)], TODAY)
    assert report.days60 == 10_000
    assert report.rows[0]["bucket"] == "days60"
    assert report.rows[0]["days_overdue"] == 45


def test_bill_95_days_overdue_is_days90_plus():
    report = compute_aging([_doc(95, total=7_500)], TODAY)
    assert report.to_dict()["aging"]["days90Plus"] == 7_500


def test_buckets_sum_to_total_of_balances():
    docs = [_doc(-3), _doc(10, paid=2_500), _doc(40), _doc(70, total=3_000), _doc(200, paid=9_999)]
    report = compute_aging(docs, TODAY)

    outstanding = sum(d["total_cents"] - d["paid_cents"] for d in docs)
    assert report.total == outstanding
    assert report.current + report.days30 + report.days60 + report.days90_plus == outstanding
    assert report.to_dict()["total"] == outstanding


def test_paid_documents_are_skipped():
    report = compute_aging([_doc(50, paid=10_000, status="paid"), _doc(50)], TODAY)
    assert len(report.rows) == 1
    assert report.total == 10_000


def test_future_due_date_has_zero_days_overdue():
    report = compute_aging([_doc(-10)], TODAY)
    assert report.rows[0]["days_overdue"] == 0
    assert report.current == 10_000


def test_accepts_iso_strings():
    report = compute_aging(
        [{"total_cents": 100, "paid_cents": 0, "due_date": "2026-05-01", "status": "partial"}], TODAY
    )
    assert report.days60 == 100
