"""
Chart of accounts, vouchers and the trial balance.
"""

import pytest

from erp.models import ChartOfAccount, Voucher
from erp.services import accounts_service
from erp.services.lifecycle_service import LifecycleError
from erp.validation import ValidationError, ConflictError


@pytest.fixture
def cash(db_session):
    return accounts_service.create_account({"code": "1100", "name": "Cash", "account_type": "asset"})


@pytest.fixture
def revenue(db_session):
    return accounts_service.create_account({"code": "4100", "name": "Sales", "account_type": "income"})


def _journal(debit_account, credit_account, amount=1000, **extra):
    payload = {
        "voucher_type": "journal",
        "narrative": "Cash sale",
        "entries": [
            {"account_id": debit_account.id, "debit_cents": amount},
            {"account_id": credit_account.id, "credit_cents": amount},
        ],
    }
    payload.update(extra)
    return accounts_service.create_voucher(payload)


class TestChartOfAccounts:

    def test_duplicate_code_conflicts(self, cash):
        with pytest.raises(ConflictError):
            accounts_service.create_account({"code": "1100", "name": "Petty cash", "account_type": "asset"})

    def test_parent_must_share_type(self, cash):
        with pytest.raises(ValidationError):
            accounts_service.create_account(
                {"code": "4200", "name": "Misc", "account_type": "income", "parent_id": cash.id}
            )

    def test_invalid_type_rejected(self, db_session):
        with pytest.raises(ValidationError):
            accounts_service.create_account({"code": "9000", "name": "Odd", "account_type": "other"})

    def test_seed_default_accounts_is_idempotent(self, db_session):
        created = accounts_service.seed_default_accounts()
        assert created == len(accounts_service.DEFAULT_ACCOUNTS)
        assert accounts_service.seed_default_accounts() == 0

        receivable = db_session.query(ChartOfAccount).filter_by(code="1200").one()
        assert receivable.parent.code == "1000"


class TestVouchers:

    def test_balanced_voucher_created_as_draft(self, cash, revenue):
        voucher = _journal(cash, revenue, 2500)

        assert voucher.status == "draft"
        assert voucher.voucher_number == "JO-00001"
        assert voucher.total_cents == 2500
        assert len(voucher.entries) == 2

    def test_numbering_is_per_voucher_type(self, cash, revenue):
        first = _journal(cash, revenue)
        second = _journal(cash, revenue)
        receipt = _journal(cash, revenue, voucher_type="receipt")

        assert (first.voucher_number, second.voucher_number) == ("JO-00001", "JO-00002")
        assert receipt.voucher_number == "RE-00001"

    def test_unbalanced_voucher_rejected(self, cash, revenue, db_session):
        with pytest.raises(ValidationError, match="not balanced"):
            accounts_service.create_voucher({
                "voucher_type": "journal",
                "entries": [
                    {"account_id": cash.id, "debit_cents": 1000},
                    {"account_id": revenue.id, "credit_cents": 900},
                ],
            })
        assert db_session.query(Voucher).count() == 0

    @pytest.mark.parametrize("entry", [
        {"debit_cents": 100, "credit_cents": 100},
        {"debit_cents": 0, "credit_cents": 0},
        {},
    ])
    def test_entry_needs_exactly_one_side(self, cash, revenue, entry):
        with pytest.raises(ValidationError):
            accounts_service.create_voucher({
                "voucher_type": "journal",
                "entries": [
                    {"account_id": cash.id, **entry},
                    {"account_id": revenue.id, "credit_cents": 100},
                ],
            })

    def test_single_entry_rejected(self, cash):
        with pytest.raises(ValidationError):
            accounts_service.create_voucher({
                "voucher_type": "journal",
                "entries": [{"account_id": cash.id, "debit_cents": 100}],
            })

    def test_unknown_voucher_type_rejected(self, cash, revenue):
        with pytest.raises(ValidationError):
            _journal(cash, revenue, voucher_type="memo")

    def test_submit_approve_post(self, cash, revenue, admin_user):
        voucher = _journal(cash, revenue)

        accounts_service.submit_voucher(voucher.id)
        voucher = accounts_service.approve_voucher(voucher.id, user_id=admin_user.id)
        assert voucher.status == "approved"
        assert voucher.approved_by_user_id == admin_user.id
        assert voucher.approved_at is not None

        voucher = accounts_service.post_voucher(voucher.id)
        assert voucher.status == "posted"
        assert voucher.posted_at is not None

    def test_approve_from_draft_passes_through_pending(self, cash, revenue):
        voucher = accounts_service.approve_voucher(_journal(cash, revenue).id)
        assert voucher.status == "approved"

    def test_draft_cannot_be_posted(self, cash, revenue):
        voucher = _journal(cash, revenue)
        with pytest.raises(LifecycleError):
            accounts_service.post_voucher(voucher.id)

    def test_posted_voucher_cannot_be_cancelled(self, cash, revenue):
        voucher = _journal(cash, revenue)
        accounts_service.approve_voucher(voucher.id)
        accounts_service.post_voucher(voucher.id)

        with pytest.raises(LifecycleError):
            accounts_service.cancel_voucher(voucher.id)


class TestTrialBalance:

    def test_only_posted_vouchers_count(self, cash, revenue):
        posted = _journal(cash, revenue, 3000)
        accounts_service.approve_voucher(posted.id)
        accounts_service.post_voucher(posted.id)
        _journal(cash, revenue, 999)

        result = accounts_service.trial_balance()

        assert result["balanced"] is True
        assert result["total_debit_cents"] == 3000
        assert result["total_credit_cents"] == 3000
        by_code = {row["code"]: row for row in result["accounts"]}
        assert by_code["1100"]["balance_cents"] == 3000
        assert by_code["4100"]["balance_cents"] == 3000

    def test_empty_ledger(self, db_session):
        result = accounts_service.trial_balance()
        assert result["accounts"] == []
        assert result["balanced"] is True
