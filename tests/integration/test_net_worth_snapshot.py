"""
Integration tests for computing a live snapshot from the database.

Tests cover:
- The simple, exclusion, withheld-deposit and overpaid-debt scenarios
- User currency and its default
- All-or-nothing failure naming the failing read
- Unauthorized callers
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from networth.crud import crud_debt, crud_inclusion
from networth.db.core import (
    DebtStatus,
    FetchFailedError,
    InvestmentType,
    UnauthorizedError,
    WorthEntityType,
)
from networth.services.net_worth import compute_net_worth_snapshot


class TestSnapshotScenarios:

    def test_single_account(self, db_session, user_factory, account_factory):
        """
        GIVEN one account with balance 1000 and nothing else
        WHEN the snapshot is computed
        THEN every total reflects just that balance
        """
        user = user_factory()
        account_factory(user, Decimal("1000"))

        snapshot = compute_net_worth_snapshot(db_session, user.id)

        assert snapshot.total_account_balance == Decimal("1000")
        assert snapshot.total_investment_value == Decimal("0")
        assert snapshot.total_money_lent == Decimal("0")
        assert snapshot.total_assets == Decimal("1000")
        assert snapshot.net_worth == Decimal("1000")

    def test_excluded_account(self, db_session, user_factory, account_factory):
        user = user_factory()
        account = account_factory(user, Decimal("1000"))
        crud_inclusion.upsert_db_inclusion(db_session, user.id, WorthEntityType.ACCOUNT, account.id, False)

        snapshot = compute_net_worth_snapshot(db_session, user.id)

        assert snapshot.total_account_balance == Decimal("0")
        assert snapshot.total_assets == Decimal("0")

    def test_withheld_fixed_deposit(self, db_session, user_factory, account_factory, investment_factory):
        """
        GIVEN an account of 5000 and a fixed deposit of 2000 held at its bank
        WHEN the snapshot is computed
        THEN the deposit principal is not counted as free cash
        """
        user = user_factory()
        account = account_factory(user, Decimal("5000"))
        investment_factory(
            user,
            InvestmentType.FIXED_DEPOSIT,
            quantity=Decimal("1"),
            purchase_price=Decimal("2000"),
            current_price=Decimal("2100"),
            account=account,
        )

        snapshot = compute_net_worth_snapshot(db_session, user.id)

        assert snapshot.total_account_balance == Decimal("3000")
        assert snapshot.total_investment_value == Decimal("2100")
        assert snapshot.total_assets == Decimal("5100")

    def test_external_investment_does_not_withhold(self, db_session, user_factory, account_factory, investment_factory):
        user = user_factory()
        account = account_factory(user, Decimal("5000"))
        investment_factory(user, InvestmentType.GOLD, purchase_price=Decimal("2000"), account=account)

        snapshot = compute_net_worth_snapshot(db_session, user.id)

        assert snapshot.total_account_balance == Decimal("5000")

    def test_overpaid_debt_clamps_to_zero(self, db_session, user_factory, debt_factory):
        user = user_factory()
        lent = date.today() - timedelta(days=60)
        debt_factory(
            user,
            Decimal("100"),
            lent_date=lent,
            status=DebtStatus.PARTIALLY_PAID,
            repayments=[(Decimal("100"), lent + timedelta(days=10)), (Decimal("50"), lent + timedelta(days=20))],
        )
        debt_factory(user, Decimal("75"), lent_date=lent)

        snapshot = compute_net_worth_snapshot(db_session, user.id)

        assert snapshot.total_money_lent == Decimal("75")

    def test_other_users_data_not_counted(self, db_session, user_factory, account_factory):
        user = user_factory()
        other = user_factory()
        account_factory(user, Decimal("10"))
        account_factory(other, Decimal("99999"))

        snapshot = compute_net_worth_snapshot(db_session, user.id)

        assert snapshot.net_worth == Decimal("10")


class TestSnapshotCurrency:

    def test_user_currency_is_reported(self, db_session, user_factory):
        user = user_factory(currency="EUR")

        snapshot = compute_net_worth_snapshot(db_session, user.id)

        assert snapshot.currency == "EUR"

    def test_missing_currency_falls_back_to_default(self, db_session, user_factory):
        user = user_factory(currency=None)

        snapshot = compute_net_worth_snapshot(db_session, user.id)

        assert snapshot.currency == "USD"


class TestSnapshotFailures:

    def test_failed_read_names_subsystem(self, db_session, user_factory, account_factory, monkeypatch):
        """
        GIVEN the debts read fails
        WHEN the snapshot is computed
        THEN no snapshot is returned and the error names the debts read
        """
        user = user_factory()
        account_factory(user, Decimal("1000"))

        def broken_read(db, user_id):
            raise RuntimeError("connection reset")

        monkeypatch.setattr(crud_debt, "read_db_debts", broken_read)

        with pytest.raises(FetchFailedError) as exc_info:
            compute_net_worth_snapshot(db_session, user.id)

        assert exc_info.value.subsystem == "debts"
        assert str(exc_info.value) == "Failed to fetch debts: connection reset"

    def test_missing_user_is_unauthorized(self, db_session):
        with pytest.raises(UnauthorizedError):
            compute_net_worth_snapshot(db_session, None)

    def test_unknown_user_is_unauthorized(self, db_session):
        with pytest.raises(UnauthorizedError):
            compute_net_worth_snapshot(db_session, 404)
