"""
Pytest configuration and fixtures for the net worth service tests.

This module provides:
- A file-backed SQLite database per test (snapshot reads run on worker
  threads with their own connections, so an in-memory database won't do)
- Factory helpers for users, accounts, investments, debts and history rows
- A FastAPI test client wired to the test database
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Iterable, Optional, Tuple

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient

from networth.main import app
from networth.db.core import (
    Base,
    get_db,
    UserDB,
    AccountDB,
    InvestmentDB,
    DebtDB,
    DebtRepaymentDB,
    NetworthHistoryDB,
    AccountType,
    InvestmentType,
    DebtStatus,
    NetWorthRecordType,
)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine(tmp_path):
    """Create a test database engine backed by a temporary SQLite file."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'networth_test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Session:
    """Create test database session."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def user_factory(db_session) -> Callable[..., UserDB]:
    """Factory for creating test users."""
    counter = {"n": 0}

    def _create_user(currency: Optional[str] = "USD") -> UserDB:
        counter["n"] += 1
        user = UserDB(
            email=f"user{counter['n']}@example.com",
            username=f"user{counter['n']}",
            currency=currency,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _create_user


@pytest.fixture
def account_factory(db_session) -> Callable[..., AccountDB]:
    """Factory for creating bank accounts."""
    counter = {"n": 0}

    def _create_account(
        user: UserDB,
        balance: Decimal,
        bank_name: str = "First Bank",
        account_type: AccountType = AccountType.SAVINGS,
        account_name: Optional[str] = None,
    ) -> AccountDB:
        counter["n"] += 1
        account = AccountDB(
            user_id=user.id,
            account_name=account_name or f"{bank_name} Account {counter['n']}",
            bank_name=bank_name,
            account_type=account_type,
            balance=Decimal(balance),
        )
        db_session.add(account)
        db_session.commit()
        db_session.refresh(account)
        return account

    return _create_account


@pytest.fixture
def investment_factory(db_session) -> Callable[..., InvestmentDB]:
    """Factory for creating investments, optionally held at a bank account."""

    def _create_investment(
        user: UserDB,
        investment_type: InvestmentType = InvestmentType.STOCKS,
        quantity: Decimal = Decimal("1"),
        purchase_price: Decimal = Decimal("100"),
        current_price: Optional[Decimal] = None,
        account: Optional[AccountDB] = None,
        name: Optional[str] = None,
    ) -> InvestmentDB:
        investment = InvestmentDB(
            user_id=user.id,
            account_id=account.id if account else None,
            name=name or investment_type.value.title(),
            investment_type=investment_type,
            quantity=Decimal(quantity),
            purchase_price=Decimal(purchase_price),
            current_price=Decimal(current_price if current_price is not None else purchase_price),
        )
        db_session.add(investment)
        db_session.commit()
        db_session.refresh(investment)
        return investment

    return _create_investment


@pytest.fixture
def debt_factory(db_session) -> Callable[..., DebtDB]:
    """Factory for money lent, with optional (amount, date) repayments."""

    def _create_debt(
        user: UserDB,
        amount: Decimal,
        interest_rate: Decimal = Decimal("0"),
        lent_date: Optional[date] = None,
        due_date: Optional[date] = None,
        status: DebtStatus = DebtStatus.ACTIVE,
        repayments: Iterable[Tuple[Decimal, date]] = (),
    ) -> DebtDB:
        debt = DebtDB(
            user_id=user.id,
            borrower_name="Borrower",
            amount=Decimal(amount),
            interest_rate=Decimal(interest_rate),
            lent_date=lent_date or date.today() - timedelta(days=30),
            due_date=due_date,
            status=status,
        )
        db_session.add(debt)
        db_session.flush()
        for repayment_amount, repayment_date in repayments:
            db_session.add(DebtRepaymentDB(
                debt_id=debt.id,
                amount=Decimal(repayment_amount),
                repayment_date=repayment_date,
            ))
        db_session.commit()
        db_session.refresh(debt)
        return debt

    return _create_debt


@pytest.fixture
def history_factory(db_session) -> Callable[..., NetworthHistoryDB]:
    """Factory for stored history rows with a given net worth."""

    def _create_record(
        user: UserDB,
        snapshot_date: date,
        net_worth: Decimal,
        record_type: NetWorthRecordType = NetWorthRecordType.AUTOMATIC,
    ) -> NetworthHistoryDB:
        net_worth = Decimal(net_worth)
        record = NetworthHistoryDB(
            user_id=user.id,
            total_account_balance=net_worth,
            total_investment_value=Decimal("0"),
            total_investment_cost=Decimal("0"),
            total_investment_gain=Decimal("0"),
            total_investment_gain_percentage=Decimal("0"),
            total_money_lent=Decimal("0"),
            total_assets=net_worth,
            net_worth=net_worth,
            currency="USD",
            snapshot_date=snapshot_date,
            record_type=record_type,
        )
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record

    return _create_record


# =============================================================================
# API TEST CLIENT FIXTURE
# =============================================================================


@pytest.fixture
def client(test_engine) -> TestClient:
    """Provide FastAPI test client with test database."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

    def override_get_db():
        session = TestSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[UserDB], dict]:
    """Request headers identifying the given user."""

    def _headers(user: UserDB) -> dict:
        return {"X-User-Id": str(user.id)}

    return _headers
