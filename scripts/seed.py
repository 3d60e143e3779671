import sys
import os
import random
from sqlalchemy.orm import Session
from datetime import date, timedelta
from decimal import Decimal
from faker import Faker

# Add the project root to the Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from networth.db.core import (
    session_local,
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
from networth.services.net_worth import compute_net_worth_snapshot

fake = Faker()

CENTS = Decimal("0.01")


def money(low: float, high: float) -> Decimal:
    return Decimal(str(random.uniform(low, high))).quantize(CENTS)


def seed_history(db: Session, user: UserDB, days: int = 365):
    """
    Backfill a year of daily records as a random walk that ends at the
    user's current net worth.
    """
    snapshot = compute_net_worth_snapshot(db, user.id)
    today = date.today()

    ratio = Decimal("1")
    for offset in range(days):
        day = today - timedelta(days=offset)
        account_balance = (snapshot.total_account_balance * ratio).quantize(CENTS)
        investment_value = (snapshot.total_investment_value * ratio).quantize(CENTS)
        total_assets = account_balance + investment_value + snapshot.total_money_lent

        db.add(NetworthHistoryDB(
            user_id=user.id,
            total_account_balance=account_balance,
            total_investment_value=investment_value,
            total_investment_cost=snapshot.total_investment_cost,
            total_investment_gain=investment_value - snapshot.total_investment_cost,
            total_investment_gain_percentage=snapshot.total_investment_gain_percentage,
            total_money_lent=snapshot.total_money_lent,
            total_assets=total_assets,
            net_worth=total_assets,
            currency=snapshot.currency,
            snapshot_date=day,
            record_type=NetWorthRecordType.MANUAL if offset % 30 == 0 else NetWorthRecordType.AUTOMATIC,
        ))

        # Walking backwards in time, wealth drifts down on average
        ratio *= Decimal(str(random.uniform(0.994, 1.004)))

    db.commit()


def seed_database(user_count: int = 5):
    """
    Fills the database with sample users, their accounts, holdings, loans
    and a year of net worth history.
    """
    db: Session = session_local()

    try:
        # Check if data exists to prevent duplicate seeding
        if db.query(UserDB).count() > 0:
            print("Database appears to be already seeded. Exiting.")
            return

        print("Seeding database with sample data...")

        banks = [fake.company() + " Bank" for _ in range(3)]

        for i in range(user_count):
            print(f"--- Seeding User {i+1}/{user_count} ---")

            user = UserDB(
                email=fake.unique.email(),
                username=fake.unique.user_name(),
                currency=random.choice(["USD", "USD", "EUR", "INR"]),
            )
            db.add(user)
            db.flush()

            # Accounts, two per bank for the first bank so withheld amounts are shared
            account_specs = [
                (banks[0], AccountType.SAVINGS, "Savings", money(10000, 40000)),
                (banks[0], AccountType.SALARY, "Salary", money(2000, 9000)),
                (banks[1], AccountType.CHECKING, "Checking", money(1000, 6000)),
                (banks[2], AccountType.CURRENT, "Current", money(0, 3000)),
            ]
            accounts = []
            for bank_name, account_type, label, balance in account_specs:
                account = AccountDB(
                    user_id=user.id,
                    account_name=f"{bank_name} {label}",
                    bank_name=bank_name,
                    account_type=account_type,
                    balance=balance,
                )
                db.add(account)
                accounts.append(account)
            db.flush()

            # Investments: market holdings plus bank-held deposits
            print("Creating investments...")
            for symbol in random.sample(["AAPL", "MSFT", "GOOGL", "VTI", "NVDA"], 3):
                purchase_price = money(50, 400)
                db.add(InvestmentDB(
                    user_id=user.id,
                    account_id=accounts[0].id if random.random() < 0.3 else None,
                    name=symbol,
                    investment_type=InvestmentType.STOCKS,
                    symbol=symbol,
                    quantity=Decimal(random.randint(1, 40)),
                    purchase_price=purchase_price,
                    current_price=(purchase_price * Decimal(str(random.uniform(0.7, 1.6)))).quantize(CENTS),
                    purchase_date=fake.date_between(start_date="-3y", end_date="-30d"),
                ))

            for investment_type, name in [
                (InvestmentType.FIXED_DEPOSIT, "Fixed Deposit"),
                (InvestmentType.EMERGENCY_FUND, "Emergency Fund"),
            ]:
                principal = money(1000, 8000)
                db.add(InvestmentDB(
                    user_id=user.id,
                    account_id=random.choice(accounts[:2]).id,
                    name=name,
                    investment_type=investment_type,
                    quantity=Decimal("1"),
                    purchase_price=principal,
                    current_price=principal,
                    purchase_date=fake.date_between(start_date="-2y", end_date="-60d"),
                ))

            gold_price = money(1500, 2500)
            db.add(InvestmentDB(
                user_id=user.id,
                name="Gold",
                investment_type=InvestmentType.GOLD,
                quantity=Decimal(random.randint(1, 10)),
                purchase_price=gold_price,
                current_price=(gold_price * Decimal("1.1")).quantize(CENTS),
            ))

            # Money lent
            print("Creating debts and repayments...")
            for _ in range(random.randint(1, 3)):
                lent_date = fake.date_between(start_date="-2y", end_date="-30d")
                amount = money(500, 10000)
                debt = DebtDB(
                    user_id=user.id,
                    borrower_name=fake.name(),
                    amount=amount,
                    interest_rate=Decimal(random.choice(["0", "4.5", "8", "12"])),
                    lent_date=lent_date,
                    due_date=lent_date + timedelta(days=random.choice([180, 365, 730])),
                    status=random.choice([DebtStatus.ACTIVE, DebtStatus.ACTIVE, DebtStatus.PARTIALLY_PAID, DebtStatus.FULLY_PAID]),
                    purpose=fake.sentence(nb_words=4),
                )
                db.add(debt)
                db.flush()

                if debt.status != DebtStatus.ACTIVE:
                    for _ in range(random.randint(1, 4)):
                        db.add(DebtRepaymentDB(
                            debt_id=debt.id,
                            amount=(amount * Decimal(str(random.uniform(0.05, 0.25)))).quantize(CENTS),
                            repayment_date=fake.date_between(start_date=lent_date, end_date="today"),
                            notes=fake.sentence(nb_words=3),
                        ))

            db.commit()

            print("Creating net worth history...")
            seed_history(db, user)

        print("Seeding complete.")

    except Exception as e:
        print(f"An error occurred: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
