"""
Net Worth Snapshot Service

Builds a point-in-time net worth figure for a user from their accounts,
investments and money lent, honouring withheld bank balances and per-entity
inclusion overrides.
"""
import os
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from networth.crud import crud_account, crud_debt, crud_inclusion, crud_investment, crud_user
from networth.db.core import DebtStatus, FetchFailedError, WorthEntityType
from networth.logging_config import get_logger
from networth.models.net_worth import NetWorthSnapshot
from networth.services.debt_accrual import calculate_remaining_with_interest
from networth.services.withheld_allocation import allocate_withheld_balances

logger = get_logger(__name__)

CENTS = Decimal("0.01")
PERCENT_PLACES = Decimal("0.0001")

# Only money still out on loan counts as an asset
LENDING_STATUSES = frozenset({DebtStatus.ACTIVE, DebtStatus.PARTIALLY_PAID})


def _snapshot_fetches() -> List[Tuple[str, Callable[[Session, int], Any]]]:
    return [
        ("accounts", crud_account.read_db_accounts),
        ("investments", crud_investment.read_db_investments),
        ("debts", crud_debt.read_db_debts),
        ("withheld amounts", crud_account.read_withheld_amounts_by_bank),
        ("net worth inclusions", crud_inclusion.read_db_inclusions),
        ("user currency", crud_user.read_user_currency),
    ]


def _run_fetch(bind, fetch: Callable[[Session, int], Any], user_id: int):
    # Sessions are not thread-safe; every read gets its own
    session = Session(bind=bind, autoflush=False)
    try:
        return fetch(session, user_id)
    finally:
        session.close()


def fetch_snapshot_inputs(db: Session, user_id: int) -> Dict[str, Any]:
    """
    Run all snapshot reads concurrently and wait for every one of them.
    The first failing read (in declaration order) aborts the whole computation.
    """
    fetches = _snapshot_fetches()
    workers = int(os.getenv("NET_WORTH_FETCH_WORKERS", str(len(fetches))))
    bind = db.get_bind()

    with ThreadPoolExecutor(max_workers=max(1, workers)) as executor:
        futures = [
            (label, executor.submit(_run_fetch, bind, fetch, user_id))
            for label, fetch in fetches
        ]

    results: Dict[str, Any] = {}
    for label, future in futures:
        try:
            results[label] = future.result()
        except Exception as e:
            logger.error(f"Failed to fetch {label} for user {user_id}: {e}")
            raise FetchFailedError(label, str(e)) from e

    return results


def _round_money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def build_net_worth_snapshot(
    accounts: Iterable,
    investments: Iterable,
    debts: Iterable,
    withheld_by_bank: Dict[str, Decimal],
    inclusions: Iterable,
    currency: str,
    as_of: Optional[datetime] = None,
) -> NetWorthSnapshot:
    """
    Aggregate raw rows into a snapshot.

    Withheld amounts are allocated across all of a bank's accounts before
    inclusion filtering, so excluding one account does not move its share of
    the withheld money onto the others.
    """
    as_of = as_of or datetime.utcnow()
    accounts = list(accounts)
    inclusion_map = crud_inclusion.build_inclusion_map(inclusions)
    free_balances = allocate_withheld_balances(accounts, withheld_by_bank)

    included_accounts = [
        account for account in accounts
        if crud_inclusion.resolve_inclusion(inclusion_map, WorthEntityType.ACCOUNT, account.id)
    ]
    included_investments = [
        investment for investment in investments
        if crud_inclusion.resolve_inclusion(inclusion_map, WorthEntityType.INVESTMENT, investment.id)
    ]
    included_debts = [
        debt for debt in debts
        if crud_inclusion.resolve_inclusion(inclusion_map, WorthEntityType.DEBT, debt.id)
    ]

    total_account_balance = sum((free_balances[account.id] for account in included_accounts), Decimal("0"))

    total_investment_cost = Decimal("0")
    total_investment_value = Decimal("0")
    for investment in included_investments:
        quantity = investment.quantity or Decimal("0")
        total_investment_cost += quantity * (investment.purchase_price or Decimal("0"))
        total_investment_value += quantity * (investment.current_price or Decimal("0"))

    total_money_lent = Decimal("0")
    for debt in included_debts:
        if debt.status not in LENDING_STATUSES:
            continue
        accrual = calculate_remaining_with_interest(
            debt.amount,
            debt.interest_rate,
            debt.lent_date,
            debt.due_date,
            debt.repayments,
            as_of,
            debt.status
        )
        total_money_lent += max(Decimal("0"), accrual['remaining_amount'])

    total_account_balance = _round_money(total_account_balance)
    total_investment_cost = _round_money(total_investment_cost)
    total_investment_value = _round_money(total_investment_value)
    total_money_lent = _round_money(total_money_lent)

    total_investment_gain = total_investment_value - total_investment_cost
    if total_investment_cost > 0:
        total_investment_gain_percentage = (total_investment_gain / total_investment_cost * 100).quantize(
            PERCENT_PLACES, rounding=ROUND_HALF_UP
        )
    else:
        total_investment_gain_percentage = Decimal("0")

    total_assets = total_account_balance + total_investment_value + total_money_lent
    # Money owed by the user is not modelled, so there are no liabilities to subtract
    net_worth = total_assets

    return NetWorthSnapshot(
        total_account_balance=total_account_balance,
        total_investment_value=total_investment_value,
        total_investment_cost=total_investment_cost,
        total_investment_gain=total_investment_gain,
        total_investment_gain_percentage=total_investment_gain_percentage,
        total_money_lent=total_money_lent,
        total_assets=total_assets,
        net_worth=net_worth,
        currency=currency,
        as_of_date=as_of
    )


def compute_net_worth_snapshot(db: Session, user_id: Optional[int], as_of: Optional[datetime] = None) -> NetWorthSnapshot:
    """
    Current net worth for a user.

    Raises UnauthorizedError for a missing or unknown user and FetchFailedError
    naming the read that failed; no partial snapshot is ever returned.
    """
    crud_user.require_user(db, user_id)

    inputs = fetch_snapshot_inputs(db, user_id)

    snapshot = build_net_worth_snapshot(
        accounts=inputs["accounts"],
        investments=inputs["investments"],
        debts=inputs["debts"],
        withheld_by_bank=inputs["withheld amounts"],
        inclusions=inputs["net worth inclusions"],
        currency=inputs["user currency"],
        as_of=as_of
    )

    logger.info(f"Computed net worth {snapshot.net_worth} {snapshot.currency} for user {user_id}")
    return snapshot
