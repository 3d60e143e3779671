from sqlalchemy.orm import Session, joinedload
from typing import List, Dict, Iterable
from collections import defaultdict
from decimal import Decimal

from networth.db.core import AccountDB, InvestmentDB, InvestmentType, EXTERNAL_INVESTMENT_TYPES


# ===== DATABASE OPERATIONS - READS =====

def read_db_accounts(db: Session, user_id: int) -> List[AccountDB]:
    """All accounts of a user, ordered by bank then name"""
    return db.query(AccountDB).filter(
        AccountDB.user_id == user_id
    ).order_by(AccountDB.bank_name, AccountDB.account_name).all()


def read_withheld_amounts_by_bank(db: Session, user_id: int) -> Dict[str, Decimal]:
    """
    Money earmarked by bank-held investments, summed per bank name.
    Only investments linked to an account and not of an external type count.
    """
    withheld_investments = db.query(InvestmentDB).options(
        joinedload(InvestmentDB.account)
    ).filter(
        InvestmentDB.user_id == user_id,
        InvestmentDB.account_id.isnot(None),
        InvestmentDB.investment_type.notin_(list(EXTERNAL_INVESTMENT_TYPES))
    ).all()

    return calculate_withheld_by_bank(withheld_investments)


# ===== WITHHELD AMOUNTS =====

def is_bank_held(investment) -> bool:
    return investment.account_id is not None and investment.investment_type not in EXTERNAL_INVESTMENT_TYPES


def withheld_amount_for_investment(investment) -> Decimal:
    """
    Amount of a bank-held investment parked in its bank.
    Stocks hold quantity * purchase price; every other bank-held type is
    principal-only, so the purchase price alone.
    """
    purchase_price = investment.purchase_price or Decimal("0")
    if investment.investment_type == InvestmentType.STOCKS:
        return (investment.quantity or Decimal("0")) * purchase_price
    return purchase_price


def calculate_withheld_by_bank(investments: Iterable) -> Dict[str, Decimal]:
    """
    Sum withheld amounts per bank name. Investments must have their linked
    `account` loaded; grouping is by bank, not by account.
    """
    withheld_by_bank: Dict[str, Decimal] = defaultdict(lambda: Decimal("0"))

    for investment in investments:
        if not is_bank_held(investment) or investment.account is None:
            continue
        withheld_by_bank[investment.account.bank_name] += withheld_amount_for_investment(investment)

    return dict(withheld_by_bank)
