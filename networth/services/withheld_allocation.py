"""
Withheld-Balance Allocator

Bank-held investment products (fixed deposits, provident funds, earmarked
savings, bank-custodied stocks) are money still sitting in a bank account.
Their principal, summed per bank by crud_account.read_withheld_amounts_by_bank,
is subtracted from that bank's accounts so it is not counted both as free cash
and as an investment.
"""
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable


def allocate_withheld_balances(accounts: Iterable, withheld_by_bank: Dict[str, Decimal]) -> Dict[int, Decimal]:
    """
    Free balance per account id.

    A bank's withheld total is split across its accounts in proportion to each
    account's share of the bank's total balance. Banks with nothing withheld, or
    with a zero total balance, leave their accounts unchanged.
    """
    accounts = list(accounts)

    bank_totals: Dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    for account in accounts:
        bank_totals[account.bank_name] += account.balance or Decimal("0")

    free_balances: Dict[int, Decimal] = {}
    for account in accounts:
        balance = account.balance or Decimal("0")
        bank_withheld = withheld_by_bank.get(account.bank_name, Decimal("0"))

        if bank_withheld == 0:
            free_balances[account.id] = balance
            continue

        bank_total = bank_totals[account.bank_name]
        proportion = balance / bank_total if bank_total > 0 else Decimal("0")
        free_balances[account.id] = balance - bank_withheld * proportion

    return free_balances
