"""
Debt Accrual Calculator

Computes what a borrower still owes on money lent by the user: the principal
plus simple interest, net of repayments made up to the evaluation date.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, Optional, Union

from networth.db.core import ValidationFailedError

DAYS_PER_YEAR = Decimal("365")

DateLike = Union[date, datetime]


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def calculate_interest(
    amount,
    interest_rate,
    lent_date: DateLike,
    due_date: Optional[DateLike] = None,
    as_of: Optional[DateLike] = None,
) -> Dict[str, Decimal]:
    """
    Simple interest on a lent amount.

    `interest_rate` is an annual percentage (5 means 5%). Interest accrues over
    the longer of the days elapsed since `lent_date` and the agreed term up to
    `due_date`, on a 365-day year. Elapsed days never go below zero.

    Returns: original_amount, interest_amount, total_with_interest,
    days_elapsed, days_total
    """
    amount = _to_decimal(amount)
    interest_rate = _to_decimal(interest_rate)

    if amount < 0:
        raise ValidationFailedError(f"Debt amount must not be negative, got {amount}")
    if interest_rate < 0:
        raise ValidationFailedError(f"Interest rate must not be negative, got {interest_rate}")

    if interest_rate == 0:
        return {
            'original_amount': amount,
            'interest_amount': Decimal("0"),
            'total_with_interest': amount,
            'days_elapsed': 0,
            'days_total': 0,
        }

    start = _as_date(lent_date)
    current = _as_date(as_of) if as_of is not None else date.today()
    end = _as_date(due_date) if due_date is not None else current

    days_elapsed = max(0, (current - start).days)
    days_total = max(0, (end - start).days)
    days_for_interest = max(days_elapsed, days_total)

    interest_amount = amount * (interest_rate / Decimal("100")) * (Decimal(days_for_interest) / DAYS_PER_YEAR)

    return {
        'original_amount': amount,
        'interest_amount': interest_amount,
        'total_with_interest': amount + interest_amount,
        'days_elapsed': days_elapsed,
        'days_total': days_total,
    }


def calculate_remaining_with_interest(
    amount,
    interest_rate,
    lent_date: DateLike,
    due_date: Optional[DateLike],
    repayments: Iterable,
    as_of: Optional[DateLike] = None,
    status=None,
) -> Dict[str, Decimal]:
    """
    Remaining amount owed, including interest, as of `as_of`.

    Repayments are objects with `amount` and `repayment_date`; those dated after
    `as_of` are ignored. The result never goes below zero, so an overpaid debt
    reports 0 remaining. `status` is accepted for callers that pass the full
    debt record; filtering by status is the snapshot builder's job.
    """
    current = _as_date(as_of) if as_of is not None else date.today()
    interest = calculate_interest(amount, interest_rate, lent_date, due_date, current)

    total_repaid = Decimal("0")
    for repayment in repayments or []:
        repayment_amount = _to_decimal(repayment.amount)
        if repayment_amount < 0:
            raise ValidationFailedError(f"Repayment amount must not be negative, got {repayment_amount}")
        repayment_date = getattr(repayment, "repayment_date", None)
        if repayment_date is not None and _as_date(repayment_date) > current:
            continue
        total_repaid += repayment_amount

    remaining = max(Decimal("0"), interest['total_with_interest'] - total_repaid)

    return {
        'remaining_amount': remaining,
        'total_with_interest': interest['total_with_interest'],
        'interest_amount': interest['interest_amount'],
        'total_repaid': total_repaid,
    }
