"""
Net Worth History Service

Records daily net worth snapshots (manually or from the scheduler), reads
them back, and summarizes growth over a window of history.
"""
from sqlalchemy.orm import Session
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence, Union

from networth.crud import crud_networth_history, crud_user
from networth.db.core import NetworthHistoryDB, NetWorthRecordType, NotFoundError
from networth.logging_config import get_logger
from networth.models.net_worth import AutomaticRecordingResult, NetworthHistoryStats, RecordingError
from networth.services.net_worth import compute_net_worth_snapshot

logger = get_logger(__name__)

MAX_REPORTED_ERRORS = 5
PERCENT_PLACES = Decimal("0.0001")


def normalize_snapshot_day(snapshot_date: Union[date, datetime, None] = None) -> date:
    """Collapse a timestamp to its calendar day; history holds one record per day"""
    if snapshot_date is None:
        return date.today()
    if isinstance(snapshot_date, datetime):
        return snapshot_date.date()
    return snapshot_date


def record_snapshot(
    db: Session,
    user_id: Optional[int],
    record_type: NetWorthRecordType = NetWorthRecordType.MANUAL,
    snapshot_date: Union[date, datetime, None] = None
) -> NetworthHistoryDB:
    """
    Compute the user's current net worth and store it for the given day.
    Recording the same day again overwrites that day's record.
    """
    crud_user.require_user(db, user_id)
    day = normalize_snapshot_day(snapshot_date)

    snapshot = compute_net_worth_snapshot(db, user_id)
    record = crud_networth_history.upsert_db_history_record(db, user_id, day, snapshot, record_type)

    logger.info(f"Recorded {record_type.value} net worth {record.net_worth} for user {user_id} on {day}")
    return record


def get_history(
    db: Session,
    user_id: Optional[int],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = 365
) -> List[NetworthHistoryDB]:
    crud_user.require_user(db, user_id)
    return crud_networth_history.read_db_history(db, user_id, start_date, end_date, limit)


def get_latest_snapshot(db: Session, user_id: Optional[int]) -> Optional[NetworthHistoryDB]:
    crud_user.require_user(db, user_id)
    return crud_networth_history.read_db_latest_history_record(db, user_id)


def delete_history_record(db: Session, user_id: Optional[int], record_id: int) -> bool:
    crud_user.require_user(db, user_id)
    deleted = crud_networth_history.delete_db_history_record(db, user_id, record_id)
    if deleted:
        logger.info(f"Deleted history record {record_id} for user {user_id}")
    return deleted


def _percent_change(change: Decimal, base: Decimal) -> Decimal:
    if base == 0:
        return Decimal("0")
    return (change / base * 100).quantize(PERCENT_PLACES, rounding=ROUND_HALF_UP)


def calculate_history_stats(records: Sequence[NetworthHistoryDB]) -> NetworthHistoryStats:
    """
    Growth figures for records in ascending date order.

    Average monthly growth is the total growth percentage scaled to 30 days
    once the window is longer than a month; shorter windows report the total.
    """
    if not records:
        zero = Decimal("0")
        return NetworthHistoryStats(
            total_growth=zero,
            total_growth_percentage=zero,
            average_monthly_growth=zero,
            highest_net_worth=zero,
            lowest_net_worth=zero,
            days_tracked=0,
            latest_net_worth=zero,
            previous_net_worth=zero,
            recent_change=zero,
            recent_change_percentage=zero,
            record_count=0
        )

    first = records[0]
    latest = records[-1]
    previous = records[-2] if len(records) > 1 else first

    total_growth = latest.net_worth - first.net_worth
    total_growth_percentage = _percent_change(total_growth, first.net_worth)

    days_tracked = max(1, (latest.snapshot_date - first.snapshot_date).days)
    if days_tracked > 30:
        average_monthly_growth = (total_growth_percentage / days_tracked * 30).quantize(
            PERCENT_PLACES, rounding=ROUND_HALF_UP
        )
    else:
        average_monthly_growth = total_growth_percentage

    recent_change = latest.net_worth - previous.net_worth
    net_worths = [record.net_worth for record in records]

    return NetworthHistoryStats(
        total_growth=total_growth,
        total_growth_percentage=total_growth_percentage,
        average_monthly_growth=average_monthly_growth,
        highest_net_worth=max(net_worths),
        lowest_net_worth=min(net_worths),
        days_tracked=days_tracked,
        latest_net_worth=latest.net_worth,
        previous_net_worth=previous.net_worth,
        recent_change=recent_change,
        recent_change_percentage=_percent_change(recent_change, previous.net_worth),
        record_count=len(records)
    )


def get_history_stats(
    db: Session,
    user_id: Optional[int],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = 365
) -> NetworthHistoryStats:
    records = get_history(db, user_id, start_date, end_date, limit)
    return calculate_history_stats(records)


def run_automatic_recording(
    db: Session,
    snapshot_date: Union[date, datetime, None] = None,
    user_id: Optional[int] = None
) -> AutomaticRecordingResult:
    """
    Record an AUTOMATIC snapshot for every user (or one user).

    A failure for one user is logged and counted but never stops the run.
    """
    day = normalize_snapshot_day(snapshot_date)

    if user_id is not None:
        user = crud_user.read_db_user(db, user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        users = [user]
    else:
        users = crud_user.read_all_db_users(db)

    logger.info(f"Automatic net worth recording for {day}: {len(users)} user(s)")

    # Plain values; a rollback below expires the ORM instances
    targets = [(user.id, user.email) for user in users]

    successful_records = 0
    errors: List[RecordingError] = []

    for target_id, email in targets:
        try:
            record_snapshot(db, target_id, NetWorthRecordType.AUTOMATIC, day)
            successful_records += 1
        except Exception as e:
            db.rollback()
            logger.error(f"Automatic net worth recording failed for user {target_id} ({email}): {e}")
            errors.append(RecordingError(user_id=target_id, email=email, error=str(e)))

    logger.info(
        f"Automatic net worth recording for {day} complete: "
        f"{successful_records}/{len(targets)} recorded, {len(errors)} failed"
    )

    return AutomaticRecordingResult(
        snapshot_date=day,
        processed_users=len(targets),
        successful_records=successful_records,
        error_count=len(errors),
        errors=errors[:MAX_REPORTED_ERRORS]
    )
