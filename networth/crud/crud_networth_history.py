from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional, List
from datetime import date, datetime

from networth.logging_config import get_logger
from networth.db.core import NetworthHistoryDB, NetWorthRecordType
from networth.models.net_worth import NetWorthTotals

logger = get_logger(__name__)


SNAPSHOT_FIELDS = (
    "total_account_balance",
    "total_investment_value",
    "total_investment_cost",
    "total_investment_gain",
    "total_investment_gain_percentage",
    "total_money_lent",
    "total_assets",
    "net_worth",
    "currency",
)


# ===== DATABASE OPERATIONS - READS =====

def read_db_history_record_for_day(db: Session, user_id: int, snapshot_date: date) -> Optional[NetworthHistoryDB]:
    return db.query(NetworthHistoryDB).filter(
        NetworthHistoryDB.user_id == user_id,
        NetworthHistoryDB.snapshot_date == snapshot_date
    ).first()


def read_db_history(
    db: Session,
    user_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = 365
) -> List[NetworthHistoryDB]:
    """History records in ascending date order, bounds inclusive"""
    query = db.query(NetworthHistoryDB).filter(NetworthHistoryDB.user_id == user_id)

    if start_date:
        query = query.filter(NetworthHistoryDB.snapshot_date >= start_date)
    if end_date:
        query = query.filter(NetworthHistoryDB.snapshot_date <= end_date)

    return query.order_by(NetworthHistoryDB.snapshot_date.asc()).limit(limit).all()


def read_db_latest_history_record(db: Session, user_id: int) -> Optional[NetworthHistoryDB]:
    return db.query(NetworthHistoryDB).filter(
        NetworthHistoryDB.user_id == user_id
    ).order_by(NetworthHistoryDB.snapshot_date.desc()).first()


# ===== DATABASE OPERATIONS - WRITES =====

def _apply_totals(record: NetworthHistoryDB, totals: NetWorthTotals, record_type: NetWorthRecordType) -> None:
    for field in SNAPSHOT_FIELDS:
        setattr(record, field, getattr(totals, field))
    record.record_type = record_type


def _stage_history_record(
    db: Session,
    user_id: int,
    snapshot_date: date,
    totals: NetWorthTotals,
    record_type: NetWorthRecordType
) -> NetworthHistoryDB:
    record = read_db_history_record_for_day(db, user_id, snapshot_date)
    if record:
        _apply_totals(record, totals, record_type)
        record.updated_at = datetime.utcnow()
        return record

    record = NetworthHistoryDB(user_id=user_id, snapshot_date=snapshot_date)
    _apply_totals(record, totals, record_type)
    db.add(record)
    return record


def upsert_db_history_record(
    db: Session,
    user_id: int,
    snapshot_date: date,
    totals: NetWorthTotals,
    record_type: NetWorthRecordType
) -> NetworthHistoryDB:
    """
    Store the totals for (user, day). An existing record for that day is
    overwritten, including its record type.
    """
    record = _stage_history_record(db, user_id, snapshot_date, totals, record_type)
    try:
        db.commit()
    except IntegrityError:
        # Lost the race to insert this day; the row exists now so update it
        db.rollback()
        logger.info(f"History record for user {user_id} on {snapshot_date} created concurrently, retrying as update")
        record = _stage_history_record(db, user_id, snapshot_date, totals, record_type)
        db.commit()

    db.refresh(record)
    return record


def delete_db_history_record(db: Session, user_id: int, record_id: int) -> bool:
    """Delete a record owned by the user. Returns False when there is nothing to delete."""
    record = db.query(NetworthHistoryDB).filter(
        NetworthHistoryDB.id == record_id,
        NetworthHistoryDB.user_id == user_id
    ).first()

    if not record:
        return False

    try:
        db.delete(record)
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Failed to delete history record {record_id} for user {user_id}, rolled back")
        raise
    return True
