from sqlalchemy.orm import Session, selectinload
from typing import List

from networth.db.core import DebtDB


def read_db_debts(db: Session, user_id: int) -> List[DebtDB]:
    """All money lent by a user, with repayments loaded"""
    return db.query(DebtDB).options(
        selectinload(DebtDB.repayments)
    ).filter(
        DebtDB.user_id == user_id
    ).order_by(DebtDB.id).all()
