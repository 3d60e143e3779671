from sqlalchemy.orm import Session, joinedload
from typing import List

from networth.db.core import InvestmentDB


def read_db_investments(db: Session, user_id: int) -> List[InvestmentDB]:
    """All investments of a user with their linked account loaded"""
    return db.query(InvestmentDB).options(
        joinedload(InvestmentDB.account)
    ).filter(
        InvestmentDB.user_id == user_id
    ).order_by(InvestmentDB.id).all()
