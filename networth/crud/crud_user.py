import os
from sqlalchemy.orm import Session
from typing import Optional, List

from networth.db.core import UserDB, UnauthorizedError


DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "USD")


def read_db_user(db: Session, user_id: int) -> Optional[UserDB]:
    return db.query(UserDB).filter(UserDB.id == user_id).first()


def read_all_db_users(db: Session) -> List[UserDB]:
    return db.query(UserDB).order_by(UserDB.id).all()


def require_user(db: Session, user_id: Optional[int]) -> UserDB:
    """Resolve the calling user or raise UnauthorizedError."""
    if user_id is None:
        raise UnauthorizedError("Unauthorized")

    user = read_db_user(db, user_id)
    if not user:
        raise UnauthorizedError("Unauthorized")
    return user


def read_user_currency(db: Session, user_id: int) -> str:
    currency = db.query(UserDB.currency).filter(UserDB.id == user_id).scalar()
    return currency or DEFAULT_CURRENCY
