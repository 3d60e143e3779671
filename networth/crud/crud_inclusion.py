from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional, List, Dict, Tuple, Iterable
from datetime import datetime

from networth.logging_config import get_logger
from networth.db.core import NetWorthInclusionDB, WorthEntityType
from networth.crud.crud_user import require_user
from networth.models.inclusion import InclusionUpdate

logger = get_logger(__name__)

InclusionKey = Tuple[WorthEntityType, int]


# ===== DATABASE OPERATIONS - READS =====

def read_db_inclusions(db: Session, user_id: Optional[int]) -> List[NetWorthInclusionDB]:
    require_user(db, user_id)
    return db.query(NetWorthInclusionDB).filter(
        NetWorthInclusionDB.user_id == user_id
    ).order_by(
        NetWorthInclusionDB.entity_type,
        NetWorthInclusionDB.entity_id
    ).all()


def _read_db_inclusion(db: Session, user_id: int, entity_type: WorthEntityType, entity_id: int) -> Optional[NetWorthInclusionDB]:
    return db.query(NetWorthInclusionDB).filter(
        NetWorthInclusionDB.user_id == user_id,
        NetWorthInclusionDB.entity_type == entity_type,
        NetWorthInclusionDB.entity_id == entity_id
    ).first()


def read_inclusion_state(db: Session, user_id: Optional[int], entity_type: WorthEntityType, entity_id: int) -> Optional[bool]:
    """
    Stored override for one entity: True, False, or None when no override exists.
    """
    require_user(db, user_id)
    inclusion = _read_db_inclusion(db, user_id, entity_type, entity_id)
    if inclusion is None:
        return None
    return inclusion.include_in_net_worth


def is_entity_included(db: Session, user_id: Optional[int], entity_type: WorthEntityType, entity_id: int) -> bool:
    state = read_inclusion_state(db, user_id, entity_type, entity_id)
    if state is None:
        return True
    return state


# ===== IN-MEMORY LOOKUP =====

def build_inclusion_map(inclusions: Iterable[NetWorthInclusionDB]) -> Dict[InclusionKey, bool]:
    return {
        (inclusion.entity_type, inclusion.entity_id): inclusion.include_in_net_worth
        for inclusion in inclusions
    }


def resolve_inclusion(inclusion_map: Dict[InclusionKey, bool], entity_type: WorthEntityType, entity_id: int) -> bool:
    state = inclusion_map.get((entity_type, entity_id))
    if state is None:
        # No override: entities count toward net worth by default
        return True
    return state


# ===== DATABASE OPERATIONS - WRITES =====

def _apply_inclusion(db: Session, user_id: int, entity_type: WorthEntityType, entity_id: int, include_in_net_worth: bool) -> NetWorthInclusionDB:
    inclusion = _read_db_inclusion(db, user_id, entity_type, entity_id)
    if inclusion:
        inclusion.include_in_net_worth = include_in_net_worth
        inclusion.updated_at = datetime.utcnow()
        return inclusion

    inclusion = NetWorthInclusionDB(
        user_id=user_id,
        entity_type=entity_type,
        entity_id=entity_id,
        include_in_net_worth=include_in_net_worth
    )
    db.add(inclusion)
    return inclusion


def upsert_db_inclusion(
    db: Session,
    user_id: Optional[int],
    entity_type: WorthEntityType,
    entity_id: int,
    include_in_net_worth: bool
) -> NetWorthInclusionDB:
    """Create or update the override for one entity. Calling it twice is harmless."""
    require_user(db, user_id)

    inclusion = _apply_inclusion(db, user_id, entity_type, entity_id, include_in_net_worth)
    try:
        db.commit()
    except IntegrityError:
        # Another writer inserted the same key first; update that row instead
        db.rollback()
        logger.info(f"Inclusion for {entity_type.value} {entity_id} created concurrently, retrying as update")
        inclusion = _apply_inclusion(db, user_id, entity_type, entity_id, include_in_net_worth)
        db.commit()

    db.refresh(inclusion)
    return inclusion


def bulk_upsert_db_inclusions(db: Session, user_id: Optional[int], updates: List[InclusionUpdate]) -> List[NetWorthInclusionDB]:
    """
    Apply many overrides in a single transaction. Either every update is stored
    or none is. Repeated keys in one batch keep the last value.
    """
    require_user(db, user_id)

    collapsed: Dict[InclusionKey, bool] = {}
    for update in updates:
        collapsed[(update.entity_type, update.entity_id)] = update.include_in_net_worth

    try:
        inclusions = [
            _apply_inclusion(db, user_id, entity_type, entity_id, include)
            for (entity_type, entity_id), include in collapsed.items()
        ]
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Bulk inclusion update of {len(collapsed)} entities failed for user {user_id}, rolled back")
        raise

    for inclusion in inclusions:
        db.refresh(inclusion)
    return inclusions


def reset_db_inclusions(db: Session, user_id: Optional[int]) -> int:
    """Delete every exclusion, so all entities fall back to included. Returns the deleted count."""
    require_user(db, user_id)

    deleted_count = db.query(NetWorthInclusionDB).filter(
        NetWorthInclusionDB.user_id == user_id,
        NetWorthInclusionDB.include_in_net_worth.is_(False)
    ).delete(synchronize_session=False)
    db.commit()

    logger.info(f"Reset {deleted_count} net worth exclusions for user {user_id}")
    return deleted_count
