from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.orm import Session
from typing import List, Optional

from networth.crud import crud_inclusion
from networth.db.core import get_db, UnauthorizedError, WorthEntityType
from networth.models import inclusion as inclusion_models
from networth.routers.deps import get_current_user_id

router = APIRouter(
    prefix="/net-worth/inclusions",
    tags=["net-worth-inclusions"],
)


def _unauthorized(e: UnauthorizedError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))


@router.get("/", response_model=List[inclusion_models.InclusionResponse])
def read_inclusions(
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id)
):
    """
    All stored overrides for the current user. Entities without a row count
    toward net worth.
    """
    try:
        return crud_inclusion.read_db_inclusions(db=db, user_id=user_id)
    except UnauthorizedError as e:
        raise _unauthorized(e)


@router.get("/{entity_type}/{entity_id}", response_model=inclusion_models.InclusionStatusResponse)
def read_inclusion_status(
    entity_type: WorthEntityType,
    entity_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id)
):
    try:
        state = crud_inclusion.read_inclusion_state(db, user_id, entity_type, entity_id)
    except UnauthorizedError as e:
        raise _unauthorized(e)

    return inclusion_models.InclusionStatusResponse(
        entity_type=entity_type,
        entity_id=entity_id,
        include_in_net_worth=True if state is None else state,
        exists=state is not None
    )


@router.put("/{entity_type}/{entity_id}", response_model=inclusion_models.InclusionResponse)
def set_inclusion(
    entity_type: WorthEntityType,
    inclusion: inclusion_models.InclusionSet,
    entity_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id)
):
    """
    Include or exclude one account, investment or debt.
    """
    try:
        return crud_inclusion.upsert_db_inclusion(
            db, user_id, entity_type, entity_id, inclusion.include_in_net_worth
        )
    except UnauthorizedError as e:
        raise _unauthorized(e)


@router.put("/bulk", response_model=List[inclusion_models.InclusionResponse])
def bulk_set_inclusions(
    bulk_update: inclusion_models.InclusionBulkUpdate,
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id)
):
    """
    Apply several overrides at once; nothing is stored if any of them fails.
    """
    try:
        return crud_inclusion.bulk_upsert_db_inclusions(db, user_id, bulk_update.updates)
    except UnauthorizedError as e:
        raise _unauthorized(e)


@router.post("/reset", response_model=inclusion_models.InclusionResetResponse)
def reset_inclusions(
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id)
):
    """Drop every exclusion so all entities count again."""
    try:
        deleted_count = crud_inclusion.reset_db_inclusions(db, user_id)
    except UnauthorizedError as e:
        raise _unauthorized(e)
    return inclusion_models.InclusionResetResponse(deleted_count=deleted_count)
