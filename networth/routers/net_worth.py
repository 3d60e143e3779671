from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from typing import Optional

from networth.db.core import get_db, UnauthorizedError, FetchFailedError, ValidationFailedError
from networth.models.net_worth import NetWorthSnapshot
from networth.routers.deps import get_current_user_id
from networth.services import export
from networth.services.net_worth import compute_net_worth_snapshot

router = APIRouter(
    prefix="/net-worth",
    tags=["net-worth"],
)


def _current_snapshot(db: Session, user_id: Optional[int]) -> NetWorthSnapshot:
    try:
        return compute_net_worth_snapshot(db=db, user_id=user_id)
    except UnauthorizedError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except FetchFailedError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    except ValidationFailedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/current", response_model=NetWorthSnapshot)
def get_current_net_worth(
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id)
):
    """
    Live net worth for the current user, after withheld balances and
    inclusion overrides are applied.
    """
    return _current_snapshot(db, user_id)


@router.get("/current/export")
def export_current_net_worth(
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id)
):
    """Download the live net worth breakdown as CSV."""
    snapshot = _current_snapshot(db, user_id)
    export_date = snapshot.as_of_date.date()

    return Response(
        content=export.snapshot_to_csv(snapshot, export_date),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export.export_filename(export_date)}"'},
    )
