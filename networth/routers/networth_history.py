import os
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from networth.db.core import get_db, NotFoundError, UnauthorizedError, FetchFailedError, ValidationFailedError
from networth.logging_config import get_logger
from networth.models.net_worth import (
    AutomaticRecordingResult,
    NetworthHistoryRecordCreate,
    NetworthHistoryResponse,
    NetworthHistoryStats
)
from networth.routers.deps import get_current_user_id
from networth.services import export, networth_history

logger = get_logger(__name__)

router = APIRouter(
    prefix="/networth-history",
    tags=["networth-history"],
)


@router.post("/", response_model=NetworthHistoryResponse, status_code=status.HTTP_201_CREATED)
def record_net_worth(
    record: Optional[NetworthHistoryRecordCreate] = None,
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id)
):
    """
    Record today's (or the given day's) net worth. Recording a day twice
    overwrites the earlier record.
    """
    record = record or NetworthHistoryRecordCreate()
    try:
        return networth_history.record_snapshot(
            db=db,
            user_id=user_id,
            record_type=record.record_type,
            snapshot_date=record.snapshot_date
        )
    except UnauthorizedError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except FetchFailedError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    except ValidationFailedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/", response_model=List[NetworthHistoryResponse])
def read_history(
    start_date: Optional[date] = Query(None, description="Start date for history (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="End date for history (YYYY-MM-DD)"),
    limit: int = Query(365, ge=1, le=3650),
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id)
):
    try:
        return networth_history.get_history(db, user_id, start_date, end_date, limit)
    except UnauthorizedError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))


@router.get("/latest", response_model=NetworthHistoryResponse)
def read_latest_record(
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id)
):
    try:
        latest = networth_history.get_latest_snapshot(db, user_id)
    except UnauthorizedError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    if latest is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No net worth history recorded")
    return latest


@router.get("/stats", response_model=NetworthHistoryStats)
def read_history_stats(
    start_date: Optional[date] = Query(None, description="Start date for history (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="End date for history (YYYY-MM-DD)"),
    limit: int = Query(365, ge=1, le=3650),
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id)
):
    """
    Growth summary over the selected window of history.
    """
    try:
        return networth_history.get_history_stats(db, user_id, start_date, end_date, limit)
    except UnauthorizedError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))


@router.get("/export")
def export_history(
    start_date: Optional[date] = Query(None, description="Start date for history (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="End date for history (YYYY-MM-DD)"),
    limit: int = Query(365, ge=1, le=3650),
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id)
):
    """Download recorded history as CSV, one row per day."""
    try:
        records = networth_history.get_history(db, user_id, start_date, end_date, limit)
    except UnauthorizedError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    return Response(
        content=export.history_to_csv(records),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export.export_filename()}"'},
    )


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_record(
    record_id: int,
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id)
):
    try:
        deleted = networth_history.delete_history_record(db, user_id, record_id)
    except UnauthorizedError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="History record not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.api_route("/cron", methods=["GET", "POST"], response_model=AutomaticRecordingResult)
def run_scheduled_recording(
    snapshot_date: Optional[date] = Query(None, description="Day to record (YYYY-MM-DD), defaults to today"),
    user_id: Optional[int] = Query(None, description="Record only this user"),
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db)
):
    """
    Scheduler entry point: records an automatic snapshot for every user.
    Requires `Authorization: Bearer <CRON_SECRET>` when CRON_SECRET is set.
    """
    cron_secret = os.getenv("CRON_SECRET")
    if cron_secret and authorization != f"Bearer {cron_secret}":
        logger.warning("Rejected scheduled recording request with missing or invalid credentials")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    try:
        return networth_history.run_automatic_recording(db, snapshot_date=snapshot_date, user_id=user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
