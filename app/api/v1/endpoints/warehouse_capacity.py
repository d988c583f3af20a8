from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api.deps.request_identity import get_admin_identity, get_request_identity_with_db
from app.core.errors import DomainError
from app.db.session import get_db
from app.schemas.forecast import ForecastEntryOut
from app.schemas.request_identity import RequestIdentity
from app.schemas.warehouse_capacity import (
    AvailableBinsUpdate,
    BinsUsedUpdate,
    CapacityHistoryEntryOut,
    CapacityOverview,
    TotalCapacityUpdate,
    WarehouseCapacityOut,
    WarehouseCapacityWriteResponse,
)
from app.services.capacity_forecast_service import CapacityForecastService
from app.services.forecast_workbook_service import forecast_workbook_response
from app.services.warehouse_capacity_service import WarehouseCapacityService, history_entry_out

router = APIRouter()


def _raise_domain_error(db: Session, exc: DomainError) -> None:
    db.rollback()
    raise HTTPException(status_code=exc.status_code, detail=exc.to_detail())


def _write_response(row) -> WarehouseCapacityWriteResponse:
    return WarehouseCapacityWriteResponse(
        success=True,
        data=WarehouseCapacityOut.model_validate(row),
    )


@router.get("/", response_model=CapacityOverview, response_model_by_alias=True)
def get_capacity_overview(db: Session = Depends(get_db)):
    return WarehouseCapacityService(db).overview()


# Static paths are registered before /{warehouse} so they are not captured by it.
@router.get("/forecast", response_model=List[ForecastEntryOut])
def get_capacity_forecast(db: Session = Depends(get_db)):
    return [entry.to_dict() for entry in CapacityForecastService(db).forecast()]


@router.get("/forecast/export.xlsx")
def export_capacity_forecast(db: Session = Depends(get_db)):
    today = date.today()
    forecast = CapacityForecastService(db).forecast(today=today)
    return forecast_workbook_response(forecast, today=today)


@router.get("/history/all", response_model=List[CapacityHistoryEntryOut])
def get_all_capacity_history(
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    identity: RequestIdentity = Depends(get_admin_identity),
    db: Session = Depends(get_db),
):
    try:
        entries = WarehouseCapacityService(db).get_history(None, limit=limit)
    except DomainError as exc:
        _raise_domain_error(db, exc)
    return [history_entry_out(entry) for entry in entries]


@router.get("/{warehouse}/history", response_model=List[CapacityHistoryEntryOut])
def get_warehouse_capacity_history(
    warehouse: str,
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    try:
        entries = WarehouseCapacityService(db).get_history(warehouse, limit=limit)
    except DomainError as exc:
        _raise_domain_error(db, exc)
    return [history_entry_out(entry) for entry in entries]


@router.put("/{warehouse}", response_model=WarehouseCapacityWriteResponse)
def update_bins_used(
    warehouse: str,
    payload: BinsUsedUpdate,
    identity: RequestIdentity = Depends(get_request_identity_with_db),
    db: Session = Depends(get_db),
):
    try:
        row = WarehouseCapacityService(db).set_bins_used(
            warehouse,
            payload.bins_used,
            actor_id=identity.user_id,
        )
    except DomainError as exc:
        _raise_domain_error(db, exc)
    return _write_response(row)


@router.put("/{warehouse}/available-bins", response_model=WarehouseCapacityWriteResponse)
def update_available_bins(
    warehouse: str,
    payload: AvailableBinsUpdate,
    identity: RequestIdentity = Depends(get_request_identity_with_db),
    db: Session = Depends(get_db),
):
    try:
        row = WarehouseCapacityService(db).set_available_bins(
            warehouse,
            payload.available_bins,
            actor_id=identity.user_id,
        )
    except DomainError as exc:
        _raise_domain_error(db, exc)
    return _write_response(row)


@router.put("/{warehouse}/total-capacity", response_model=WarehouseCapacityWriteResponse)
def update_total_capacity(
    warehouse: str,
    payload: TotalCapacityUpdate,
    identity: RequestIdentity = Depends(get_request_identity_with_db),
    db: Session = Depends(get_db),
):
    try:
        row = WarehouseCapacityService(db).set_total_capacity(
            warehouse,
            payload.total_capacity,
            actor_id=identity.user_id,
        )
    except DomainError as exc:
        _raise_domain_error(db, exc)
    return _write_response(row)
