from __future__ import annotations

from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api.deps.request_identity import get_request_identity
from app.core.errors import DomainError
from app.core.workflow.status_machine import WorkflowOperation
from app.db.session import get_db
from app.models.shipment import Shipment
from app.schemas.request_identity import RequestIdentity
from app.schemas.shipment import (
    CancelShipmentRequest,
    CompleteInspectionRequest,
    CompleteReceivingRequest,
    RejectShipmentRequest,
    ShipmentCreate,
    ShipmentEnvelope,
    ShipmentOut,
    StartInspectionRequest,
    StartReceivingRequest,
)
from app.services.shipment_workflow_service import ShipmentWorkflowService, success_message

router = APIRouter()


def _raise_domain_error(db: Session, exc: DomainError) -> None:
    db.rollback()
    raise HTTPException(status_code=exc.status_code, detail=exc.to_detail())


def _envelope(shipment: Shipment, message: str) -> ShipmentEnvelope:
    return ShipmentEnvelope(data=ShipmentOut.model_validate(shipment), message=message)


def _run_transition(
    db: Session,
    operation: WorkflowOperation,
    action: Callable[[ShipmentWorkflowService], Shipment],
) -> ShipmentEnvelope:
    service = ShipmentWorkflowService(db)
    try:
        shipment = action(service)
    except DomainError as exc:
        _raise_domain_error(db, exc)
    return _envelope(shipment, success_message(operation))


@router.post("/", response_model=ShipmentEnvelope, status_code=201)
def create_shipment(payload: ShipmentCreate, db: Session = Depends(get_db)):
    try:
        shipment = ShipmentWorkflowService(db).create_shipment(payload.model_dump())
    except DomainError as exc:
        _raise_domain_error(db, exc)
    return _envelope(shipment, "Shipment created")


@router.get("/", response_model=List[ShipmentOut])
def list_shipments(
    status: Optional[str] = None,
    warehouse: Optional[str] = None,
    week_number: Optional[int] = Query(default=None, ge=1, le=53),
    include_archived: bool = False,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    try:
        return ShipmentWorkflowService(db).list_shipments(
            status=status,
            warehouse=warehouse,
            week_number=week_number,
            include_archived=include_archived,
            skip=skip,
            limit=limit,
        )
    except DomainError as exc:
        _raise_domain_error(db, exc)


@router.get("/post-arrival", response_model=List[ShipmentOut])
def list_post_arrival(db: Session = Depends(get_db)):
    return ShipmentWorkflowService(db).list_post_arrival()


@router.get("/archives", response_model=List[ShipmentOut])
def list_archived(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return ShipmentWorkflowService(db).list_archived(skip=skip, limit=limit)


@router.get("/{shipment_id}", response_model=ShipmentOut)
def get_shipment(shipment_id: str, db: Session = Depends(get_db)):
    try:
        return ShipmentWorkflowService(db).get_shipment(shipment_id)
    except DomainError as exc:
        _raise_domain_error(db, exc)


@router.post("/{shipment_id}/start-unloading", response_model=ShipmentEnvelope)
def start_unloading(shipment_id: str, db: Session = Depends(get_db)):
    return _run_transition(
        db,
        WorkflowOperation.START_UNLOADING,
        lambda service: service.start_unloading(shipment_id),
    )


@router.post("/{shipment_id}/complete-unloading", response_model=ShipmentEnvelope)
def complete_unloading(shipment_id: str, db: Session = Depends(get_db)):
    return _run_transition(
        db,
        WorkflowOperation.COMPLETE_UNLOADING,
        lambda service: service.complete_unloading(shipment_id),
    )


@router.post("/{shipment_id}/start-inspection", response_model=ShipmentEnvelope)
def start_inspection(
    shipment_id: str,
    payload: Optional[StartInspectionRequest] = None,
    identity: RequestIdentity = Depends(get_request_identity),
    db: Session = Depends(get_db),
):
    payload = payload or StartInspectionRequest()
    inspector = payload.inspected_by or identity.actor_label
    return _run_transition(
        db,
        WorkflowOperation.START_INSPECTION,
        lambda service: service.start_inspection(shipment_id, inspector=inspector),
    )


@router.post("/{shipment_id}/complete-inspection", response_model=ShipmentEnvelope)
def complete_inspection(
    shipment_id: str,
    payload: CompleteInspectionRequest,
    db: Session = Depends(get_db),
):
    return _run_transition(
        db,
        WorkflowOperation.COMPLETE_INSPECTION,
        lambda service: service.complete_inspection(
            shipment_id,
            passed=payload.passed,
            notes=payload.notes,
            inspector=payload.inspected_by,
        ),
    )


@router.post("/{shipment_id}/start-receiving", response_model=ShipmentEnvelope)
def start_receiving(
    shipment_id: str,
    payload: Optional[StartReceivingRequest] = None,
    identity: RequestIdentity = Depends(get_request_identity),
    db: Session = Depends(get_db),
):
    payload = payload or StartReceivingRequest()
    receiver = payload.received_by or identity.actor_label
    return _run_transition(
        db,
        WorkflowOperation.START_RECEIVING,
        lambda service: service.start_receiving(shipment_id, receiver=receiver),
    )


@router.post("/{shipment_id}/complete-receiving", response_model=ShipmentEnvelope)
def complete_receiving(
    shipment_id: str,
    payload: CompleteReceivingRequest,
    db: Session = Depends(get_db),
):
    return _run_transition(
        db,
        WorkflowOperation.COMPLETE_RECEIVING,
        lambda service: service.complete_receiving(
            shipment_id,
            received_quantity=payload.received_quantity,
            receiver=payload.received_by,
            notes=payload.notes,
            discrepancies=payload.discrepancies,
        ),
    )


@router.post("/{shipment_id}/mark-stored", response_model=ShipmentEnvelope)
def mark_stored(shipment_id: str, db: Session = Depends(get_db)):
    return _run_transition(
        db,
        WorkflowOperation.MARK_STORED,
        lambda service: service.mark_stored(shipment_id),
    )


@router.post("/{shipment_id}/reject", response_model=ShipmentEnvelope)
def reject_shipment(
    shipment_id: str,
    payload: RejectShipmentRequest,
    identity: RequestIdentity = Depends(get_request_identity),
    db: Session = Depends(get_db),
):
    rejected_by = payload.rejected_by or identity.actor_label
    return _run_transition(
        db,
        WorkflowOperation.REJECT,
        lambda service: service.reject(
            shipment_id,
            reason=payload.rejection_reason,
            rejected_by=rejected_by,
        ),
    )


@router.post("/{shipment_id}/cancel", response_model=ShipmentEnvelope)
def cancel_shipment(
    shipment_id: str,
    payload: Optional[CancelShipmentRequest] = None,
    identity: RequestIdentity = Depends(get_request_identity),
    db: Session = Depends(get_db),
):
    payload = payload or CancelShipmentRequest()
    cancelled_by = payload.cancelled_by or identity.actor_label
    return _run_transition(
        db,
        WorkflowOperation.CANCEL,
        lambda service: service.cancel(
            shipment_id,
            reason=payload.reason,
            cancelled_by=cancelled_by,
        ),
    )


@router.post("/{shipment_id}/mark-delayed", response_model=ShipmentEnvelope)
def mark_delayed(shipment_id: str, db: Session = Depends(get_db)):
    return _run_transition(
        db,
        WorkflowOperation.MARK_DELAYED,
        lambda service: service.mark_delayed(shipment_id),
    )


@router.post("/{shipment_id}/archive", response_model=ShipmentEnvelope)
def archive_shipment(shipment_id: str, db: Session = Depends(get_db)):
    return _run_transition(
        db,
        WorkflowOperation.ARCHIVE,
        lambda service: service.archive(shipment_id),
    )


@router.post("/{shipment_id}/unarchive", response_model=ShipmentEnvelope)
def unarchive_shipment(shipment_id: str, db: Session = Depends(get_db)):
    return _run_transition(
        db,
        WorkflowOperation.UNARCHIVE,
        lambda service: service.unarchive(shipment_id),
    )
