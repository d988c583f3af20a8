from __future__ import annotations

from datetime import date, datetime
import logging
from typing import Any
import uuid

from sqlalchemy.orm import Session

from app.core.config import csv_values, settings
from app.core.errors import InvalidStateTransition, NotFound, StaleStateConflict, ValidationError
from app.core.flow_logging import flow_info
from app.core.workflow.status_machine import WorkflowOperation, transition
from app.core.workflow.statuses import POST_ARRIVAL_BOARD_STATUSES, ShipmentStatus, parse_status
from app.core.workflow.week_dates import selected_week_date
from app.crud import shipment as crud_shipment
from app.db.session import unit_of_work
from app.models.shipment import Shipment

logger = logging.getLogger(__name__)

_SUCCESS_MESSAGES = {
    WorkflowOperation.START_UNLOADING: "Unloading started",
    WorkflowOperation.COMPLETE_UNLOADING: "Unloading completed",
    WorkflowOperation.START_INSPECTION: "Inspection started",
    WorkflowOperation.COMPLETE_INSPECTION: "Inspection completed",
    WorkflowOperation.START_RECEIVING: "Receiving started",
    WorkflowOperation.COMPLETE_RECEIVING: "Receiving completed",
    WorkflowOperation.MARK_STORED: "Shipment marked as stored",
    WorkflowOperation.REJECT: "Shipment rejected",
    WorkflowOperation.CANCEL: "Shipment cancelled",
    WorkflowOperation.MARK_DELAYED: "Shipment marked as delayed",
    WorkflowOperation.ARCHIVE: "Shipment archived",
    WorkflowOperation.UNARCHIVE: "Shipment unarchived",
}


def success_message(operation: WorkflowOperation) -> str:
    return _SUCCESS_MESSAGES[operation]


class ShipmentWorkflowService:
    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _now() -> datetime:
        return datetime.utcnow()

    def get_shipment(self, shipment_id: str) -> Shipment:
        shipment = crud_shipment.load_shipment(self.db, shipment_id)
        if shipment is None:
            raise NotFound(
                message=f"Shipment '{shipment_id}' not found.",
                details={"shipment_id": shipment_id},
            )
        return shipment

    def list_shipments(
        self,
        *,
        status: str | None = None,
        warehouse: str | None = None,
        week_number: int | None = None,
        include_archived: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Shipment]:
        statuses = None
        if status:
            try:
                statuses = [parse_status(status).value]
            except ValueError as exc:
                raise ValidationError(
                    message=f"Unknown status '{status}'.",
                    details={"field": "status"},
                ) from exc
        return crud_shipment.list_shipments(
            self.db,
            skip=skip,
            limit=limit,
            statuses=statuses,
            warehouse=warehouse,
            week_number=week_number,
            include_archived=include_archived,
        )

    def list_post_arrival(self) -> list[Shipment]:
        return crud_shipment.list_inbound_shipments(
            self.db,
            sorted(status.value for status in POST_ARRIVAL_BOARD_STATUSES),
        )

    def list_archived(self, *, skip: int = 0, limit: int = 100) -> list[Shipment]:
        return crud_shipment.list_archived_shipments(self.db, skip=skip, limit=limit)

    def create_shipment(self, values: dict[str, Any], *, today: date | None = None) -> Shipment:
        payload = dict(values)
        supplier = (payload.get("supplier") or "").strip()
        if not supplier:
            raise ValidationError(message="supplier is required.", details={"field": "supplier"})
        payload["supplier"] = supplier

        warehouse = payload.get("receiving_warehouse")
        if warehouse is not None:
            warehouse = str(warehouse).strip()
            known = csv_values(settings.WAREHOUSE_NAMES)
            if warehouse not in known:
                raise ValidationError(
                    message=f"Unknown receiving warehouse '{warehouse}'.",
                    details={"field": "receiving_warehouse", "allowed": known},
                )
            payload["receiving_warehouse"] = warehouse

        week_number = payload.get("week_number")
        if week_number is not None and not 1 <= int(week_number) <= 53:
            raise ValidationError(
                message="week_number must be between 1 and 53.",
                details={"field": "week_number"},
            )

        raw_status = payload.get("latest_status") or ShipmentStatus.PLANNED_SEAFREIGHT.value
        try:
            payload["latest_status"] = parse_status(raw_status).value
        except ValueError as exc:
            raise ValidationError(
                message=f"Unknown status '{raw_status}'.",
                details={"field": "latest_status"},
            ) from exc
        if payload["latest_status"] == ShipmentStatus.ARCHIVED.value:
            raise ValidationError(
                message="A shipment cannot be created archived.",
                details={"field": "latest_status"},
            )

        if payload.get("pallet_qty") is None:
            payload["pallet_qty"] = 1
        payload["selected_week_date"] = selected_week_date(week_number, today or date.today())
        payload["id"] = (payload.get("id") or "").strip() or str(uuid.uuid4())

        if crud_shipment.load_shipment(self.db, payload["id"]) is not None:
            raise ValidationError(
                message=f"Shipment '{payload['id']}' already exists.",
                details={"field": "id"},
            )

        with unit_of_work(self.db):
            shipment = crud_shipment.create_shipment(self.db, payload)
        flow_info(
            logger,
            "shipment_created id=%s status=%s warehouse=%s week=%s",
            shipment.id,
            shipment.latest_status,
            shipment.receiving_warehouse or "-",
            shipment.week_number,
            category="shipment",
        )
        return shipment

    def apply(
        self,
        shipment_id: str,
        operation: WorkflowOperation,
        args: dict[str, Any] | None = None,
    ) -> Shipment:
        """
        Run one workflow operation and persist it with a status-guarded write.

        Raises NotFound, InvalidStateTransition, ValidationError, or
        StaleStateConflict when another writer changed the status after it was read.
        """
        shipment = self.get_shipment(shipment_id)
        expected_status = shipment.latest_status
        current = {
            "latest_status": expected_status,
            "quantity": shipment.quantity,
            "status_before_archive": shipment.status_before_archive,
        }
        try:
            outcome = transition(
                expected_status,
                operation,
                args or {},
                current=current,
                now=self._now(),
            )
        except InvalidStateTransition:
            logger.warning(
                "shipment_transition_rejected id=%s op=%s status=%s",
                shipment_id,
                WorkflowOperation(operation).value,
                expected_status,
            )
            raise

        with unit_of_work(self.db):
            saved = crud_shipment.save_if_status(
                self.db,
                shipment_id,
                expected_status=expected_status,
                patch=outcome.patch,
            )
            if saved is None:
                logger.warning(
                    "shipment_transition_stale id=%s op=%s expected=%s",
                    shipment_id,
                    outcome.operation.value,
                    expected_status,
                )
                raise StaleStateConflict(
                    message="Shipment status changed since it was read. Reload and retry.",
                    details={
                        "shipment_id": shipment_id,
                        "expected_status": expected_status,
                        "operation": outcome.operation.value,
                    },
                )

        flow_info(
            logger,
            "shipment_transition id=%s op=%s from=%s to=%s",
            shipment_id,
            outcome.operation.value,
            outcome.from_status.value,
            outcome.to_status.value,
            category="shipment",
        )
        return saved

    def start_unloading(self, shipment_id: str) -> Shipment:
        return self.apply(shipment_id, WorkflowOperation.START_UNLOADING)

    def complete_unloading(self, shipment_id: str) -> Shipment:
        return self.apply(shipment_id, WorkflowOperation.COMPLETE_UNLOADING)

    def start_inspection(self, shipment_id: str, *, inspector: str | None = None) -> Shipment:
        return self.apply(
            shipment_id,
            WorkflowOperation.START_INSPECTION,
            {"inspector": inspector},
        )

    def complete_inspection(
        self,
        shipment_id: str,
        *,
        passed: bool | None,
        notes: str | None = None,
        inspector: str | None = None,
    ) -> Shipment:
        return self.apply(
            shipment_id,
            WorkflowOperation.COMPLETE_INSPECTION,
            {"passed": passed, "notes": notes, "inspector": inspector},
        )

    def start_receiving(self, shipment_id: str, *, receiver: str | None = None) -> Shipment:
        return self.apply(
            shipment_id,
            WorkflowOperation.START_RECEIVING,
            {"receiver": receiver},
        )

    def complete_receiving(
        self,
        shipment_id: str,
        *,
        received_quantity: float | None = None,
        receiver: str | None = None,
        notes: str | None = None,
        discrepancies: list[str] | None = None,
    ) -> Shipment:
        return self.apply(
            shipment_id,
            WorkflowOperation.COMPLETE_RECEIVING,
            {
                "received_quantity": received_quantity,
                "receiver": receiver,
                "notes": notes,
                "discrepancies": discrepancies or [],
            },
        )

    def mark_stored(self, shipment_id: str) -> Shipment:
        return self.apply(shipment_id, WorkflowOperation.MARK_STORED)

    def reject(
        self,
        shipment_id: str,
        *,
        reason: str | None,
        rejected_by: str | None = None,
    ) -> Shipment:
        return self.apply(
            shipment_id,
            WorkflowOperation.REJECT,
            {"reason": reason, "actor": rejected_by},
        )

    def cancel(
        self,
        shipment_id: str,
        *,
        reason: str | None = None,
        cancelled_by: str | None = None,
    ) -> Shipment:
        return self.apply(
            shipment_id,
            WorkflowOperation.CANCEL,
            {"reason": reason, "actor": cancelled_by},
        )

    def mark_delayed(self, shipment_id: str) -> Shipment:
        return self.apply(shipment_id, WorkflowOperation.MARK_DELAYED)

    def archive(self, shipment_id: str) -> Shipment:
        return self.apply(shipment_id, WorkflowOperation.ARCHIVE)

    def unarchive(self, shipment_id: str) -> Shipment:
        return self.apply(shipment_id, WorkflowOperation.UNARCHIVE)
