"""
Table-driven shipment status transitions.

`transition()` is pure: it validates an operation against the current status and
returns the new status plus the column patch to persist. It never touches the
database; `ShipmentWorkflowService` applies the patch with a conditional write.

    arrived_* -> unloading -> inspection_pending -> inspecting
        -> inspection_passed -> receiving -> received -> stored
        -> inspection_failed -> cancelled (reject)

Side states: any non-terminal status may be delayed or cancelled, any status may be
archived, and unarchive restores the status held before archiving.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Mapping

from app.core.errors import InvalidStateTransition, ValidationError
from app.core.workflow.statuses import (
    ALL_STATUSES,
    ARRIVAL_STATUSES,
    SIDE_STATUSES,
    TERMINAL_STATUSES,
    InspectionStatus,
    ReceivingStatus,
    ShipmentStatus,
    parse_status,
)

S = ShipmentStatus


class WorkflowOperation(str, enum.Enum):
    START_UNLOADING = "start_unloading"
    COMPLETE_UNLOADING = "complete_unloading"
    START_INSPECTION = "start_inspection"
    COMPLETE_INSPECTION = "complete_inspection"
    START_RECEIVING = "start_receiving"
    COMPLETE_RECEIVING = "complete_receiving"
    MARK_STORED = "mark_stored"
    REJECT = "reject"
    CANCEL = "cancel"
    MARK_DELAYED = "mark_delayed"
    ARCHIVE = "archive"
    UNARCHIVE = "unarchive"


@dataclass(frozen=True)
class TransitionOutcome:
    operation: WorkflowOperation
    from_status: ShipmentStatus
    to_status: ShipmentStatus
    patch: dict[str, Any] = field(default_factory=dict)


# (args, current shipment fields, now) -> (target status, column patch)
Resolver = Callable[[Mapping[str, Any], Mapping[str, Any], datetime], tuple[ShipmentStatus, dict[str, Any]]]


@dataclass(frozen=True)
class TransitionRule:
    allowed_from: frozenset[ShipmentStatus]
    resolve: Resolver


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _fixed(target: ShipmentStatus, builder: Callable[..., dict[str, Any]] | None = None) -> Resolver:
    def _resolve(args, current, now):
        patch = builder(args, current, now) if builder else {}
        return target, patch

    return _resolve


def _start_unloading(args, current, now):
    return {"unloading_start_date": now}


def _complete_unloading(args, current, now):
    return {"unloading_completed_date": now}


def _start_inspection(args, current, now):
    return {
        "inspection_status": InspectionStatus.IN_PROGRESS.value,
        "inspected_by": _clean_text(args.get("inspector")) or "",
        "inspection_date": now,
    }


def _complete_inspection(args, current, now):
    passed = args.get("passed")
    if not isinstance(passed, bool):
        raise ValidationError(
            message="passed must be a boolean.",
            details={"field": "passed"},
        )
    patch: dict[str, Any] = {
        "inspection_status": (
            InspectionStatus.PASSED.value if passed else InspectionStatus.FAILED.value
        ),
        "inspection_notes": _clean_text(args.get("notes")) or "",
        "inspection_date": now,
    }
    inspector = _clean_text(args.get("inspector"))
    if inspector:
        patch["inspected_by"] = inspector
    target = S.INSPECTION_PASSED if passed else S.INSPECTION_FAILED
    return target, patch


def _start_receiving(args, current, now):
    return {
        "receiving_status": ReceivingStatus.IN_PROGRESS.value,
        "received_by": _clean_text(args.get("receiver")) or "",
        "receiving_date": now,
    }


def _complete_receiving(args, current, now):
    received_qty = args.get("received_quantity")
    if received_qty is not None:
        if isinstance(received_qty, bool) or not isinstance(received_qty, (int, float)):
            raise ValidationError(
                message="received_quantity must be a number.",
                details={"field": "received_quantity"},
            )
        if received_qty < 0:
            raise ValidationError(
                message="received_quantity must be non-negative.",
                details={"field": "received_quantity"},
            )

    discrepancies = [d for d in (args.get("discrepancies") or []) if d]
    ordered_qty = current.get("quantity")
    if discrepancies:
        receiving_status = ReceivingStatus.DISCREPANCY
    elif (
        received_qty is not None
        and ordered_qty is not None
        and float(received_qty) < float(ordered_qty)
    ):
        receiving_status = ReceivingStatus.PARTIAL
    else:
        receiving_status = ReceivingStatus.COMPLETED

    patch: dict[str, Any] = {
        "received_quantity": received_qty,
        "receiving_notes": _clean_text(args.get("notes")) or "",
        "discrepancies": discrepancies,
        "receiving_status": receiving_status.value,
        "receiving_date": now,
    }
    receiver = _clean_text(args.get("receiver"))
    if receiver:
        patch["received_by"] = receiver
    return S.RECEIVED, patch


def _require_reason(args) -> str:
    reason = _clean_text(args.get("reason"))
    if not reason:
        raise ValidationError(
            message="A reason is required.",
            details={"field": "reason"},
        )
    return reason


def _reject(args, current, now):
    return S.CANCELLED, {
        "inspection_status": InspectionStatus.FAILED.value,
        "rejection_reason": _require_reason(args),
        "rejected_by": _clean_text(args.get("actor")) or "Unknown",
        "rejection_date": now,
    }


def _cancel(args, current, now):
    return S.CANCELLED, {
        "cancellation_reason": _clean_text(args.get("reason")),
        "cancelled_by": _clean_text(args.get("actor")) or "Unknown",
        "cancelled_at": now,
    }


def _archive(args, current, now):
    previous = current.get("latest_status")
    return S.ARCHIVED, {
        "status_before_archive": previous.value if isinstance(previous, ShipmentStatus) else previous,
        "archived_at": now,
    }


def _unarchive(args, current, now):
    restored = S.STORED
    raw_previous = current.get("status_before_archive")
    if raw_previous:
        try:
            restored = parse_status(raw_previous)
        except ValueError:
            restored = S.STORED
    if restored == S.ARCHIVED:
        restored = S.STORED
    return restored, {"status_before_archive": None, "archived_at": None}


_NON_TERMINAL = ALL_STATUSES - TERMINAL_STATUSES - {S.ARCHIVED}

TRANSITIONS: dict[WorkflowOperation, TransitionRule] = {
    WorkflowOperation.START_UNLOADING: TransitionRule(
        allowed_from=ARRIVAL_STATUSES,
        resolve=_fixed(S.UNLOADING, _start_unloading),
    ),
    WorkflowOperation.COMPLETE_UNLOADING: TransitionRule(
        allowed_from=frozenset({S.UNLOADING}),
        resolve=_fixed(S.INSPECTION_PENDING, _complete_unloading),
    ),
    WorkflowOperation.START_INSPECTION: TransitionRule(
        allowed_from=frozenset({S.INSPECTION_PENDING}),
        resolve=_fixed(S.INSPECTING, _start_inspection),
    ),
    WorkflowOperation.COMPLETE_INSPECTION: TransitionRule(
        allowed_from=frozenset({S.INSPECTING, S.INSPECTION_IN_PROGRESS}),
        resolve=_complete_inspection,
    ),
    WorkflowOperation.START_RECEIVING: TransitionRule(
        allowed_from=frozenset({S.INSPECTION_PASSED}),
        resolve=_fixed(S.RECEIVING, _start_receiving),
    ),
    WorkflowOperation.COMPLETE_RECEIVING: TransitionRule(
        allowed_from=frozenset({S.RECEIVING, S.RECEIVING_GOODS}),
        resolve=_complete_receiving,
    ),
    WorkflowOperation.MARK_STORED: TransitionRule(
        allowed_from=frozenset({S.RECEIVED}),
        resolve=_fixed(S.STORED),
    ),
    WorkflowOperation.REJECT: TransitionRule(
        allowed_from=frozenset({S.INSPECTION_FAILED}),
        resolve=_reject,
    ),
    WorkflowOperation.CANCEL: TransitionRule(
        allowed_from=_NON_TERMINAL,
        resolve=_cancel,
    ),
    WorkflowOperation.MARK_DELAYED: TransitionRule(
        allowed_from=ALL_STATUSES - TERMINAL_STATUSES - SIDE_STATUSES,
        resolve=_fixed(S.DELAYED),
    ),
    WorkflowOperation.ARCHIVE: TransitionRule(
        allowed_from=ALL_STATUSES - {S.ARCHIVED},
        resolve=_archive,
    ),
    WorkflowOperation.UNARCHIVE: TransitionRule(
        allowed_from=frozenset({S.ARCHIVED}),
        resolve=_unarchive,
    ),
}


def allowed_operations(current_status: str | ShipmentStatus) -> list[WorkflowOperation]:
    status = parse_status(current_status)
    return [op for op, rule in TRANSITIONS.items() if status in rule.allowed_from]


def transition(
    current_status: str | ShipmentStatus,
    operation: str | WorkflowOperation,
    args: Mapping[str, Any] | None = None,
    *,
    current: Mapping[str, Any] | None = None,
    now: datetime | None = None,
) -> TransitionOutcome:
    """
    Validate `operation` from `current_status` and build the resulting patch.

    `current` carries the shipment fields some operations read (quantity for
    receiving, status_before_archive for unarchive). Raises InvalidStateTransition
    when the operation is not allowed from the current status and ValidationError
    when the operation arguments are malformed.
    """
    op = WorkflowOperation(operation)
    rule = TRANSITIONS[op]
    try:
        status = parse_status(current_status)
    except ValueError:
        status = None

    if status is None or status not in rule.allowed_from:
        raise InvalidStateTransition(
            message=f"Cannot {op.value} a shipment in status '{current_status}'.",
            details={
                "operation": op.value,
                "current_status": str(getattr(current_status, "value", current_status)),
                "allowed_from": sorted(s.value for s in rule.allowed_from),
            },
        )

    stamp = now or datetime.utcnow()
    context = dict(current or {})
    context.setdefault("latest_status", status)
    to_status, patch = rule.resolve(args or {}, context, stamp)
    patch["latest_status"] = to_status.value
    patch["updated_at"] = stamp
    return TransitionOutcome(
        operation=op,
        from_status=status,
        to_status=to_status,
        patch=patch,
    )
