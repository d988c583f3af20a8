from __future__ import annotations

from datetime import datetime

import pytest

from app.core.errors import InvalidStateTransition, ValidationError
from app.core.workflow.status_machine import (
    TRANSITIONS,
    WorkflowOperation,
    allowed_operations,
    transition,
)
from app.core.workflow.statuses import (
    ALL_STATUSES,
    IN_MOTION_STATUSES,
    POST_ARRIVAL_BOARD_STATUSES,
    PRE_ARRIVAL_STATUSES,
    ShipmentStatus,
)

NOW = datetime(2026, 3, 4, 8, 30, 0)

_INVALID_PAIRS = [
    (op, status)
    for op, rule in TRANSITIONS.items()
    for status in sorted(ALL_STATUSES - rule.allowed_from, key=lambda s: s.value)
]

_VALID_ARGS = {
    WorkflowOperation.COMPLETE_INSPECTION: {"passed": True},
    WorkflowOperation.REJECT: {"reason": "damaged"},
}


def test_happy_path_reaches_stored():
    status = ShipmentStatus.ARRIVED_PTA
    steps = [
        (WorkflowOperation.START_UNLOADING, {}, ShipmentStatus.UNLOADING),
        (WorkflowOperation.COMPLETE_UNLOADING, {}, ShipmentStatus.INSPECTION_PENDING),
        (WorkflowOperation.START_INSPECTION, {"inspector": "ins@example.com"}, ShipmentStatus.INSPECTING),
        (WorkflowOperation.COMPLETE_INSPECTION, {"passed": True}, ShipmentStatus.INSPECTION_PASSED),
        (WorkflowOperation.START_RECEIVING, {"receiver": "rcv@example.com"}, ShipmentStatus.RECEIVING),
        (WorkflowOperation.COMPLETE_RECEIVING, {"received_quantity": 10}, ShipmentStatus.RECEIVED),
        (WorkflowOperation.MARK_STORED, {}, ShipmentStatus.STORED),
    ]
    for op, args, expected in steps:
        outcome = transition(status, op, args, current={"quantity": 10}, now=NOW)
        assert outcome.from_status == status
        assert outcome.to_status == expected
        assert outcome.patch["latest_status"] == expected.value
        assert outcome.patch["updated_at"] == NOW
        status = outcome.to_status


@pytest.mark.parametrize(
    ("operation", "status"),
    _INVALID_PAIRS,
    ids=[f"{op.value}-from-{status.value}" for op, status in _INVALID_PAIRS],
)
def test_operation_rejected_outside_allowed_predecessors(operation, status):
    with pytest.raises(InvalidStateTransition) as exc_info:
        transition(status, operation, _VALID_ARGS.get(operation, {}), now=NOW)

    detail = exc_info.value.to_detail()
    assert detail["code"] == "INVALID_STATE_TRANSITION"
    assert detail["current_status"] == status.value
    assert detail["operation"] == operation.value
    assert exc_info.value.status_code == 400


def test_unknown_status_is_invalid_transition():
    with pytest.raises(InvalidStateTransition):
        transition("teleported", WorkflowOperation.START_UNLOADING)


@pytest.mark.parametrize("status", ["arrived_pta", "arrived_klm", "arrived_offsite"])
def test_start_unloading_from_each_arrival_status(status):
    outcome = transition(status, "start_unloading", now=NOW)
    assert outcome.to_status == ShipmentStatus.UNLOADING
    assert outcome.patch["unloading_start_date"] == NOW


def test_synonym_predecessors_are_accepted():
    inspected = transition("inspection_in_progress", "complete_inspection", {"passed": False}, now=NOW)
    assert inspected.to_status == ShipmentStatus.INSPECTION_FAILED
    assert inspected.patch["inspection_status"] == "failed"

    received = transition("receiving_goods", "complete_receiving", {}, now=NOW)
    assert received.to_status == ShipmentStatus.RECEIVED


def test_complete_inspection_requires_boolean_passed():
    with pytest.raises(ValidationError) as exc_info:
        transition("inspecting", "complete_inspection", {"passed": None}, now=NOW)
    assert exc_info.value.to_detail()["field"] == "passed"


def test_complete_inspection_keeps_inspector_when_omitted():
    outcome = transition("inspecting", "complete_inspection", {"passed": True, "notes": " ok "}, now=NOW)
    assert "inspected_by" not in outcome.patch
    assert outcome.patch["inspection_notes"] == "ok"
    assert outcome.patch["inspection_date"] == NOW


def test_complete_receiving_statuses():
    discrepancy = transition(
        "receiving",
        "complete_receiving",
        {"received_quantity": 10, "discrepancies": ["crate 4 dented"]},
        current={"quantity": 10},
        now=NOW,
    )
    assert discrepancy.patch["receiving_status"] == "discrepancy"

    partial = transition(
        "receiving",
        "complete_receiving",
        {"received_quantity": 7},
        current={"quantity": 10},
        now=NOW,
    )
    assert partial.patch["receiving_status"] == "partial"
    assert partial.patch["received_quantity"] == 7

    completed = transition(
        "receiving",
        "complete_receiving",
        {"received_quantity": 10},
        current={"quantity": 10},
        now=NOW,
    )
    assert completed.patch["receiving_status"] == "completed"


def test_complete_receiving_rejects_negative_quantity():
    with pytest.raises(ValidationError):
        transition("receiving", "complete_receiving", {"received_quantity": -1}, now=NOW)


def test_reject_requires_reason_and_failed_inspection():
    with pytest.raises(ValidationError):
        transition("inspection_failed", "reject", {"reason": "   "}, now=NOW)

    with pytest.raises(InvalidStateTransition):
        transition("inspecting", "reject", {"reason": "damaged"}, now=NOW)

    outcome = transition("inspection_failed", "reject", {"reason": "damaged"}, now=NOW)
    assert outcome.to_status == ShipmentStatus.CANCELLED
    assert outcome.patch["rejection_reason"] == "damaged"
    assert outcome.patch["rejected_by"] == "Unknown"
    assert outcome.patch["inspection_status"] == "failed"


def test_archive_and_unarchive_restore_prior_status():
    archived = transition("inspection_passed", "archive", now=NOW)
    assert archived.to_status == ShipmentStatus.ARCHIVED
    assert archived.patch["status_before_archive"] == "inspection_passed"

    restored = transition(
        "archived",
        "unarchive",
        current={"status_before_archive": "inspection_passed"},
        now=NOW,
    )
    assert restored.to_status == ShipmentStatus.INSPECTION_PASSED
    assert restored.patch["status_before_archive"] is None
    assert restored.patch["archived_at"] is None


def test_unarchive_falls_back_to_stored():
    outcome = transition("archived", "unarchive", current={"status_before_archive": "bogus"}, now=NOW)
    assert outcome.to_status == ShipmentStatus.STORED


def test_terminal_statuses_only_allow_archive():
    assert allowed_operations("stored") == [WorkflowOperation.ARCHIVE]
    assert allowed_operations("cancelled") == [WorkflowOperation.ARCHIVE]


def test_cancel_records_reason_and_actor():
    outcome = transition("in_warehouse", "cancel", {"reason": "Duplicate booking", "actor": "ops@example.com"}, now=NOW)
    assert outcome.to_status == ShipmentStatus.CANCELLED
    assert outcome.patch["cancellation_reason"] == "Duplicate booking"
    assert outcome.patch["cancelled_by"] == "ops@example.com"
    assert outcome.patch["cancelled_at"] == NOW

    anonymous = transition("moored", "cancel", {}, now=NOW)
    assert anonymous.patch["cancelled_by"] == "Unknown"


def test_in_motion_statuses_are_pre_arrival():
    assert IN_MOTION_STATUSES <= PRE_ARRIVAL_STATUSES
    assert ShipmentStatus.IN_TRANSIT_SEAFREIGHT in PRE_ARRIVAL_STATUSES - IN_MOTION_STATUSES
    assert ShipmentStatus.AIR_CUSTOMS_CLEARANCE in PRE_ARRIVAL_STATUSES - IN_MOTION_STATUSES
    assert not PRE_ARRIVAL_STATUSES & POST_ARRIVAL_BOARD_STATUSES
