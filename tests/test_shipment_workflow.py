from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import update

from app.core.config import settings
from app.core.errors import InvalidStateTransition, NotFound, StaleStateConflict, ValidationError
from app.core.workflow.week_dates import selected_week_date
from app.crud.shipment import save_if_status
from app.models.shipment import Shipment
from app.services import shipment_workflow_service as workflow_module
from app.services.shipment_workflow_service import ShipmentWorkflowService


def _seed_shipment(db_session, shipment_id="SHP-1", status="arrived_pta", **extra):
    values = {
        "id": shipment_id,
        "supplier": "Acme Foods",
        "order_ref": "PO-100",
        "latest_status": status,
        "week_number": 12,
        "quantity": 10,
        "pallet_qty": 2,
        "receiving_warehouse": "PRETORIA",
    }
    values.update(extra)
    db_session.add(Shipment(**values))
    db_session.commit()


def test_full_workflow_records_operation_fields(db_session):
    _seed_shipment(db_session)
    service = ShipmentWorkflowService(db_session)

    service.start_unloading("SHP-1")
    service.complete_unloading("SHP-1")
    service.start_inspection("SHP-1", inspector="inspector@example.com")
    service.complete_inspection("SHP-1", passed=True, notes="clean")
    service.start_receiving("SHP-1", receiver="receiver@example.com")
    shipment = service.complete_receiving("SHP-1", received_quantity=8)

    assert shipment.latest_status == "received"
    assert shipment.receiving_status == "partial"
    assert shipment.inspected_by == "inspector@example.com"
    assert shipment.received_by == "receiver@example.com"
    assert shipment.unloading_start_date is not None
    assert shipment.unloading_completed_date is not None
    assert shipment.inspection_date is not None

    stored = service.mark_stored("SHP-1")
    assert stored.latest_status == "stored"


def test_invalid_transition_leaves_shipment_unchanged(db_session):
    _seed_shipment(db_session, status="in_transit_seaway")
    service = ShipmentWorkflowService(db_session)

    with pytest.raises(InvalidStateTransition):
        service.start_unloading("SHP-1")

    shipment = service.get_shipment("SHP-1")
    assert shipment.latest_status == "in_transit_seaway"
    assert shipment.unloading_start_date is None


def test_missing_shipment_raises_not_found(db_session):
    with pytest.raises(NotFound):
        ShipmentWorkflowService(db_session).start_unloading("nope")


def test_concurrent_status_change_raises_stale_conflict(db_session, monkeypatch):
    _seed_shipment(db_session)
    original_transition = workflow_module.transition

    def _racing_transition(*args, **kwargs):
        outcome = original_transition(*args, **kwargs)
        # Another writer moves the shipment after it was read.
        db_session.execute(
            update(Shipment)
            .where(Shipment.id == "SHP-1")
            .values(latest_status="delayed")
        )
        return outcome

    monkeypatch.setattr(workflow_module, "transition", _racing_transition)

    with pytest.raises(StaleStateConflict) as exc_info:
        ShipmentWorkflowService(db_session).start_unloading("SHP-1")

    assert exc_info.value.status_code == 409
    assert exc_info.value.to_detail()["code"] == "STALE_STATE_CONFLICT"


def test_save_if_status_matches_only_expected_status(db_session):
    _seed_shipment(db_session)

    assert save_if_status(
        db_session,
        "SHP-1",
        expected_status="unloading",
        patch={"latest_status": "inspection_pending"},
    ) is None

    saved = save_if_status(
        db_session,
        "SHP-1",
        expected_status="arrived_pta",
        patch={"latest_status": "unloading"},
    )
    db_session.commit()
    assert saved is not None
    assert saved.latest_status == "unloading"


def test_second_transition_from_same_state_fails(db_session):
    _seed_shipment(db_session)
    service = ShipmentWorkflowService(db_session)

    service.start_unloading("SHP-1")
    with pytest.raises(InvalidStateTransition):
        service.start_unloading("SHP-1")


def test_reject_only_after_failed_inspection(db_session):
    _seed_shipment(db_session, status="inspection_failed")
    service = ShipmentWorkflowService(db_session)

    with pytest.raises(ValidationError):
        service.reject("SHP-1", reason="")

    shipment = service.reject("SHP-1", reason="Water damage", rejected_by="qa@example.com")
    assert shipment.latest_status == "cancelled"
    assert shipment.rejected_by == "qa@example.com"
    assert shipment.rejection_date is not None


def test_archive_round_trip_and_listing(db_session):
    _seed_shipment(db_session, status="received")
    service = ShipmentWorkflowService(db_session)

    archived = service.archive("SHP-1")
    assert archived.latest_status == "archived"
    assert archived.status_before_archive == "received"
    assert [s.id for s in service.list_archived()] == ["SHP-1"]
    assert service.list_shipments() == []
    assert [s.id for s in service.list_shipments(include_archived=True)] == ["SHP-1"]

    restored = service.unarchive("SHP-1")
    assert restored.latest_status == "received"
    assert restored.archived_at is None
    assert service.list_archived() == []


def test_post_arrival_board_excludes_pre_arrival_and_terminal(db_session):
    _seed_shipment(db_session, "SHP-A", status="arrived_klm")
    _seed_shipment(db_session, "SHP-B", status="inspecting")
    _seed_shipment(db_session, "SHP-C", status="stored")
    _seed_shipment(db_session, "SHP-D", status="planned_seafreight")

    ids = [s.id for s in ShipmentWorkflowService(db_session).list_post_arrival()]
    assert ids == ["SHP-A", "SHP-B"]


def test_create_shipment_defaults(db_session):
    service = ShipmentWorkflowService(db_session)
    shipment = service.create_shipment(
        {"supplier": "Acme Foods", "week_number": 45, "receiving_warehouse": "KLAPMUTS"},
        today=date(2026, 10, 19),
    )

    assert shipment.id
    assert shipment.latest_status == "planned_seafreight"
    assert float(shipment.pallet_qty) == 1
    assert shipment.selected_week_date == date(2026, 11, 2)


def test_create_shipment_validates_warehouse_and_week(db_session):
    service = ShipmentWorkflowService(db_session)

    with pytest.raises(ValidationError):
        service.create_shipment({"supplier": "Acme", "receiving_warehouse": "DURBAN"})

    with pytest.raises(ValidationError):
        service.create_shipment({"supplier": "Acme", "week_number": 54})


@pytest.mark.parametrize(
    ("week_number", "today", "expected"),
    [
        (45, date(2026, 10, 19), date(2026, 11, 2)),
        (2, date(2026, 10, 19), date(2027, 1, 11)),
        (3, date(2026, 12, 15), date(2027, 1, 18)),
        (50, date(2027, 1, 5), date(2026, 12, 7)),
    ],
)
def test_selected_week_date_year_detection(week_number, today, expected):
    assert selected_week_date(week_number, today) == expected


def test_selected_week_date_far_ahead_week_belongs_to_previous_year():
    resolved = selected_week_date(40, date(2026, 3, 4))
    assert resolved.isocalendar()[:2] == (2025, 40)
    assert resolved.weekday() == 0


def test_selected_week_date_ignores_out_of_range():
    assert selected_week_date(None, date(2026, 3, 4)) is None
    assert selected_week_date(0, date(2026, 3, 4)) is None


def test_transition_endpoints_return_envelope(client, db_session, monkeypatch):
    monkeypatch.setattr(settings, "AUTH_MODE", "legacy_header")
    _seed_shipment(db_session, status="inspection_pending")

    r = client.post(
        "/api/v1/shipments/SHP-1/start-inspection",
        headers={"X-User-Email": "Inspector@Example.com"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Inspection started"
    assert body["data"]["latest_status"] == "inspecting"
    assert body["data"]["inspected_by"] == "inspector@example.com"

    r = client.post("/api/v1/shipments/SHP-1/complete-inspection", json={"passed": False})
    assert r.status_code == 200
    assert r.json()["data"]["latest_status"] == "inspection_failed"


def test_invalid_transition_endpoint_returns_stable_code(client, db_session):
    _seed_shipment(db_session, status="planned_airfreight")

    r = client.post("/api/v1/shipments/SHP-1/mark-stored")
    assert r.status_code == 400
    detail = r.json()["detail"]
    assert detail["code"] == "INVALID_STATE_TRANSITION"
    assert detail["current_status"] == "planned_airfreight"
    assert detail["allowed_from"] == ["received"]


def test_unknown_shipment_endpoint_returns_not_found(client, db_session):
    r = client.get("/api/v1/shipments/missing")
    assert r.status_code == 404
    assert r.json()["detail"]["code"] == "NOT_FOUND"


def test_reject_endpoint_requires_reason(client, db_session):
    _seed_shipment(db_session, status="inspection_failed")

    r = client.post("/api/v1/shipments/SHP-1/reject", json={"rejection_reason": ""})
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "VALIDATION_ERROR"

    r = client.post(
        "/api/v1/shipments/SHP-1/reject",
        json={"rejection_reason": "Mould found"},
        headers={"X-User-Email": "qa@example.com"},
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["latest_status"] == "cancelled"
    assert data["rejected_by"] == "qa@example.com"


def test_create_and_list_endpoints(client, db_session):
    r = client.post(
        "/api/v1/shipments/",
        json={"id": "SHP-9", "supplier": "Acme", "week_number": 20, "receiving_warehouse": "Offsite"},
    )
    assert r.status_code == 201
    assert r.json()["data"]["latest_status"] == "planned_seafreight"

    r = client.post("/api/v1/shipments/", json={"id": "SHP-9", "supplier": "Acme"})
    assert r.status_code == 400

    r = client.get("/api/v1/shipments/", params={"warehouse": "Offsite"})
    assert r.status_code == 200
    assert [row["id"] for row in r.json()] == ["SHP-9"]

    r = client.post("/api/v1/shipments/SHP-9/archive")
    assert r.status_code == 200
    r = client.get("/api/v1/shipments/archives")
    assert [row["id"] for row in r.json()] == ["SHP-9"]


def test_cancel_endpoint_records_caller(client, db_session):
    _seed_shipment(db_session, status="in_warehouse")

    r = client.post(
        "/api/v1/shipments/SHP-1/cancel",
        json={"reason": "Order withdrawn"},
        headers={"X-User-Email": "Planner@Example.com"},
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["latest_status"] == "cancelled"
    assert data["cancellation_reason"] == "Order withdrawn"
    assert data["cancelled_by"] == "planner@example.com"
    assert data["cancelled_at"] is not None
