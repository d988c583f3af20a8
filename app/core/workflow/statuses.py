from __future__ import annotations

import enum


class ShipmentStatus(str, enum.Enum):
    # Pre-arrival
    PLANNED_AIRFREIGHT = "planned_airfreight"
    PLANNED_SEAFREIGHT = "planned_seafreight"
    IN_TRANSIT_AIRFREIGHT = "in_transit_airfreight"
    IN_TRANSIT_SEAFREIGHT = "in_transit_seafreight"
    AIR_CUSTOMS_CLEARANCE = "air_customs_clearance"
    IN_TRANSIT_ROADWAY = "in_transit_roadway"
    IN_TRANSIT_SEAWAY = "in_transit_seaway"
    MOORED = "moored"
    BERTH_WORKING = "berth_working"
    BERTH_COMPLETE = "berth_complete"

    # Arrival
    ARRIVED_PTA = "arrived_pta"
    ARRIVED_KLM = "arrived_klm"
    ARRIVED_OFFSITE = "arrived_offsite"

    # Post-arrival workflow
    CLEARING_CUSTOMS = "clearing_customs"
    IN_WAREHOUSE = "in_warehouse"
    UNLOADING = "unloading"
    INSPECTION_PENDING = "inspection_pending"
    INSPECTING = "inspecting"
    INSPECTION_IN_PROGRESS = "inspection_in_progress"
    INSPECTION_PASSED = "inspection_passed"
    INSPECTION_FAILED = "inspection_failed"
    RECEIVING_GOODS = "receiving_goods"
    RECEIVING = "receiving"
    RECEIVED = "received"
    STORED = "stored"

    # Side states
    DELAYED = "delayed"
    CANCELLED = "cancelled"
    ARCHIVED = "archived"


class InspectionStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    PASSED = "passed"
    FAILED = "failed"


class ReceivingStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    PARTIAL = "partial"
    COMPLETED = "completed"
    DISCREPANCY = "discrepancy"


S = ShipmentStatus

PRE_ARRIVAL_STATUSES: frozenset[ShipmentStatus] = frozenset(
    {
        S.PLANNED_AIRFREIGHT,
        S.PLANNED_SEAFREIGHT,
        S.IN_TRANSIT_AIRFREIGHT,
        S.IN_TRANSIT_SEAFREIGHT,
        S.AIR_CUSTOMS_CLEARANCE,
        S.IN_TRANSIT_ROADWAY,
        S.IN_TRANSIT_SEAWAY,
        S.MOORED,
        S.BERTH_WORKING,
        S.BERTH_COMPLETE,
    }
)

ARRIVAL_STATUSES: frozenset[ShipmentStatus] = frozenset(
    {S.ARRIVED_PTA, S.ARRIVED_KLM, S.ARRIVED_OFFSITE}
)

POST_ARRIVAL_STATUSES: frozenset[ShipmentStatus] = frozenset(
    {
        S.CLEARING_CUSTOMS,
        S.IN_WAREHOUSE,
        S.UNLOADING,
        S.INSPECTION_PENDING,
        S.INSPECTING,
        S.INSPECTION_IN_PROGRESS,
        S.INSPECTION_PASSED,
        S.INSPECTION_FAILED,
        S.RECEIVING_GOODS,
        S.RECEIVING,
        S.RECEIVED,
        S.STORED,
    }
)

SIDE_STATUSES: frozenset[ShipmentStatus] = frozenset({S.DELAYED, S.CANCELLED, S.ARCHIVED})

# Statuses the capacity forecast counts as inbound volume. Note this is narrower than
# PRE_ARRIVAL_STATUSES: seafreight in transit and air customs clearance are excluded.
IN_MOTION_STATUSES: frozenset[ShipmentStatus] = frozenset(
    {
        S.PLANNED_AIRFREIGHT,
        S.PLANNED_SEAFREIGHT,
        S.IN_TRANSIT_AIRFREIGHT,
        S.IN_TRANSIT_SEAWAY,
        S.IN_TRANSIT_ROADWAY,
        S.MOORED,
        S.BERTH_WORKING,
        S.BERTH_COMPLETE,
    }
)

TERMINAL_STATUSES: frozenset[ShipmentStatus] = frozenset({S.STORED, S.CANCELLED})

# Shown on the post-arrival board: arrived and still moving through the workflow.
POST_ARRIVAL_BOARD_STATUSES: frozenset[ShipmentStatus] = (
    ARRIVAL_STATUSES | POST_ARRIVAL_STATUSES
) - TERMINAL_STATUSES

ALL_STATUSES: frozenset[ShipmentStatus] = frozenset(ShipmentStatus)


def parse_status(value: str | ShipmentStatus) -> ShipmentStatus:
    if isinstance(value, ShipmentStatus):
        return value
    return ShipmentStatus((value or "").strip().lower())
