from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ShipmentCreate(BaseModel):
    id: Optional[str] = Field(default=None, max_length=255)
    supplier: str = Field(min_length=1, max_length=255)
    order_ref: Optional[str] = Field(default=None, max_length=255)
    final_pod: Optional[str] = None
    product_name: Optional[str] = None
    latest_status: Optional[str] = None
    week_number: Optional[int] = None
    quantity: Optional[float] = None
    pallet_qty: Optional[float] = None
    receiving_warehouse: Optional[str] = None
    forwarding_agent: Optional[str] = None
    vessel_name: Optional[str] = None
    notes: Optional[str] = None


class ShipmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    supplier: str
    order_ref: Optional[str] = None
    final_pod: Optional[str] = None
    product_name: Optional[str] = None
    latest_status: str
    week_number: Optional[int] = None
    selected_week_date: Optional[date] = None
    quantity: Optional[float] = None
    pallet_qty: Optional[float] = None
    receiving_warehouse: Optional[str] = None
    forwarding_agent: Optional[str] = None
    vessel_name: Optional[str] = None
    notes: Optional[str] = None

    unloading_start_date: Optional[datetime] = None
    unloading_completed_date: Optional[datetime] = None
    inspection_status: Optional[str] = None
    inspection_date: Optional[datetime] = None
    inspection_notes: Optional[str] = None
    inspected_by: Optional[str] = None
    receiving_status: Optional[str] = None
    receiving_date: Optional[datetime] = None
    receiving_notes: Optional[str] = None
    received_by: Optional[str] = None
    received_quantity: Optional[float] = None
    discrepancies: Optional[list] = None

    rejection_reason: Optional[str] = None
    rejected_by: Optional[str] = None
    rejection_date: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    status_before_archive: Optional[str] = None
    archived_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ShipmentEnvelope(BaseModel):
    data: ShipmentOut
    message: str


# Workflow request bodies. Values are validated by the status machine so that
# malformed input surfaces as a VALIDATION_ERROR detail rather than a 422.

class StartInspectionRequest(BaseModel):
    inspected_by: Optional[str] = None


class CompleteInspectionRequest(BaseModel):
    passed: Optional[bool] = None
    notes: Optional[str] = None
    inspected_by: Optional[str] = None


class StartReceivingRequest(BaseModel):
    received_by: Optional[str] = None


class CompleteReceivingRequest(BaseModel):
    received_quantity: Optional[float] = None
    received_by: Optional[str] = None
    notes: Optional[str] = None
    discrepancies: list[str] = Field(default_factory=list)


class RejectShipmentRequest(BaseModel):
    rejection_reason: Optional[str] = None
    rejected_by: Optional[str] = None


class CancelShipmentRequest(BaseModel):
    reason: Optional[str] = None
    cancelled_by: Optional[str] = None
