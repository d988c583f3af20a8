from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class WarehouseForecastOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    projected_bins_used: int
    capacity: int
    percent_used: int
    incoming_bins: int
    alert: str


class RecommendationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: str
    severity: str
    warehouse: str
    message: str
    overflow_amount: Optional[int] = None
    target_warehouse: Optional[str] = None
    move_bins: Optional[int] = None
    action: Optional[str] = None


class ForecastEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    week_offset: int
    week_number: int
    label: str
    warehouses: dict[str, WarehouseForecastOut]
    total_alert: str
    recommendation: Optional[RecommendationOut] = None
