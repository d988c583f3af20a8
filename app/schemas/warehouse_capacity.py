from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BinsUsedUpdate(BaseModel):
    bins_used: int = Field(alias="binsUsed")

    model_config = ConfigDict(populate_by_name=True)


class AvailableBinsUpdate(BaseModel):
    available_bins: int = Field(alias="availableBins")

    model_config = ConfigDict(populate_by_name=True)


class TotalCapacityUpdate(BaseModel):
    total_capacity: int = Field(alias="totalCapacity")

    model_config = ConfigDict(populate_by_name=True)


class WarehouseCapacityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    warehouse_name: str
    total_capacity: int
    bins_used: int
    available_bins: int
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None


class WarehouseCapacityWriteResponse(BaseModel):
    success: bool = True
    data: WarehouseCapacityOut


class CapacityOverview(BaseModel):
    """Ledger grouped by column, keyed by warehouse name."""

    model_config = ConfigDict(populate_by_name=True)

    total_capacity: dict[str, int] = Field(default_factory=dict, alias="totalCapacity")
    bins_used: dict[str, int] = Field(default_factory=dict, alias="binsUsed")
    available_bins: dict[str, int] = Field(default_factory=dict, alias="availableBins")


class HistoryActor(BaseModel):
    user_id: Optional[int] = None
    username: Optional[str] = None
    full_name: Optional[str] = None


class CapacityHistoryEntryOut(BaseModel):
    id: int
    warehouse_name: str
    bins_used: int
    previous_value: Optional[int] = None
    changed_at: datetime
    changed_by: Optional[HistoryActor] = None
