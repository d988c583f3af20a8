from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ValidationError
from app.core.flow_logging import flow_info
from app.crud import warehouse_capacity as crud_capacity
from app.db.session import unit_of_work
from app.models.warehouse_capacity import WarehouseCapacity, WarehouseCapacityHistory
from app.schemas.warehouse_capacity import CapacityHistoryEntryOut, CapacityOverview, HistoryActor

logger = logging.getLogger(__name__)

MAX_WAREHOUSE_NAME_LENGTH = 100


class WarehouseCapacityService:
    """
    Per-warehouse bin ledger.

    Writes are plain upserts: concurrent writers to the same warehouse are
    last-writer-wins. Only `bins_used` changes are audited, and only when the
    row already existed and the caller identified an actor.
    """

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _normalized_warehouse(value: str | None) -> str:
        name = (value or "").strip()
        if not name:
            raise ValidationError(
                message="Warehouse name is required.",
                details={"field": "warehouse"},
            )
        if len(name) > MAX_WAREHOUSE_NAME_LENGTH:
            raise ValidationError(
                message=f"Warehouse name must be at most {MAX_WAREHOUSE_NAME_LENGTH} characters.",
                details={"field": "warehouse"},
            )
        return name

    @staticmethod
    def _non_negative(value, field_name: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(
                message=f"{field_name} must be a whole number.",
                details={"field": field_name},
            )
        if value < 0:
            raise ValidationError(
                message=f"{field_name} must be non-negative.",
                details={"field": field_name},
            )
        return value

    def get_all(self) -> list[WarehouseCapacity]:
        return crud_capacity.list_capacities(self.db)

    def overview(self) -> CapacityOverview:
        overview = CapacityOverview()
        for row in self.get_all():
            overview.total_capacity[row.warehouse_name] = row.total_capacity or 0
            overview.bins_used[row.warehouse_name] = row.bins_used or 0
            overview.available_bins[row.warehouse_name] = row.available_bins or 0
        return overview

    def snapshot(self) -> dict[str, WarehouseCapacity]:
        return {row.warehouse_name: row for row in self.get_all()}

    def _write(
        self,
        warehouse: str,
        *,
        field: str,
        value,
        value_name: str,
        actor_id: int | None,
        audit: bool,
    ) -> WarehouseCapacity:
        name = self._normalized_warehouse(warehouse)
        value = self._non_negative(value, value_name)

        with unit_of_work(self.db):
            row, previous, existed = crud_capacity.upsert_capacity_field(
                self.db,
                name,
                field=field,
                value=value,
                updated_by=actor_id,
            )
            if audit and existed and actor_id is not None:
                crud_capacity.append_history(
                    self.db,
                    warehouse_name=name,
                    bins_used=value,
                    previous_value=previous,
                    changed_by=actor_id,
                )

        flow_info(
            logger,
            "capacity_write warehouse=%s field=%s value=%s previous=%s actor=%s",
            name,
            field,
            value,
            previous if previous is not None else "-",
            actor_id if actor_id is not None else "-",
            category="capacity",
        )
        return row

    def set_bins_used(self, warehouse: str, value, *, actor_id: int | None = None) -> WarehouseCapacity:
        return self._write(
            warehouse,
            field="bins_used",
            value=value,
            value_name="binsUsed",
            actor_id=actor_id,
            audit=True,
        )

    def set_available_bins(
        self, warehouse: str, value, *, actor_id: int | None = None
    ) -> WarehouseCapacity:
        return self._write(
            warehouse,
            field="available_bins",
            value=value,
            value_name="availableBins",
            actor_id=actor_id,
            audit=False,
        )

    def set_total_capacity(
        self, warehouse: str, value, *, actor_id: int | None = None
    ) -> WarehouseCapacity:
        return self._write(
            warehouse,
            field="total_capacity",
            value=value,
            value_name="totalCapacity",
            actor_id=actor_id,
            audit=False,
        )

    def get_history(
        self,
        warehouse: str | None = None,
        *,
        limit: int | None = None,
    ) -> list[WarehouseCapacityHistory]:
        name = self._normalized_warehouse(warehouse) if warehouse is not None else None
        if limit is None:
            limit = (
                settings.CAPACITY_HISTORY_DEFAULT_LIMIT
                if name is not None
                else settings.CAPACITY_HISTORY_ADMIN_LIMIT
            )
        if limit < 1:
            raise ValidationError(message="limit must be positive.", details={"field": "limit"})
        return crud_capacity.list_history(self.db, warehouse_name=name, limit=limit)


def history_entry_out(entry: WarehouseCapacityHistory) -> CapacityHistoryEntryOut:
    actor = None
    if entry.changed_by is not None:
        user = entry.changed_by_user
        actor = HistoryActor(
            user_id=entry.changed_by,
            username=user.username if user is not None else None,
            full_name=user.full_name if user is not None else None,
        )
    return CapacityHistoryEntryOut(
        id=entry.id,
        warehouse_name=entry.warehouse_name,
        bins_used=entry.bins_used,
        previous_value=entry.previous_value,
        changed_at=entry.changed_at,
        changed_by=actor,
    )
