from __future__ import annotations

from datetime import date
import logging

from sqlalchemy.orm import Session

from app.core.config import csv_values, parse_capacity_map, settings
from app.core.forecast.capacity_forecast import (
    ForecastEntry,
    ForecastPolicy,
    ForecastShipment,
    generate_forecast,
)
from app.core.workflow.statuses import IN_MOTION_STATUSES
from app.crud.shipment import list_inbound_shipments
from app.services.warehouse_capacity_service import WarehouseCapacityService

logger = logging.getLogger(__name__)


class CapacityForecastService:
    """Reads the shipment and ledger snapshot and runs the forecast over it."""

    def __init__(self, db: Session):
        self.db = db

    def _shipments(self) -> list[ForecastShipment]:
        rows = list_inbound_shipments(
            self.db,
            sorted(status.value for status in IN_MOTION_STATUSES),
        )
        return [
            ForecastShipment(
                week_number=row.week_number,
                receiving_warehouse=row.receiving_warehouse,
                latest_status=row.latest_status,
                pallet_qty=float(row.pallet_qty) if row.pallet_qty is not None else None,
            )
            for row in rows
        ]

    def capacities_and_usage(self) -> tuple[dict[str, int], dict[str, int]]:
        """
        Capacity per configured warehouse and the ledger's current bins_used.

        A positive ledger total_capacity wins; otherwise the nominal configured
        capacity applies. Warehouses with neither are left out of the forecast.
        """
        ledger = WarehouseCapacityService(self.db).snapshot()
        nominal = parse_capacity_map(settings.WAREHOUSE_NOMINAL_CAPACITY)

        names = csv_values(settings.WAREHOUSE_NAMES)
        names.extend(name for name in nominal if name not in names)

        capacities: dict[str, int] = {}
        bins_used: dict[str, int] = {}
        for name in names:
            row = ledger.get(name)
            if row is not None and (row.total_capacity or 0) > 0:
                capacities[name] = int(row.total_capacity)
            elif nominal.get(name, 0) > 0:
                capacities[name] = nominal[name]
            else:
                logger.warning("forecast_capacity_missing warehouse=%s", name)
                continue
            bins_used[name] = int(row.bins_used or 0) if row is not None else 0
        return capacities, bins_used

    def forecast(self, *, today: date | None = None) -> list[ForecastEntry]:
        capacities, bins_used = self.capacities_and_usage()
        return generate_forecast(
            self._shipments(),
            bins_used,
            capacities,
            today=today or date.today(),
            policy=ForecastPolicy.from_settings(settings),
        )
