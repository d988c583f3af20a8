"""
Warehouse bin-capacity forecast.

Projects bin usage per warehouse for the current week and the following weeks from
inbound shipments and the ledger's current bins_used, then assigns an alert tier
and at most one recommendation per week.

Everything here is pure arithmetic over the supplied snapshot. `today` is a
parameter so identical inputs always produce identical output. Malformed shipment
records are programming errors and are not caught.
"""

from __future__ import annotations

import enum
import math
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Iterable, Mapping, Protocol

from app.core.config import csv_values, parse_int_list
from app.core.workflow.statuses import IN_MOTION_STATUSES

_IN_MOTION_VALUES = frozenset(status.value for status in IN_MOTION_STATUSES)


class AlertLevel(str, enum.Enum):
    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"
    OVERFLOW = "overflow"

    @property
    def rank(self) -> int:
        return _ALERT_RANK[self]


_ALERT_RANK = {
    AlertLevel.OK: 0,
    AlertLevel.WARNING: 1,
    AlertLevel.CRITICAL: 2,
    AlertLevel.OVERFLOW: 3,
}


class InboundShipment(Protocol):
    week_number: Any
    receiving_warehouse: str | None
    latest_status: str
    pallet_qty: Any


@dataclass(frozen=True)
class ForecastShipment:
    """Minimal shipment view the forecast reads."""

    week_number: int | None
    receiving_warehouse: str | None
    latest_status: str
    pallet_qty: float | None = None


@dataclass(frozen=True)
class ForecastPolicy:
    weeks_ahead: int = 8
    bins_per_pallet: float = 1.0
    # Fraction of a week's incoming bins assumed to leave as outbound stock.
    outbound_decay_factor: float = 0.3
    warning_percent: int = 80
    critical_percent: int = 95
    redistribution_target_max_percent: int = 80
    # buffers[i] is added to the move amount when priority_order[i] is critical.
    redistribution_buffers: tuple[int, ...] = (50, 30)
    # Primary site first. Overflow, critical and warning checks follow this order.
    priority_order: tuple[str, ...] = ("PRETORIA", "KLAPMUTS", "Offsite")

    @classmethod
    def from_settings(cls, settings) -> "ForecastPolicy":
        return cls(
            weeks_ahead=max(0, int(settings.FORECAST_WEEKS_AHEAD)),
            bins_per_pallet=float(settings.FORECAST_BINS_PER_PALLET),
            outbound_decay_factor=float(settings.FORECAST_OUTBOUND_DECAY_FACTOR),
            warning_percent=int(settings.FORECAST_WARNING_PERCENT),
            critical_percent=int(settings.FORECAST_CRITICAL_PERCENT),
            redistribution_target_max_percent=int(
                settings.FORECAST_REDISTRIBUTION_TARGET_MAX_PERCENT
            ),
            redistribution_buffers=tuple(
                parse_int_list(settings.FORECAST_REDISTRIBUTION_BUFFERS)
            ),
            priority_order=tuple(csv_values(settings.WAREHOUSE_NAMES)),
        )


@dataclass(frozen=True)
class WarehouseForecast:
    projected_bins_used: int
    capacity: int
    percent_used: int
    incoming_bins: int
    alert: str


@dataclass(frozen=True)
class Recommendation:
    type: str
    severity: str
    warehouse: str
    message: str
    overflow_amount: int | None = None
    target_warehouse: str | None = None
    move_bins: int | None = None
    action: str | None = None


@dataclass(frozen=True)
class ForecastEntry:
    week_offset: int
    week_number: int
    label: str
    warehouses: dict[str, WarehouseForecast] = field(default_factory=dict)
    total_alert: str = AlertLevel.OK.value
    recommendation: Recommendation | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def current_week_number(today: date) -> int:
    """Day-count week number: days since January 1st, in whole weeks, plus one."""
    return (today - date(today.year, 1, 1)).days // 7 + 1


def incoming_pallets_for_week(
    shipments: Iterable[InboundShipment],
    warehouse: str,
    week_number: int,
) -> float:
    total = 0.0
    for shipment in shipments:
        if int(shipment.week_number or 0) != week_number:
            continue
        if shipment.receiving_warehouse != warehouse:
            continue
        if str(shipment.latest_status) not in _IN_MOTION_VALUES:
            continue
        total += float(shipment.pallet_qty or 1)
    return total


def bins_from_pallets(pallets: float, policy: ForecastPolicy) -> int:
    return int(math.ceil(pallets * policy.bins_per_pallet))


def alert_for_percent(percent_used: int, policy: ForecastPolicy) -> AlertLevel:
    if percent_used > 100:
        return AlertLevel.OVERFLOW
    if percent_used >= policy.critical_percent:
        return AlertLevel.CRITICAL
    if percent_used >= policy.warning_percent:
        return AlertLevel.WARNING
    return AlertLevel.OK


def _priority(warehouses: Mapping[str, WarehouseForecast], policy: ForecastPolicy) -> list[str]:
    ordered = [name for name in policy.priority_order if name in warehouses]
    ordered.extend(name for name in warehouses if name not in ordered)
    return ordered


def _redistribution(
    source: str,
    index: int,
    order: list[str],
    warehouses: Mapping[str, WarehouseForecast],
    policy: ForecastPolicy,
) -> Recommendation | None:
    if source not in policy.priority_order:
        return None
    rank = policy.priority_order.index(source)
    if rank >= len(policy.redistribution_buffers):
        return None
    buffer = policy.redistribution_buffers[rank]
    src = warehouses[source]
    available = src.capacity - src.projected_bins_used
    for target in order[index + 1:]:
        dst = warehouses[target]
        if dst.percent_used >= policy.redistribution_target_max_percent:
            continue
        spare = dst.capacity - dst.projected_bins_used
        move_bins = min(available + buffer, spare)
        pallets = round_half_up(move_bins / policy.bins_per_pallet) if policy.bins_per_pallet else move_bins
        after = round_half_up((src.projected_bins_used - move_bins) / src.capacity * 100)
        return Recommendation(
            type="redistribute",
            severity="warning",
            warehouse=source,
            target_warehouse=target,
            move_bins=move_bins,
            message=f"CRITICAL: Move ~{pallets} pallets from {source} to {target}",
            action=f"Reduces {source} to {after}%",
        )
    return None


def generate_recommendation(
    warehouses: Mapping[str, WarehouseForecast],
    policy: ForecastPolicy,
) -> Recommendation | None:
    """
    First match wins: any overflow, then the first critical warehouse (with a
    redistribution target when one is below the target threshold), then the first
    warning, in priority order.
    """
    order = _priority(warehouses, policy)

    for name in order:
        data = warehouses[name]
        if data.alert == AlertLevel.OVERFLOW.value:
            overflow = data.projected_bins_used - data.capacity
            return Recommendation(
                type="overflow",
                severity="critical",
                warehouse=name,
                overflow_amount=overflow,
                message=f"OVERFLOW: {name} will exceed capacity by {overflow} bins. Urgent action needed!",
            )

    for index, name in enumerate(order):
        data = warehouses[name]
        if data.alert != AlertLevel.CRITICAL.value:
            continue
        suggestion = _redistribution(name, index, order, warehouses, policy)
        if suggestion is not None:
            return suggestion
        return Recommendation(
            type="critical",
            severity="warning",
            warehouse=name,
            message=f"CRITICAL: {name} at {data.percent_used}% capacity",
        )

    for name in order:
        data = warehouses[name]
        if data.alert == AlertLevel.WARNING.value:
            return Recommendation(
                type="warning",
                severity="info",
                warehouse=name,
                message=f"WARNING: {name} approaching capacity ({data.percent_used}%)",
            )

    return None


def generate_forecast(
    shipments: Iterable[InboundShipment],
    current_bins_used: Mapping[str, int],
    capacities: Mapping[str, int],
    *,
    today: date,
    policy: ForecastPolicy | None = None,
) -> list[ForecastEntry]:
    """
    Return one entry per week offset 0..policy.weeks_ahead, in order.

    `capacities` decides which warehouses are projected; each must be positive.
    Week 0 uses the ledger's bins_used as-is; later weeks subtract the outbound
    decay before adding that week's incoming bins.
    """
    policy = policy or ForecastPolicy()
    shipments = list(shipments)
    this_week = current_week_number(today)
    forecast: list[ForecastEntry] = []

    for week_offset in range(policy.weeks_ahead + 1):
        target_week = this_week + week_offset
        warehouses: dict[str, WarehouseForecast] = {}
        total_alert = AlertLevel.OK

        for name, capacity in capacities.items():
            incoming_bins = bins_from_pallets(
                incoming_pallets_for_week(shipments, name, target_week),
                policy,
            )
            current = current_bins_used.get(name) or 0
            if week_offset == 0:
                estimated = float(current)
            else:
                estimated = max(0.0, current - incoming_bins * policy.outbound_decay_factor)

            projected = round_half_up(estimated + incoming_bins)
            percent_used = round_half_up(projected / capacity * 100)
            alert = alert_for_percent(percent_used, policy)
            if alert.rank > total_alert.rank:
                total_alert = alert

            warehouses[name] = WarehouseForecast(
                projected_bins_used=projected,
                capacity=int(capacity),
                percent_used=percent_used,
                incoming_bins=incoming_bins,
                alert=alert.value,
            )

        forecast.append(
            ForecastEntry(
                week_offset=week_offset,
                week_number=target_week,
                label="Now" if week_offset == 0 else f"+{week_offset}w",
                warehouses=warehouses,
                total_alert=total_alert.value,
                recommendation=generate_recommendation(warehouses, policy),
            )
        )

    return forecast
