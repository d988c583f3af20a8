from __future__ import annotations

from typing import Any, Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.models.shipment import Shipment


def load_shipment(db: Session, shipment_id: str) -> Shipment | None:
    return db.get(Shipment, shipment_id)


def create_shipment(db: Session, values: dict[str, Any]) -> Shipment:
    obj = Shipment(**values)
    db.add(obj)
    db.flush()
    return obj


def save_if_status(
    db: Session,
    shipment_id: str,
    *,
    expected_status: str,
    patch: dict[str, Any],
) -> Shipment | None:
    """
    Apply `patch` only while the row still holds `expected_status`.

    Returns the refreshed shipment, or None when no row matched (another writer
    moved the status first, or the shipment is gone).
    """
    stmt = (
        update(Shipment)
        .where(Shipment.id == shipment_id)
        .where(Shipment.latest_status == expected_status)
        .values(**patch)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    if result.rowcount == 0:
        return None
    obj = db.get(Shipment, shipment_id, populate_existing=True)
    return obj


def list_shipments(
    db: Session,
    *,
    skip: int = 0,
    limit: int = 100,
    statuses: Iterable[str] | None = None,
    warehouse: str | None = None,
    week_number: int | None = None,
    include_archived: bool = False,
) -> list[Shipment]:
    stmt = select(Shipment).order_by(Shipment.created_at.desc(), Shipment.id.asc())

    if statuses is not None:
        stmt = stmt.where(Shipment.latest_status.in_(list(statuses)))

    if warehouse is not None:
        stmt = stmt.where(Shipment.receiving_warehouse == warehouse)

    if week_number is not None:
        stmt = stmt.where(Shipment.week_number == week_number)

    if not include_archived:
        stmt = stmt.where(Shipment.archived_at.is_(None))

    stmt = stmt.offset(skip).limit(limit)
    return list(db.execute(stmt).scalars().all())


def list_archived_shipments(db: Session, *, skip: int = 0, limit: int = 100) -> list[Shipment]:
    stmt = (
        select(Shipment)
        .where(Shipment.archived_at.is_not(None))
        .order_by(Shipment.archived_at.desc(), Shipment.id.asc())
        .offset(skip)
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def list_inbound_shipments(db: Session, statuses: Iterable[str]) -> list[Shipment]:
    """Unpaged snapshot of non-archived shipments in `statuses`, for forecasting."""
    stmt = (
        select(Shipment)
        .where(Shipment.latest_status.in_(list(statuses)))
        .where(Shipment.archived_at.is_(None))
        .order_by(Shipment.id.asc())
    )
    return list(db.execute(stmt).scalars().all())
