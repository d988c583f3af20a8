from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from app.models.warehouse_capacity import WarehouseCapacity, WarehouseCapacityHistory

LEDGER_FIELDS = {"total_capacity", "bins_used", "available_bins"}


def get_capacity(db: Session, warehouse_name: str, *, for_update: bool = False) -> WarehouseCapacity | None:
    stmt = select(WarehouseCapacity).where(WarehouseCapacity.warehouse_name == warehouse_name)
    if for_update:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def list_capacities(db: Session) -> list[WarehouseCapacity]:
    stmt = select(WarehouseCapacity).order_by(WarehouseCapacity.warehouse_name.asc())
    return list(db.execute(stmt).scalars().all())


def upsert_capacity_field(
    db: Session,
    warehouse_name: str,
    *,
    field: str,
    value: int,
    updated_by: int | None = None,
) -> tuple[WarehouseCapacity, int | None, bool]:
    """
    Set one ledger column, creating the row when missing.

    Other columns of an existing row are preserved; a new row starts at zero.
    Returns (row, previous value of `field`, whether the row already existed).
    Flushes but does not commit.
    """
    if field not in LEDGER_FIELDS:
        raise ValueError(f"Unsupported ledger field '{field}'.")

    row = get_capacity(db, warehouse_name, for_update=True)
    existed = row is not None
    previous: int | None = None
    if row is None:
        row = WarehouseCapacity(
            warehouse_name=warehouse_name,
            total_capacity=0,
            bins_used=0,
            available_bins=0,
        )
        db.add(row)
    else:
        previous = getattr(row, field)

    setattr(row, field, value)
    row.updated_at = datetime.utcnow()
    if updated_by is not None:
        row.updated_by = updated_by
    db.flush()
    return row, previous, existed


def append_history(
    db: Session,
    *,
    warehouse_name: str,
    bins_used: int,
    previous_value: int | None,
    changed_by: int | None,
) -> WarehouseCapacityHistory:
    entry = WarehouseCapacityHistory(
        warehouse_name=warehouse_name,
        bins_used=bins_used,
        previous_value=previous_value,
        changed_by=changed_by,
        changed_at=datetime.utcnow(),
    )
    db.add(entry)
    db.flush()
    return entry


def list_history(
    db: Session,
    *,
    warehouse_name: str | None = None,
    limit: int = 50,
) -> list[WarehouseCapacityHistory]:
    stmt = (
        select(WarehouseCapacityHistory)
        .options(joinedload(WarehouseCapacityHistory.changed_by_user))
        .order_by(WarehouseCapacityHistory.changed_at.desc(), WarehouseCapacityHistory.id.desc())
        .limit(limit)
    )
    if warehouse_name is not None:
        stmt = stmt.where(WarehouseCapacityHistory.warehouse_name == warehouse_name)
    return list(db.execute(stmt).scalars().all())
