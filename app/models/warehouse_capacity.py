from __future__ import annotations

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base import Base
from app.models.users import User


class WarehouseCapacity(Base):
    """
    Current bin counts for one warehouse.

    total_capacity, bins_used and available_bins are set independently; nothing
    requires bins_used + available_bins == total_capacity.
    """
    __tablename__ = "warehouse_capacity"

    warehouse_name: Mapped[str] = mapped_column(String(255), primary_key=True)
    total_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    bins_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    available_bins: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    updated_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    updated_at: Mapped[object] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class WarehouseCapacityHistory(Base):
    """Append-only audit trail of bins_used changes made by an identified user."""
    __tablename__ = "warehouse_capacity_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    warehouse_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    bins_used: Mapped[int] = mapped_column(Integer, nullable=False)
    previous_value: Mapped[int | None] = mapped_column(Integer, nullable=True)
    changed_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    changed_at: Mapped[object] = mapped_column(DateTime, nullable=False, server_default=func.now(), index=True)

    changed_by_user: Mapped["User"] = relationship("User")
