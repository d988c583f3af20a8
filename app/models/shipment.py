from sqlalchemy import JSON, Date, DateTime, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class Shipment(Base):
    """
    An inbound shipment tracked from planning through warehouse storage.

    `latest_status` only changes through ShipmentWorkflowService, which guards every
    write with the status it expects to replace.
    """
    __tablename__ = "shipments"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    supplier: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    order_ref: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    final_pod: Mapped[str | None] = mapped_column(String(255), nullable=True)
    product_name: Mapped[str | None] = mapped_column(String(500), nullable=True)

    latest_status: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    # Scheduling week (1-53) and the Monday it resolves to.
    week_number: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    selected_week_date: Mapped[object | None] = mapped_column(Date, nullable=True)

    quantity: Mapped[float | None] = mapped_column(Numeric(15, 3), nullable=True)
    pallet_qty: Mapped[float] = mapped_column(Numeric(15, 3), nullable=False, default=1)
    receiving_warehouse: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    forwarding_agent: Mapped[str | None] = mapped_column(String(255), nullable=True)
    vessel_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Post-arrival workflow
    unloading_start_date: Mapped[object | None] = mapped_column(DateTime, nullable=True)
    unloading_completed_date: Mapped[object | None] = mapped_column(DateTime, nullable=True)
    inspection_status: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    inspection_date: Mapped[object | None] = mapped_column(DateTime, nullable=True)
    inspection_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    inspected_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    receiving_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    receiving_date: Mapped[object | None] = mapped_column(DateTime, nullable=True)
    receiving_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    received_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    received_quantity: Mapped[float | None] = mapped_column(Numeric(15, 3), nullable=True)
    discrepancies: Mapped[list | None] = mapped_column(JSON, nullable=True)

    # Side states
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejected_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    rejection_date: Mapped[object | None] = mapped_column(DateTime, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cancelled_at: Mapped[object | None] = mapped_column(DateTime, nullable=True)
    status_before_archive: Mapped[str | None] = mapped_column(String(50), nullable=True)
    archived_at: Mapped[object | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[object] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[object] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<Shipment(id={self.id}, status={self.latest_status})>"
