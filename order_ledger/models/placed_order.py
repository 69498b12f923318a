"""Order Ledger: PlacedOrder model (supplier supply)."""
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, DateTime, Integer, Numeric, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from order_ledger.db.base import Base
from order_ledger.models.received_order import OrderStatus, _utcnow


class PlacedOrder(Base):
    """An order placed with a supplier."""

    __tablename__ = "orders_placed"
    __table_args__ = (UniqueConstraint("owner_id", "order_number", name="uq_orders_placed_owner_number"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    order_number: Mapped[int] = mapped_column(Integer, nullable=False)
    party_name: Mapped[str] = mapped_column(String(255), nullable=False)
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    sku: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ordered_quantity: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    # Supplier-reported receipt; independent of allocations
    received_quantity: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)
    unit: Mapped[str] = mapped_column(String(50), nullable=False, default="mtrs")
    rate: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    custom_fields: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Derived; may go negative when over-allocated
    remaining_quantity: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=OrderStatus.CONFIRMED.value)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now()
    )

    links: Mapped[list["FulfillmentLink"]] = relationship(
        "FulfillmentLink", back_populates="order_placed", passive_deletes="all"
    )

    @property
    def over_allocated(self) -> bool:
        return self.remaining_quantity is not None and self.remaining_quantity < 0
