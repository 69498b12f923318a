"""Order Ledger: FulfillmentLink model (supply allocated to demand)."""
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from order_ledger.db.base import Base
from order_ledger.models.received_order import _utcnow


class FulfillmentLink(Base):
    """Allocation of a PlacedOrder's supply to a ReceivedOrder. Never updated in place."""

    __tablename__ = "order_fulfillment_links"
    __table_args__ = (CheckConstraint("quantity_fulfilled > 0", name="ck_fulfillment_links_quantity_positive"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    order_received_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("orders_received.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    order_placed_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("orders_placed.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    quantity_fulfilled: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now())

    order_received: Mapped["ReceivedOrder"] = relationship("ReceivedOrder", back_populates="links")
    order_placed: Mapped["PlacedOrder"] = relationship("PlacedOrder", back_populates="links")
