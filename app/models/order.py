"""Order models."""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from enum import Enum

from app.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, Enum):
    """Order lifecycle, independent of the status of its files."""
    RECEIVED = "RECEIVED"
    REVIEWING = "REVIEWING"
    READY_FOR_PRINT = "READY_FOR_PRINT"
    SENT_TO_PRINTER = "SENT_TO_PRINTER"
    COMPLETED = "COMPLETED"


# Each status may only advance to the next one.
ORDER_STATUS_FLOW = {
    OrderStatus.RECEIVED: OrderStatus.REVIEWING,
    OrderStatus.REVIEWING: OrderStatus.READY_FOR_PRINT,
    OrderStatus.READY_FOR_PRINT: OrderStatus.SENT_TO_PRINTER,
    OrderStatus.SENT_TO_PRINTER: OrderStatus.COMPLETED,
}


class Order(Base):
    """
    A customer's print order.

    Flow:
      Customer  →  creates Order (status: RECEIVED)  →  uploads design files
      Staff     →  advances status one step at a time, uploads processed files
      File uploads from the customer are accepted only while RECEIVED.
    """

    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Human-readable ``ORD-{year}-{seq:04d}``; uniqueness is the backstop for
    # concurrent number generation.
    order_number = Column(String(32), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    status = Column(
        SQLEnum(OrderStatus, values_callable=lambda x: [e.value for e in x]),
        default=OrderStatus.RECEIVED,
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=_utcnow)

    # Relationships
    owner = relationship("User", back_populates="orders")
    files = relationship(
        "FileRecord", back_populates="order", order_by="FileRecord.created_at"
    )
    status_history = relationship(
        "OrderStatusHistory",
        back_populates="order",
        order_by="OrderStatusHistory.created_at",
        cascade="all, delete-orphan",
    )

    @property
    def accepts_customer_uploads(self) -> bool:
        return self.status == OrderStatus.RECEIVED

    def __repr__(self):
        return f"<Order(id={self.id}, number={self.order_number}, status={self.status})>"


class OrderStatusHistory(Base):
    """One row per status transition (timestamp + acting staff member)."""

    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    from_status = Column(
        SQLEnum(OrderStatus, values_callable=lambda x: [e.value for e in x]), nullable=True
    )
    to_status = Column(
        SQLEnum(OrderStatus, values_callable=lambda x: [e.value for e in x]), nullable=False
    )
    changed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    order = relationship("Order", back_populates="status_history")
