"""
Orders SQLAlchemy model.
"""

import enum
from decimal import Decimal

from sqlalchemy import Column, DateTime, Enum, Integer, Numeric, String, Text, func
from sqlalchemy.orm import relationship

from storefront.db.postgres_bootstrap import Base


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Order(Base):
    """
    Order header. The total is always derived from the items at checkout, never taken from the caller.
    """

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_name = Column(String(255), nullable=False)
    address = Column(Text, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    status = Column(
        Enum(OrderStatus, name="order_status", values_callable=lambda statuses: [s.value for s in statuses]),
        nullable=False,
        default=OrderStatus.PENDING,
        index=True,
    )
    idempotency_key = Column(String(128), nullable=True, unique=True)
    request_fingerprint = Column(String(64), nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")

    def compute_total(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0.00"))

    def __repr__(self):
        return f"<Order(id={self.id}, status={self.status}, total_amount={self.total_amount})>"
