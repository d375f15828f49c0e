"""
OrderItems model. A line of an order with the unit price captured at checkout.
"""

from decimal import Decimal

from sqlalchemy import Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql.schema import CheckConstraint

from storefront.db.postgres_bootstrap import Base


class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # Nullable so a deleted product leaves its historical lines in place
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    price_at_time = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product", back_populates="items")

    @validates("price_at_time")
    def _freeze_price(self, key, value):
        if self.price_at_time is not None and Decimal(value) != self.price_at_time:
            raise ValueError("price_at_time cannot be changed once recorded")
        return value

    @property
    def line_total(self) -> Decimal:
        return self.price_at_time * self.quantity

    def __repr__(self):
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, product_id={self.product_id}, quantity={self.quantity})>"
