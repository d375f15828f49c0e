"""Read access to placed orders for display and audit."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from storefront.db.postgres_client import PostgresConnection
from storefront.errors import OrderNotFound
from storefront.models import Order


class OrderService:
    def __init__(self, db: PostgresConnection):
        self.db = db

    def get_order(self, order_id: int) -> dict[str, Any]:
        """Order header plus items with the price captured at checkout."""
        with self.db.transaction() as session:
            order = session.execute(
                select(Order).options(selectinload(Order.items)).where(Order.id == order_id)
            ).scalar_one_or_none()
            if order is None:
                raise OrderNotFound(order_id)

            return {
                "id": order.id,
                "customerName": order.customer_name,
                "address": order.address,
                "status": order.status.value,
                "totalAmount": str(order.total_amount),
                "createdAt": order.created_at.isoformat() if order.created_at else None,
                "items": [
                    {
                        "productId": item.product_id,
                        "productName": item.product_name,
                        "quantity": item.quantity,
                        "priceAtTime": str(item.price_at_time),
                        "lineTotal": str(item.line_total),
                    }
                    for item in order.items
                ],
            }
