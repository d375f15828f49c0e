"""Post-checkout order lifecycle driven by administrative action."""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from storefront.db.postgres_client import PostgresConnection
from storefront.errors import InvalidTransition, OrderNotFound, TransactionFailed
from storefront.models import Order, OrderStatus

logger = logging.getLogger(__name__)

# State machine transition map
VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in VALID_TRANSITIONS.get(current, set())


class OrderStatusService:
    def __init__(self, db: PostgresConnection):
        self.db = db

    def set_status(self, order_id: int, new_status: OrderStatus | str, actor: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Move an order along the status workflow.

        Only the order's status changes. Cancelling does not return stock to inventory.

        Raises:
            OrderNotFound: no such order
            InvalidTransition: the edge is not part of the workflow
            TransactionFailed: the database failed, status unchanged
        """
        try:
            with self.db.transaction() as session:
                # Row lock so two admins cannot both move the order out of the same state
                order = session.execute(select(Order).where(Order.id == order_id).with_for_update()).scalar_one_or_none()
                if order is None:
                    raise OrderNotFound(order_id)

                current = order.status
                try:
                    target = OrderStatus(new_status)
                except ValueError:
                    raise InvalidTransition(order_id, current.value, str(new_status)) from None

                if not can_transition(current, target):
                    raise InvalidTransition(order_id, current.value, target.value)

                order.status = target
        except SQLAlchemyError as e:
            logger.error(f"Status update for order {order_id} failed: {e}")
            raise TransactionFailed(str(e)) from e

        actor_id = actor.get("id") if actor else None
        logger.info(f"Order {order_id} moved from {current.value} to {target.value} by user {actor_id}")
        return {"success": True, "orderId": order_id, "previousStatus": current.value, "status": target.value}
