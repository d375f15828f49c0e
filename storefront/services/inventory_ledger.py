"""Per-product stock with an atomic reserve-if-available decrement."""

import logging
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.errors import InsufficientStock, InvalidQuantity, ProductNotFound
from storefront.models import Product

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reservation:
    product_id: int
    quantity: int
    remaining_stock: int


class InventoryLedger:
    def try_reserve(self, session: Session, product_id: int, quantity: int) -> Reservation:
        """
        Decrement stock by quantity if enough is available.

        The decrement is a single conditional UPDATE (stock >= quantity) checked by
        affected-row count, so concurrent reservations against the same product are
        serialized by the database and can never drive stock below zero. The change
        is only durable if the caller's transaction commits.

        Args:
            session: Session of the enclosing transaction
            product_id: Product to reserve
            quantity: Units to reserve, must be positive

        Returns:
            Reservation with the stock left after the decrement

        Raises:
            InvalidQuantity: quantity is not a positive integer
            ProductNotFound: no such product
            InsufficientStock: not enough stock, nothing was changed
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuantity(product_id, quantity)

        result = session.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            row = session.execute(select(Product.name, Product.stock).where(Product.id == product_id)).one_or_none()
            if row is None:
                raise ProductNotFound(product_id)
            logger.info(f"Reservation refused for product {product_id}: requested {quantity}, available {row.stock}")
            raise InsufficientStock(product_id, row.name, quantity, row.stock)

        remaining = session.execute(select(Product.stock).where(Product.id == product_id)).scalar_one()
        return Reservation(product_id=product_id, quantity=quantity, remaining_stock=remaining)
