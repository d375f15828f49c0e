"""Authoritative unit price lookup for checkout."""

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.errors import ProductNotFound
from storefront.models import Product

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceSnapshot:
    product_id: int
    name: str
    price: Decimal


class PricingSnapshot:
    def snapshot_price(self, session: Session, product_id: int) -> PriceSnapshot:
        """
        Read the product's current price inside the caller's transaction.

        The row is locked (FOR UPDATE) so the price and the stock decrement that
        follows come from the same view of the product.

        Raises:
            ProductNotFound: the product does not exist (anymore)
        """
        row = session.execute(
            select(Product.id, Product.name, Product.price).where(Product.id == product_id).with_for_update()
        ).one_or_none()
        if row is None:
            raise ProductNotFound(product_id)

        return PriceSnapshot(product_id=row.id, name=row.name, price=Decimal(row.price))
