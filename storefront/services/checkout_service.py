"""Checkout: turns a cart into a persisted order in one all-or-nothing transaction."""

import hashlib
import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import redis
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.db.postgres_client import PostgresConnection
from storefront.db.redis_client import RedisClient
from storefront.errors import (
    EmptyCart,
    IdempotencyKeyReused,
    InvalidQuantity,
    MissingCustomerDetails,
    ProductNotFound,
    TransactionFailed,
)
from storefront.models import Order, OrderItem, OrderStatus
from storefront.services.catalog_service import PRODUCT_LIST_CACHE_KEY
from storefront.services.inventory_ledger import InventoryLedger
from storefront.services.pricing import PricingSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class PlacedOrder:
    order_id: int
    total: Decimal
    status: str = OrderStatus.PENDING.value
    replayed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "orderId": self.order_id,
            "total": str(self.total),
            "status": self.status,
            "replayed": self.replayed,
        }


class CheckoutService:
    def __init__(
        self,
        db: PostgresConnection,
        cache: RedisClient | None = None,
        ledger: InventoryLedger | None = None,
        pricing: PricingSnapshot | None = None,
    ):
        self.db = db
        self.cache = cache
        self.ledger = ledger or InventoryLedger()
        self.pricing = pricing or PricingSnapshot()

    def _normalize_items(self, items: Iterable[Any] | None) -> list[CartLine]:
        """Validate the cart shape before touching the database."""
        lines = []
        for item in items or []:
            if isinstance(item, Mapping):
                product_id = item.get("product_id", item.get("productId"))
                quantity = item.get("quantity")
            else:
                product_id, quantity = item.product_id, item.quantity

            if isinstance(product_id, bool) or not isinstance(product_id, int):
                raise ProductNotFound(product_id)
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                raise InvalidQuantity(product_id, quantity)
            lines.append(CartLine(product_id=product_id, quantity=quantity))

        if not lines:
            raise EmptyCart()
        return lines

    @staticmethod
    def _fingerprint(customer_name: str, address: str, lines: list[CartLine]) -> str:
        payload = {
            "customer_name": customer_name,
            "address": address,
            "items": [[line.product_id, line.quantity] for line in lines],
        }
        return hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()

    def _replay(self, order: Order, key: str, fingerprint: str) -> PlacedOrder:
        if order.request_fingerprint != fingerprint:
            raise IdempotencyKeyReused(key, order.id)
        logger.info(f"Replaying order {order.id} for idempotency key {key}")
        return PlacedOrder(order_id=order.id, total=order.total_amount, status=order.status.value, replayed=True)

    @staticmethod
    def _find_by_key(session: Session, key: str) -> Order | None:
        return session.execute(select(Order).where(Order.idempotency_key == key)).scalar_one_or_none()

    def place_order(
        self,
        customer_name: str,
        address: str,
        items: Iterable[Any],
        idempotency_key: str | None = None,
    ) -> PlacedOrder:
        """
        Place an order for the given cart.

        Every item is priced and reserved inside a single transaction, in the order
        submitted. Any failure rolls back the order header, its items and every stock
        decrement made during the attempt.

        Args:
            customer_name: Name on the order
            address: Delivery address
            items: Cart lines, either CartLine objects or mappings with product_id and quantity
            idempotency_key: Optional caller token; resubmitting the same request returns the original order

        Returns:
            PlacedOrder with the new order id and its computed total

        Raises:
            MissingCustomerDetails, EmptyCart, InvalidQuantity: invalid request, nothing touched
            ProductNotFound, InsufficientStock: rejected during reservation, fully rolled back
            IdempotencyKeyReused: key already used for a different request
            TransactionFailed: the database failed; the order is not placed
        """
        customer_name = (customer_name or "").strip()
        address = (address or "").strip()
        if not customer_name:
            raise MissingCustomerDetails("customerName")
        if not address:
            raise MissingCustomerDetails("address")
        lines = self._normalize_items(items)
        fingerprint = self._fingerprint(customer_name, address, lines)

        try:
            with self.db.transaction() as session:
                if idempotency_key:
                    existing = self._find_by_key(session, idempotency_key)
                    if existing is not None:
                        return self._replay(existing, idempotency_key, fingerprint)

                order = Order(
                    customer_name=customer_name,
                    address=address,
                    total_amount=Decimal("0.00"),
                    status=OrderStatus.PENDING,
                    idempotency_key=idempotency_key,
                    request_fingerprint=fingerprint,
                )
                session.add(order)
                session.flush()

                total = Decimal("0.00")
                for line in lines:
                    snapshot = self.pricing.snapshot_price(session, line.product_id)
                    self.ledger.try_reserve(session, line.product_id, line.quantity)
                    order.items.append(
                        OrderItem(
                            product_id=snapshot.product_id,
                            product_name=snapshot.name,
                            quantity=line.quantity,
                            price_at_time=snapshot.price,
                        )
                    )
                    total += snapshot.price * line.quantity

                order.total_amount = total
                session.flush()
                placed = PlacedOrder(order_id=order.id, total=total)
        except IntegrityError as e:
            if idempotency_key:
                # Lost a race against a concurrent request carrying the same key
                return self._replay_committed(idempotency_key, fingerprint, e)
            logger.error(f"Checkout failed on integrity error: {e}")
            raise TransactionFailed(str(e.orig)) from e
        except SQLAlchemyError as e:
            logger.error(f"Checkout transaction failed: {e}")
            raise TransactionFailed(str(e)) from e

        logger.info(f"Placed order {placed.order_id} for {customer_name}: {len(lines)} item(s), total {placed.total}")
        self._invalidate_catalog_cache()
        return placed

    def _replay_committed(self, key: str, fingerprint: str, cause: IntegrityError) -> PlacedOrder:
        try:
            with self.db.transaction() as session:
                existing = self._find_by_key(session, key)
                if existing is None:
                    raise TransactionFailed(str(cause.orig)) from cause
                return self._replay(existing, key, fingerprint)
        except SQLAlchemyError as e:
            logger.error(f"Idempotency lookup failed for key {key}: {e}")
            raise TransactionFailed(str(e)) from e

    def _invalidate_catalog_cache(self):
        """Stock changed, so the cached listing is stale. The order is already committed."""
        if self.cache is None:
            return
        try:
            self.cache.delete(PRODUCT_LIST_CACHE_KEY)
        except redis.RedisError as e:
            logger.warning(f"Could not invalidate product cache after checkout: {e}")
