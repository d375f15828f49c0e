"""Product catalog: cached listing and administrative product maintenance."""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import redis
from sqlalchemy import select, update

from storefront.config import CACHE_TTL
from storefront.db.postgres_client import PostgresConnection
from storefront.db.redis_client import RedisClient
from storefront.errors import InvalidProductData, ProductNotFound
from storefront.models import OrderItem, Product
from storefront.services.image_store import ImageStore

logger = logging.getLogger(__name__)

PRODUCT_LIST_CACHE_KEY = "catalog:products"


def parse_price(value: Any) -> Decimal:
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidProductData("price", value) from None
    if not price.is_finite() or price < 0:
        raise InvalidProductData("price", value)
    return price.quantize(Decimal("0.01"))


def parse_stock(value: Any) -> int:
    try:
        stock = int(value)
    except (TypeError, ValueError):
        raise InvalidProductData("stock", value) from None
    if stock < 0:
        raise InvalidProductData("stock", value)
    return stock


class CatalogService:
    def __init__(self, db: PostgresConnection, cache: RedisClient | None, images: ImageStore):
        self.db = db
        self.cache = cache
        self.images = images
        self.cache_ttl = CACHE_TTL

    def list_products(self) -> list[dict[str, Any]]:
        """All products, newest first. Served from Redis when cached."""
        if self.cache is not None:
            try:
                cached = self.cache.get_json(PRODUCT_LIST_CACHE_KEY)
                if cached is not None:
                    logger.info("Cache hit for product listing")
                    return cached
            except redis.RedisError as e:
                logger.warning(f"Product cache unavailable, reading from database: {e}")

        with self.db.transaction() as session:
            products = session.execute(select(Product).order_by(Product.id.desc())).scalars().all()
            data = [product.to_dict() for product in products]

        if self.cache is not None:
            try:
                self.cache.set_json(PRODUCT_LIST_CACHE_KEY, data, self.cache_ttl)
            except redis.RedisError as e:
                logger.warning(f"Could not cache product listing: {e}")
        return data

    def _invalidate(self):
        if self.cache is None:
            return
        try:
            self.cache.delete(PRODUCT_LIST_CACHE_KEY)
        except redis.RedisError as e:
            logger.warning(f"Could not invalidate product cache: {e}")

    def create_product(
        self,
        name: str,
        price: Any,
        stock: Any,
        description: str | None = None,
        category_id: int | None = None,
        image: tuple[str, bytes] | None = None,
    ) -> dict[str, Any]:
        """
        Create a product. ``image`` is an optional (file name, bytes) pair.
        """
        if not name or not name.strip():
            raise InvalidProductData("name", name)
        product = Product(
            name=name.strip(),
            description=description,
            price=parse_price(price),
            stock=parse_stock(stock),
            category_id=category_id,
        )
        new_url = None
        try:
            with self.db.transaction() as session:
                session.add(product)
                session.flush()
                if image is not None:
                    new_url = self.images.save(image[0], image[1], prefix="prod")
                    product.image_url = new_url
                    session.flush()
                data = product.to_dict()
        except Exception:
            self.images.remove(new_url)
            raise

        logger.info(f"Created product {data['id']} ({data['name']})")
        self._invalidate()
        return data

    def update_product(
        self,
        product_id: int,
        name: str | None = None,
        price: Any = None,
        stock: Any = None,
        description: str | None = None,
        category_id: int | None = None,
        image: tuple[str, bytes] | None = None,
    ) -> dict[str, Any]:
        """Update the given fields. Existing orders keep the price they were placed at."""
        new_url = None
        try:
            with self.db.transaction() as session:
                product = session.get(Product, product_id, with_for_update=True)
                if product is None:
                    raise ProductNotFound(product_id)
                old_url = product.image_url

                if name is not None:
                    if not name.strip():
                        raise InvalidProductData("name", name)
                    product.name = name.strip()
                if price is not None:
                    product.price = parse_price(price)
                if stock is not None:
                    product.stock = parse_stock(stock)
                if description is not None:
                    product.description = description
                if category_id is not None:
                    product.category_id = category_id

                session.flush()
                # Written last so a rejected update leaves no file behind
                if image is not None:
                    new_url = self.images.save(image[0], image[1], prefix="upd")
                    product.image_url = new_url
                    session.flush()
                data = product.to_dict()
        except Exception:
            self.images.remove(new_url)
            raise

        if new_url and old_url and old_url != new_url:
            self.images.remove(old_url)
        logger.info(f"Updated product {product_id}")
        self._invalidate()
        return data

    def delete_product(self, product_id: int) -> dict[str, Any]:
        """
        Delete a product. Historical order items are detached (product reference
        cleared, name and price snapshot kept), never deleted.
        """
        with self.db.transaction() as session:
            product = session.get(Product, product_id, with_for_update=True)
            if product is None:
                raise ProductNotFound(product_id)

            detached = session.execute(
                update(OrderItem)
                .where(OrderItem.product_id == product_id)
                .values(product_id=None)
                .execution_options(synchronize_session=False)
            ).rowcount
            image_url = product.image_url
            session.delete(product)

        self.images.remove(image_url)
        logger.info(f"Deleted product {product_id}, detached {detached} order item(s)")
        self._invalidate()
        return {"success": True, "productId": product_id, "detachedItems": detached}
