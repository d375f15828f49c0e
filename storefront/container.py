"""Service wiring. Built once at startup and closed at shutdown."""

import logging
from dataclasses import dataclass

from storefront.db.postgres_client import PostgresConnection
from storefront.db.redis_client import RedisClient
from storefront.services.auth_service import AuthService
from storefront.services.catalog_service import CatalogService
from storefront.services.checkout_service import CheckoutService
from storefront.services.image_store import ImageStore
from storefront.services.order_service import OrderService
from storefront.services.order_status_service import OrderStatusService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    db: PostgresConnection
    cache: RedisClient | None
    auth: AuthService
    catalog: CatalogService
    checkout: CheckoutService
    orders: OrderService
    order_status: OrderStatusService

    def close(self):
        logger.info("Closing database and cache connections")
        if self.cache is not None:
            self.cache.close()
        self.db.dispose()


def build_services(
    db: PostgresConnection | None = None,
    cache: RedisClient | None = None,
    images: ImageStore | None = None,
    jwt_secret: str | None = None,
) -> Services:
    db = db or PostgresConnection()
    images = images or ImageStore()
    return Services(
        db=db,
        cache=cache,
        auth=AuthService(db, secret=jwt_secret),
        catalog=CatalogService(db, cache, images),
        checkout=CheckoutService(db, cache),
        orders=OrderService(db),
        order_status=OrderStatusService(db),
    )
