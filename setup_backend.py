"""
Infrastructure Setup Script for the Storefront Backend
This script checks the database and cache connections, creates the tables
and seeds the administrator account.
"""

import logging
import sys

from storefront.config import ADMIN_PASSWORD, ADMIN_USERNAME
from storefront.db.postgres_client import PostgresConnection
from storefront.db.redis_client import RedisClient
from storefront.services.auth_service import AuthService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def check_database_connections(db: PostgresConnection, cache: RedisClient) -> bool:
    """Check if all database connections are working."""
    logger.info("Checking database connections...")

    # Check PostgreSQL
    try:
        with db.get_cursor() as cursor:
            cursor.execute("SELECT 1 AS ok")
            result = cursor.fetchone()
            if result:
                logger.info("PostgreSQL connection: OK")
            else:
                logger.error("PostgreSQL connection: Failed")
                return False
    except Exception as e:
        logger.error(f"PostgreSQL connection error: {e}")
        return False

    # Check Redis
    try:
        cache.client.ping()
        logger.info("Redis connection: OK")
    except Exception as e:
        logger.error(f"Redis connection error: {e}")
        return False

    return True


def report_data(db: PostgresConnection) -> int:
    """Log how many products and orders exist and return the product count."""
    with db.get_cursor() as cursor:
        cursor.execute("SELECT COUNT(*) AS count FROM products")
        product_count = cursor.fetchone()["count"]
        logger.info(f"Products in database: {product_count}")

        cursor.execute("SELECT COUNT(*) AS count FROM orders")
        order_count = cursor.fetchone()["count"]
        logger.info(f"Orders in database: {order_count}")

    if product_count == 0:
        logger.warning("No products found. Create some through POST /api/products.")
    return product_count


def main() -> bool:
    """Main setup function."""
    logger.info("Setting up Storefront Backend...")
    db = PostgresConnection()
    cache = RedisClient()

    try:
        if not check_database_connections(db, cache):
            logger.error("Database connection check failed!")
            return False

        db.create_tables()

        if ADMIN_PASSWORD:
            AuthService(db).create_user(ADMIN_USERNAME, ADMIN_PASSWORD, role="admin")
        else:
            logger.warning("ADMIN_PASSWORD not set, skipping administrator seeding")

        report_data(db)
    finally:
        cache.close()
        db.dispose()

    logger.info("Setup complete! Ready to start the server.")
    return True


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
