"""Runtime configuration read from environment variables."""

import os

POSTGRES_CONFIG = {
    "host": os.getenv("POSTGRES_HOST", "localhost"),
    "port": int(os.getenv("POSTGRES_PORT", "5432")),
    "user": os.getenv("POSTGRES_USER", "postgres"),
    "password": os.getenv("POSTGRES_PASSWORD", "postgres"),
    "database": os.getenv("POSTGRES_DB", "storefront"),
}

# Full SQLAlchemy URL, takes precedence over POSTGRES_CONFIG when set
DATABASE_URL = os.getenv("DATABASE_URL")

# Statement and lock timeout for a checkout transaction
TRANSACTION_TIMEOUT_MS = int(os.getenv("TRANSACTION_TIMEOUT_MS", "5000"))

REDIS_CONFIG = {
    "host": os.getenv("REDIS_HOST", "localhost"),
    "port": int(os.getenv("REDIS_PORT", "6379")),
    "db": int(os.getenv("REDIS_DB", "0")),
}

CACHE_TTL = int(os.getenv("CACHE_TTL", "300"))  # 5 minutes for the product listing

# No default: tokens signed with a known secret could be forged
JWT_SECRET = os.getenv("JWT_SECRET")
JWT_TTL_SECONDS = int(os.getenv("JWT_TTL_SECONDS", "86400"))

IMAGE_DIR = os.getenv("IMAGE_DIR", "public/images")
IMAGE_BASE_URL = os.getenv("IMAGE_BASE_URL", "/images")

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
