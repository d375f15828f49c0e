"""Redis connection and utilities."""

import json
from typing import Any

import redis

from storefront.config import CACHE_TTL, REDIS_CONFIG


class RedisClient:
    def __init__(self, config: dict | None = None, client: redis.Redis | None = None):
        self.client = client or redis.Redis(**(config or REDIS_CONFIG))

    def get_json(self, key: str) -> Any | None:
        """Get JSON data from Redis."""
        data = self.client.get(key)
        return json.loads(data.decode("utf-8")) if data else None

    def set_json(self, key: str, value: Any, ttl: int = CACHE_TTL) -> bool:
        """Set JSON data in Redis with TTL."""
        return self.client.setex(key, ttl, json.dumps(value))

    def delete(self, *keys: str) -> int:
        return self.client.delete(*keys)

    def close(self):
        self.client.close()
