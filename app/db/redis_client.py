from redis.asyncio import Redis
import json
from typing import Any, Optional
from app.core.config import settings
import logging

logger = logging.getLogger(__name__)

# Global Redis client instance
_redis_client: Optional[Redis] = None

async def get_redis_client() -> Redis:
    """Get or create Redis client instance"""
    global _redis_client

    if _redis_client is None:
        client = Redis.from_url(
            settings.REDIS_URL,
            db=settings.REDIS_DB,
            decode_responses=True
        )
        try:
            # Test connection
            await client.ping()
        except Exception as e:
            logger.error(f"Failed to initialize Redis client: {e}")
            await client.aclose()
            raise
        _redis_client = client
        logger.info("Redis client initialized successfully")

    return _redis_client

async def close_redis_client():
    """Close Redis connection"""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None

class CacheService:
    """Read-through cache for query responses. Failures degrade to misses."""

    def __init__(self, namespace: str = "reports"):
        self.namespace = namespace
        self.client: Optional[Redis] = None

    def key(self, *parts: Any) -> str:
        return ":".join([self.namespace, *[str(p) for p in parts]])

    async def _get_client(self) -> Optional[Redis]:
        if not settings.CACHE_ENABLED:
            return None
        if not self.client:
            self.client = await get_redis_client()
        return self.client

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        try:
            client = await self._get_client()
            if not client:
                return None

            value = await client.get(key)
            if value:
                return json.loads(value)
            return None
        except Exception as e:
            logger.error(f"Cache get error for key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Set value in cache with TTL"""
        try:
            client = await self._get_client()
            if not client:
                return False

            await client.setex(key, ttl, json.dumps(value, default=str))
            return True
        except Exception as e:
            logger.error(f"Cache set error for key {key}: {e}")
            return False

    async def invalidate(self) -> int:
        """Delete every key in this namespace"""
        try:
            client = await self._get_client()
            if not client:
                return 0

            deleted = 0
            async for key in client.scan_iter(match=f"{self.namespace}:*"):
                deleted += await client.delete(key)
            return deleted
        except Exception as e:
            logger.error(f"Cache invalidate error for namespace {self.namespace}: {e}")
            return 0

# Global instance
cache_service = CacheService()
