import redis.asyncio as aioredis
from redis.asyncio import Redis
from redis.exceptions import RedisError, WatchError
from typing import Optional

from notenexus.core.config import settings
from notenexus.core.exceptions import CacheUnavailableError
from notenexus.core.logging_config import logger


class RedisClient:
    """Redis client for verification tickets.

    Unlike a best-effort cache, callers here depend on every read and write,
    so connectivity failures surface as CacheUnavailableError.
    """

    def __init__(self):
        self.redis: Optional[Redis] = None

    async def connect(self):
        """Connect to Redis"""
        try:
            self.redis = aioredis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True
            )
            await self.redis.ping()
            logger.info("Redis connected successfully")
        except RedisError as e:
            logger.error(f"Redis connection error: {e}")
            raise

    async def disconnect(self):
        """Disconnect from Redis"""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
        logger.info("Redis disconnected")

    def _client(self) -> Redis:
        if self.redis is None:
            raise CacheUnavailableError("Redis is not connected")
        return self.redis

    async def ping(self) -> bool:
        try:
            return bool(await self._client().ping())
        except RedisError as e:
            logger.error(f"Redis PING error: {e}")
            raise CacheUnavailableError()

    async def get(self, key: str) -> Optional[str]:
        """Get value from Redis"""
        try:
            return await self._client().get(key)
        except RedisError as e:
            logger.error(f"Redis GET error: {e}")
            raise CacheUnavailableError()

    async def set(
        self,
        key: str,
        value: str,
        expire: Optional[int] = None
    ) -> bool:
        """Set value in Redis, with a TTL in seconds when given"""
        try:
            if expire:
                return bool(await self._client().set(key, value, ex=expire))
            return bool(await self._client().set(key, value))
        except RedisError as e:
            logger.error(f"Redis SET error: {e}")
            raise CacheUnavailableError()

    async def delete(self, key: str) -> bool:
        """Delete key from Redis"""
        try:
            return await self._client().delete(key) > 0
        except RedisError as e:
            logger.error(f"Redis DELETE error: {e}")
            raise CacheUnavailableError()

    async def delete_if_equals(self, key: str, expected: str) -> bool:
        """Delete `key` only while it still holds `expected`.

        WATCH/MULTI transaction: returns False when the value differs or
        another client touched the key between the read and the delete.
        """
        try:
            async with self._client().pipeline(transaction=True) as pipe:
                await pipe.watch(key)
                current = await pipe.get(key)
                if current != expected:
                    await pipe.unwatch()
                    return False
                pipe.multi()
                pipe.delete(key)
                results = await pipe.execute()
                return bool(results and results[0])
        except WatchError:
            return False
        except RedisError as e:
            logger.error(f"Redis transaction error: {e}")
            raise CacheUnavailableError()


# Create Redis client instance
redis_client = RedisClient()


# Dependency
async def get_redis() -> RedisClient:
    """Get Redis client"""
    return redis_client
