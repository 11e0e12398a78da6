"""Redis read cache for link snapshots."""

import json
import logging
import uuid
from typing import Optional

import redis.asyncio as redis

from .models import Link


class RedisCache:
    """Redis cache for ``get_link`` lookups.

    Only read snapshots are cached. Clicks and creates always go to the
    store; the service deletes a code's key after every mutation.

    Readers fill the cache through a lease: a token is placed under the
    empty key before the store read, and the snapshot replaces it only if
    the token survived. A mutation in between deletes the token.
    """

    KEY_PREFIX = "shortlinks:link:"
    LEASE_PREFIX = "lease:"
    LEASE_TTL_SECONDS = 10

    # compare-and-set: replace the lease token with the snapshot
    FILL_SCRIPT = """
if redis.call("GET", KEYS[1]) == ARGV[1] then
    return redis.call("SET", KEYS[1], ARGV[2], "EX", ARGV[3])
end
return false
"""

    def __init__(
        self,
        redis_url: Optional[str] = None,
        ttl_seconds: int = 3600,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis cache.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0)
            ttl_seconds: Default TTL for cached items
            logger: Optional logger instance
        """
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.enabled = redis_url is not None
        self.client: Optional[redis.Redis] = None

        if redis_url:
            self.logger.info(f"Redis cache enabled with TTL={ttl_seconds}s")

    async def connect(self) -> None:
        """Connect to Redis; disables the cache if unreachable."""
        if not self.enabled:
            return

        try:
            self.client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            await self.client.ping()
            self.logger.info("Connected to Redis")
        except Exception as e:
            self.logger.error(f"Failed to connect to Redis: {e}")
            self.enabled = False

    async def get(self, key: str) -> Optional[str]:
        if not self.enabled or not self.client:
            return None

        try:
            return await self.client.get(key)
        except Exception as e:
            self.logger.error(f"Cache get error: {e}")
            return None

    async def set(
        self,
        key: str,
        value: str,
        ttl: Optional[int] = None,
    ) -> bool:
        if not self.enabled or not self.client:
            return False

        try:
            ttl = ttl or self.ttl_seconds
            await self.client.setex(key, ttl, value)
            return True
        except Exception as e:
            self.logger.error(f"Cache set error: {e}")
            return False

    async def delete(self, key: str) -> bool:
        if not self.enabled or not self.client:
            return False

        try:
            result = await self.client.delete(key)
            return result > 0
        except Exception as e:
            self.logger.error(f"Cache delete error: {e}")
            return False

    async def get_link(self, code: str) -> Optional[Link]:
        """Get a cached link snapshot, or None on miss, lease or bad payload."""
        raw = await self.get(self.get_cache_key(code))
        if not raw or raw.startswith(self.LEASE_PREFIX):
            return None

        try:
            return Link.from_dict(json.loads(raw))
        except (ValueError, KeyError) as e:
            self.logger.warning(f"Discarding bad cache entry for {code}: {e}")
            await self.invalidate(code)
            return None

    async def acquire_fill_lease(self, code: str) -> Optional[str]:
        """Claim an empty key before reading the store.

        Returns a token for ``fill_link``, or None if the key is already
        held (by a snapshot or another reader's lease).
        """
        if not self.enabled or not self.client:
            return None

        token = f"{self.LEASE_PREFIX}{uuid.uuid4().hex}"
        try:
            claimed = await self.client.set(
                self.get_cache_key(code),
                token,
                nx=True,
                ex=self.LEASE_TTL_SECONDS,
            )
        except Exception as e:
            self.logger.error(f"Cache lease error: {e}")
            return None

        return token if claimed else None

    async def fill_link(self, link: Link, lease: str) -> bool:
        """Store a snapshot only if ``lease`` still holds the key.

        Any mutation deletes the key, which voids the lease, so a snapshot
        read before the mutation is never written back.
        """
        if not self.enabled or not self.client:
            return False

        try:
            result = await self.client.eval(
                self.FILL_SCRIPT,
                1,
                self.get_cache_key(link.code),
                lease,
                json.dumps(link.to_dict()),
                self.ttl_seconds,
            )
            return bool(result)
        except Exception as e:
            self.logger.error(f"Cache fill error: {e}")
            return False

    async def invalidate(self, code: str) -> bool:
        return await self.delete(self.get_cache_key(code))

    async def ping(self) -> bool:
        if not self.enabled or not self.client:
            return False

        try:
            await self.client.ping()
            return True
        except Exception as e:
            self.logger.error(f"Cache ping error: {e}")
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.logger.info("Redis connection closed")

    def get_cache_key(self, code: str) -> str:
        return f"{self.KEY_PREFIX}{code}"
