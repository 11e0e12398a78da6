"""Business logic service for short links."""

import logging
from typing import Callable, Optional, Dict, Any, List
from datetime import datetime, timezone

from .shortcode import CodeAllocator, MAX_ALLOCATION_ATTEMPTS
from .database.base import LinkStoreBase
from .database.cache import RedisCache
from .database.models import Link, CreateResult, CreateStatus
from .common.validators import is_valid_url, is_valid_short_code
from .exceptions import (
    AllocationExhaustedError,
    CodeConflictError,
    InvalidCodeError,
    InvalidURLError,
    LinkNotFoundError,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LinkService:
    """Link store operations: create, get, list, delete, record_click."""

    def __init__(
        self,
        db: LinkStoreBase,
        cache: Optional[RedisCache] = None,
        allocator: Optional[CodeAllocator] = None,
        logger: Optional[logging.Logger] = None,
        max_allocation_attempts: int = MAX_ALLOCATION_ATTEMPTS,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize link service.

        Args:
            db: Link store backend
            cache: Optional read cache
            allocator: Optional code allocator (built over ``db`` if omitted)
            logger: Optional logger
            max_allocation_attempts: Retry bound for allocation and lost insert races
            clock: Source of "now" for every timestamp written
        """
        self.db = db
        self.cache = cache
        self.logger = logger or logging.getLogger(__name__)
        self.allocator = allocator or CodeAllocator(
            store=db,
            max_attempts=max_allocation_attempts,
            logger=self.logger,
        )
        self.max_allocation_attempts = max_allocation_attempts
        self.clock = clock

    async def create_link(
        self,
        target_url: str,
        custom_code: Optional[str] = None,
    ) -> CreateResult:
        """Create a link, or count a repeat request for a known URL.

        With ``custom_code`` a fresh insert is always attempted. Without it,
        an existing link whose target_url matches exactly has its
        creation_count bumped and is returned tagged INCREMENTED.

        Raises:
            InvalidURLError: target_url is not an absolute http(s) URL
            InvalidCodeError: custom_code is not 6-8 alphanumerics
            CodeConflictError: custom_code is already taken
            AllocationExhaustedError: no free code within the retry bound
        """
        is_valid, error = is_valid_url(target_url)
        if not is_valid:
            raise InvalidURLError(f"Invalid URL: {error}")

        if custom_code is not None:
            is_valid, error = is_valid_short_code(custom_code)
            if not is_valid:
                raise InvalidCodeError(f"Invalid short code: {error}")

            # insert_link still enforces uniqueness under races
            if await self.db.code_exists(custom_code):
                self.logger.warning(f"Short code already exists: {custom_code}")
                raise CodeConflictError(custom_code)

            link = await self.db.insert_link(custom_code, target_url, self.clock())
            return await self._created(link)

        link = await self.db.bump_creation_count(target_url, self.clock())
        if link is not None:
            await self._invalidate(link.code)
            self.logger.info(
                f"Repeat request for {target_url}: {link.code} "
                f"(creation_count={link.creation_count})"
            )
            return CreateResult(link=link, status=CreateStatus.INCREMENTED)

        link = await self._insert_with_generated_code(target_url)
        return await self._created(link)

    async def get_link(self, code: str) -> Link:
        """Get a link without side effects.

        Raises:
            LinkNotFoundError: no link holds the code
        """
        self._require_well_formed(code)

        lease = None
        if self.cache:
            cached = await self.cache.get_link(code)
            if cached:
                self.logger.debug(f"Cache hit for {code}")
                return cached
            lease = await self.cache.acquire_fill_lease(code)

        link = await self.db.get_link(code)
        if link is None:
            self.logger.warning(f"Short code not found: {code}")
            raise LinkNotFoundError(code)

        if lease:
            await self.cache.fill_link(link, lease)

        return link

    async def list_links(self) -> List[Link]:
        """All links, newest first."""
        return await self.db.list_links()

    async def delete_link(self, code: str) -> None:
        """Delete a link; its code becomes free for reuse.

        Raises:
            LinkNotFoundError: no link holds the code
        """
        self._require_well_formed(code)

        deleted = await self.db.delete_link(code)
        await self._invalidate(code)

        if not deleted:
            self.logger.warning(f"Delete of unknown short code: {code}")
            raise LinkNotFoundError(code)

        self.logger.info(f"Deleted link: {code}")

    async def record_click(self, code: str) -> Link:
        """Count one redirect traversal and return the updated link.

        Raises:
            LinkNotFoundError: no link holds the code (nothing is written)
        """
        self._require_well_formed(code)

        link = await self.db.record_click(code, self.clock())
        if link is None:
            self.logger.warning(f"Click on unknown short code: {code}")
            raise LinkNotFoundError(code)

        await self._invalidate(code)
        self.logger.debug(f"Click on {code} -> {link.target_url} (total={link.total_clicks})")
        return link

    async def code_exists(self, code: str) -> bool:
        return await self.db.code_exists(code)

    async def clear(self) -> int:
        """Delete every link. Returns the number removed."""
        links = await self.db.list_links() if self.cache else []
        count = await self.db.clear()
        for link in links:
            await self._invalidate(link.code)
        self.logger.info(f"Cleared {count} links")
        return count

    async def get_statistics(self) -> Dict[str, Any]:
        """Store-wide counts plus service flags."""
        db_stats = await self.db.get_statistics()

        return {
            **db_stats,
            "cache_enabled": self.cache is not None and self.cache.enabled,
        }

    async def health_check(self) -> Dict[str, bool]:
        """Check store and cache; a disabled cache counts as healthy."""
        db_healthy = await self.db.health_check()

        cache_healthy = True
        if self.cache and self.cache.enabled:
            cache_healthy = await self.cache.ping()

        return {
            "database": db_healthy,
            "cache": cache_healthy,
            "overall": db_healthy and cache_healthy,
        }

    async def _insert_with_generated_code(self, target_url: str) -> Link:
        """Allocate a code and insert, retrying when a concurrent create wins the code."""
        for attempt in range(1, self.max_allocation_attempts + 1):
            code = await self.allocator.allocate()
            try:
                return await self.db.insert_link(code, target_url, self.clock())
            except CodeConflictError:
                self.logger.info(
                    f"Lost insert race for generated code {code} (attempt {attempt}), retrying"
                )

        raise AllocationExhaustedError(self.max_allocation_attempts)

    async def _created(self, link: Link) -> CreateResult:
        # a stale snapshot may survive from a deleted link with this code
        await self._invalidate(link.code)
        self.logger.info(f"Created link: {link.code} -> {link.target_url}")
        return CreateResult(link=link, status=CreateStatus.CREATED)

    def _require_well_formed(self, code: str) -> None:
        # no stored link can hold a malformed code; the store never sees one
        if not CodeAllocator.is_well_formed(code):
            self.logger.warning(f"Malformed short code: {code!r}")
            raise LinkNotFoundError(code)

    async def _invalidate(self, code: str) -> None:
        if self.cache:
            await self.cache.invalidate(code)

    async def close(self) -> None:
        """Close store and cache connections."""
        await self.db.close()
        if self.cache:
            await self.cache.close()
