"""In-process implementation of the link store."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional, List, Dict, Any

from .base import LinkStoreBase
from .models import Link
from ..exceptions import CodeConflictError


class LinkStoreMemory(LinkStoreBase):
    """Dictionary-backed link store for a single event loop.

    None of the mutating methods await between reading and writing, so
    each one runs to completion without interleaving with other
    coroutines. That gives the same no-lost-update and single-winner
    guarantees as the PostgreSQL statements, within one process.
    Returned links are copies; callers cannot mutate stored state.
    """

    name = "memory"

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._links: Dict[str, Link] = {}
        # insertion sequence, tie-breaker for identical created_at
        self._sequence: Dict[str, int] = {}
        self._next_sequence = 0

    def _order_key(self, link: Link):
        return (link.created_at, self._sequence[link.code])

    async def insert_link(
        self,
        code: str,
        target_url: str,
        now: datetime,
    ) -> Link:
        if code in self._links:
            self.logger.warning(f"Short code already exists: {code}")
            raise CodeConflictError(code)

        link = Link(
            code=code,
            target_url=target_url,
            created_at=now,
            updated_at=now,
        )
        self._links[code] = link
        self._sequence[code] = self._next_sequence
        self._next_sequence += 1
        return replace(link)

    async def bump_creation_count(
        self,
        target_url: str,
        now: datetime,
    ) -> Optional[Link]:
        matches = [link for link in self._links.values() if link.target_url == target_url]
        if not matches:
            return None

        link = min(matches, key=self._order_key)
        link.creation_count += 1
        link.updated_at = now
        return replace(link)

    async def record_click(self, code: str, now: datetime) -> Optional[Link]:
        link = self._links.get(code)
        if link is None:
            return None

        link.total_clicks += 1
        link.last_clicked = now
        link.updated_at = now
        return replace(link)

    async def get_link(self, code: str) -> Optional[Link]:
        link = self._links.get(code)
        return replace(link) if link else None

    async def code_exists(self, code: str) -> bool:
        return code in self._links

    async def list_links(self) -> List[Link]:
        ordered = sorted(
            self._links.values(),
            key=self._order_key,
            reverse=True,
        )
        return [replace(link) for link in ordered]

    async def delete_link(self, code: str) -> bool:
        if self._links.pop(code, None) is None:
            return False
        del self._sequence[code]
        return True

    async def clear(self) -> int:
        count = len(self._links)
        self._links.clear()
        self._sequence.clear()
        return count

    async def get_statistics(self) -> Dict[str, Any]:
        return {
            "total_links": len(self._links),
            "total_clicks": sum(link.total_clicks for link in self._links.values()),
            "database": self.name,
            "status": "healthy",
        }

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        self.logger.debug("Memory store closed")
