"""Abstract base class for link store implementations."""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
from datetime import datetime

from .models import Link


class LinkStoreBase(ABC):
    """Abstract base class for link persistence.

    Every mutating method is a single atomic step against the backing
    store: it either applies completely or not at all.
    """

    #: Short name reported in statistics and health output.
    name = "base"

    @abstractmethod
    async def insert_link(
        self,
        code: str,
        target_url: str,
        now: datetime,
    ) -> Link:
        """Insert a new link with zeroed counters.

        Args:
            code: The short code to claim
            target_url: The URL the code redirects to
            now: Creation timestamp (also used for updated_at)

        Returns:
            The inserted link

        Raises:
            CodeConflictError: If the storage uniqueness constraint rejects the code
        """
        pass

    @abstractmethod
    async def bump_creation_count(
        self,
        target_url: str,
        now: datetime,
    ) -> Optional[Link]:
        """Increment creation_count on the oldest link for an exact target URL.

        Args:
            target_url: Target URL to match (exact string comparison)
            now: Timestamp written to updated_at

        Returns:
            The updated link, or None if no link has that target URL
        """
        pass

    @abstractmethod
    async def record_click(self, code: str, now: datetime) -> Optional[Link]:
        """Add one click and stamp last_clicked in one conditional update.

        Args:
            code: The short code that was traversed
            now: Timestamp written to last_clicked and updated_at

        Returns:
            The link after the increment, or None if the code does not exist
        """
        pass

    @abstractmethod
    async def get_link(self, code: str) -> Optional[Link]:
        """Get the link for a short code, or None."""
        pass

    @abstractmethod
    async def code_exists(self, code: str) -> bool:
        """Check whether a short code is currently held by a link."""
        pass

    @abstractmethod
    async def list_links(self) -> List[Link]:
        """List all links, newest first."""
        pass

    @abstractmethod
    async def delete_link(self, code: str) -> bool:
        """Delete a link.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def clear(self) -> int:
        """Delete every link.

        Returns:
            Number of links deleted
        """
        pass

    @abstractmethod
    async def get_statistics(self) -> Dict[str, Any]:
        """Get store statistics (total_links, total_clicks, etc.)."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is reachable."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release connections."""
        pass
