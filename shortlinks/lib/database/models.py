"""Data models for the link store."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return _as_utc(value)
    return _as_utc(datetime.fromisoformat(value))


@dataclass
class Link:
    """A short code and the target URL it redirects to."""
    
    code: str
    target_url: str
    created_at: datetime
    updated_at: datetime
    total_clicks: int = 0
    creation_count: int = 1
    last_clicked: Optional[datetime] = None
    
    def to_dict(self) -> dict:
        """Convert to a JSON-friendly dictionary."""
        return {
            "short_code": self.code,
            "target_url": self.target_url,
            "total_clicks": self.total_clicks,
            "creation_count": self.creation_count,
            "last_clicked": self.last_clicked.isoformat() if self.last_clicked else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
    
    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Link":
        """Create from a dictionary produced by ``to_dict``."""
        return cls(
            code=data["short_code"],
            target_url=data["target_url"],
            total_clicks=data.get("total_clicks", 0),
            creation_count=data.get("creation_count", 1),
            last_clicked=_parse_timestamp(data.get("last_clicked")),
            created_at=_parse_timestamp(data["created_at"]),
            updated_at=_parse_timestamp(data["updated_at"]),
        )
    
    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "Link":
        """Create from a ``links`` table row."""
        return cls(
            code=row["short_code"],
            target_url=row["target_url"],
            total_clicks=row["total_clicks"],
            creation_count=row["creation_count"],
            last_clicked=_as_utc(row["last_clicked"]),
            created_at=_as_utc(row["created_at"]),
            updated_at=_as_utc(row["updated_at"]),
        )


class CreateStatus(str, Enum):
    """Outcome of a create request."""

    CREATED = "created"
    INCREMENTED = "incremented"


@dataclass(frozen=True)
class CreateResult:
    """A link returned by create, tagged with how it was produced."""

    link: Link
    status: CreateStatus

    @property
    def created(self) -> bool:
        return self.status is CreateStatus.CREATED
