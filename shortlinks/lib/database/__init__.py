"""Persistence layer for links."""

from .base import LinkStoreBase
from .memory import LinkStoreMemory
from .postgres import LinkStorePostgres
from .models import Link, CreateResult, CreateStatus

__all__ = [
    "LinkStoreBase",
    "LinkStoreMemory",
    "LinkStorePostgres",
    "Link",
    "CreateResult",
    "CreateStatus",
]
