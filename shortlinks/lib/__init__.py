"""Core link logic: code allocation and the link store."""

from .shortcode import CodeAllocator
from .service import LinkService

__all__ = ["CodeAllocator", "LinkService"]
