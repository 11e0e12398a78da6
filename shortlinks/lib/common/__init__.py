"""Common utilities for the link service."""

from .validators import is_valid_url, is_valid_short_code
from .headers import build_base_url, resolve_path_prefix
from .url_builder import build_short_url
from .logging_config import setup_logging, get_logger

__all__ = [
    "is_valid_url",
    "is_valid_short_code",
    "build_base_url",
    "resolve_path_prefix",
    "build_short_url",
    "setup_logging",
    "get_logger",
]
