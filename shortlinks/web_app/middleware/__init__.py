"""Middleware for the link web app."""

from .logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
