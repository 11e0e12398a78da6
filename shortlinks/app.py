#!/usr/bin/env python3
"""
Main entry point for the short link service.

Concurrency: each uvicorn worker serves many connections via async I/O
(FastAPI + asyncpg pool + redis.asyncio). Click counting and code
uniqueness are enforced by PostgreSQL, so WORKERS > 1 is safe with the
postgres backend. The memory backend is per-process and needs WORKERS=1.

Usage:
    shortlinks-server
    python -m shortlinks.app

Environment variables:
    DATABASE_URL - PostgreSQL connection URL
    STORAGE_BACKEND - postgres (default) or memory
    DB_CREATE_TABLES - Create the links table on startup
    REDIS_URL - Redis connection URL (optional)
    BASE_URL - Base URL for short links
    PORT - Port to listen on
    WORKERS - Number of uvicorn worker processes (default 1)
    LOG_LEVEL - Logging level
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional, Tuple

import uvicorn
from fastapi import FastAPI

from shortlinks.config import Config, load_config
from shortlinks.lib.database.base import LinkStoreBase
from shortlinks.lib.database.memory import LinkStoreMemory
from shortlinks.lib.database.postgres import LinkStorePostgres
from shortlinks.lib.database.cache import RedisCache
from shortlinks.lib.service import LinkService
from shortlinks.lib.common.logging_config import setup_logging
from shortlinks.web_app import create_app


def build_store(config: Config, logger: logging.Logger) -> LinkStoreBase:
    """Create the link store selected by configuration."""
    if config.storage_backend == "memory":
        logger.info("Using in-memory link store")
        return LinkStoreMemory(logger=logger)

    logger.info(f"Using PostgreSQL link store at {config.database_url.rsplit('@', 1)[-1]}")
    return LinkStorePostgres(
        db_config=config.database_url,
        pool_max_size=config.db_pool_max_size,
        connection_timeout_seconds=config.db_timeout_seconds,
        create_tables=config.db_create_tables,
        logger=logger,
    )


async def build_service(
    config: Config,
    logger: logging.Logger,
) -> Tuple[LinkStoreBase, Optional[RedisCache], LinkService]:
    """Create store, optional cache, and service from configuration."""
    db = build_store(config, logger)

    cache = None
    if config.redis_url:
        logger.info("Connecting to Redis")
        cache = RedisCache(
            redis_url=config.redis_url,
            ttl_seconds=config.cache_ttl_seconds,
            logger=logger,
        )
        await cache.connect()
    else:
        logger.info("Redis caching disabled")

    service = LinkService(
        db=db,
        cache=cache,
        logger=logger,
        max_allocation_attempts=config.max_allocation_attempts,
    )
    return db, cache, service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting short link service...")

    db, cache, service = await build_service(config, logger)
    if isinstance(db, LinkStorePostgres) and config.db_create_tables:
        await db.ensure_tables()

    app.state.db = db
    app.state.cache = cache
    app.state.service = service

    logger.info("Service started successfully")

    yield

    logger.info("Shutting down short link service...")
    await service.close()
    logger.info("Service stopped")


def create_server_app() -> FastAPI:
    """Build the app for uvicorn (used as a factory so workers can import it)."""
    config = load_config()
    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    app = create_app(
        db_instance=None,  # set in lifespan
        cache_instance=None,
        service_instance=None,
        config=config,
    )
    app.state.logger = logger
    app.router.lifespan_context = lifespan
    return app


def main():
    """Main entry point."""
    config = load_config()
    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("Short Link Service")
    logger.info(f"Configuration: {config.model_dump(exclude={'database_url', 'redis_url'})}")

    if config.storage_backend == "memory" and config.workers > 1:
        logger.error("The memory backend cannot be shared between workers; set WORKERS=1")
        sys.exit(1)

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        uvicorn.run(
            "shortlinks.app:create_server_app",
            factory=True,
            host=config.host,
            port=config.port,
            workers=config.workers,
            log_level=config.log_level.lower(),
            access_log=True,
        )
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
