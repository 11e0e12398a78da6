"""Pytest configuration and fixtures."""

import pytest
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

from httpx import ASGITransport, AsyncClient

from shortlinks.config import Config
from shortlinks.lib.database.memory import LinkStoreMemory
from shortlinks.lib.service import LinkService
from shortlinks.lib.shortcode import CodeAllocator
from shortlinks.lib.common.logging_config import setup_logging
from shortlinks.web_app import create_app


class SteppingClock:
    """Clock that moves forward one second per reading."""
    
    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.current = start
    
    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def clock():
    return SteppingClock()


@pytest.fixture
def store(logger):
    """Fresh in-memory link store."""
    return LinkStoreMemory(logger=logger)


@pytest.fixture
def allocator(store, logger):
    return CodeAllocator(store=store, logger=logger)


@pytest.fixture
def service(store, allocator, clock, logger) -> LinkService:
    """Create service instance."""
    return LinkService(
        db=store,
        cache=None,  # No cache for tests
        allocator=allocator,
        logger=logger,
        clock=clock,
    )


@pytest.fixture
def config():
    return Config(
        storage_backend="memory",
        base_url="http://testserver",
        _env_file=None,
    )


@pytest.fixture
def app(store, service, config):
    """Create test FastAPI app."""
    return create_app(
        db_instance=store,
        cache_instance=None,
        service_instance=service,
        config=config,
    )


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]
