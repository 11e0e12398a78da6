"""Integration tests against a real PostgreSQL server.

Set SHORTLINKS_TEST_DATABASE_URL to a disposable database to run them;
every test starts from an empty links table.
"""

import asyncio
import os

import pytest

from shortlinks.lib.database.postgres import LinkStorePostgres
from shortlinks.lib.database.models import CreateStatus
from shortlinks.lib.exceptions import CodeConflictError, LinkNotFoundError
from shortlinks.lib.service import LinkService


DATABASE_URL = os.getenv("SHORTLINKS_TEST_DATABASE_URL")

pytestmark = [
    pytest.mark.postgres,
    pytest.mark.skipif(not DATABASE_URL, reason="SHORTLINKS_TEST_DATABASE_URL not set"),
]


@pytest.fixture
async def pg_store(logger):
    store = LinkStorePostgres(db_config=DATABASE_URL, pool_max_size=20, logger=logger)
    await store.ensure_tables()
    await store.clear()
    yield store
    await store.clear()
    await store.close()


@pytest.fixture
def pg_service(pg_store, clock, logger):
    return LinkService(db=pg_store, logger=logger, clock=clock)


class TestPostgresStore:
    """Exercise the SQL statements behind each operation."""
    
    async def test_lifecycle(self, pg_service):
        created = await pg_service.create_link("https://google.com")
        repeat = await pg_service.create_link("https://google.com")
        
        assert created.status is CreateStatus.CREATED
        assert repeat.status is CreateStatus.INCREMENTED
        assert repeat.link.code == created.link.code
        assert repeat.link.creation_count == 2
        
        clicked = await pg_service.record_click(created.link.code)
        assert clicked.total_clicks == 1
        assert clicked.last_clicked == clicked.updated_at
        assert clicked.last_clicked.tzinfo is not None
        
        await pg_service.delete_link(created.link.code)
        with pytest.raises(LinkNotFoundError):
            await pg_service.record_click(created.link.code)
    
    async def test_unique_constraint(self, pg_store, clock):
        await pg_store.insert_link("abcdef", "https://x.com", clock())
        
        with pytest.raises(CodeConflictError):
            await pg_store.insert_link("abcdef", "https://y.com", clock())
    
    async def test_list_order(self, pg_service):
        codes = [(await pg_service.create_link(f"https://x.com/{i}")).link.code for i in range(3)]
        
        assert [link.code for link in await pg_service.list_links()] == list(reversed(codes))
    
    async def test_concurrent_clicks(self, pg_service):
        code = (await pg_service.create_link("https://x.com/hot")).link.code
        n = 100
        
        await asyncio.gather(*(pg_service.record_click(code) for _ in range(n)))
        
        assert (await pg_service.get_link(code)).total_clicks == n
    
    async def test_concurrent_custom_code_claims(self, pg_service):
        results = await asyncio.gather(
            *(pg_service.create_link(f"https://x.com/{i}", custom_code="Race001") for i in range(10)),
            return_exceptions=True,
        )
        
        assert sum(1 for r in results if not isinstance(r, Exception)) == 1
        assert all(isinstance(r, CodeConflictError) for r in results if isinstance(r, Exception))
    
    async def test_long_url_and_malformed_codes(self, pg_service):
        url = "https://x.com/" + "a" * 10000
        
        first = await pg_service.create_link(url)
        second = await pg_service.create_link(url)
        
        assert second.link.code == first.link.code
        assert second.link.creation_count == 2
        with pytest.raises(LinkNotFoundError):
            await pg_service.record_click("\x00abcde")
    
    async def test_statistics(self, pg_service):
        code = (await pg_service.create_link("https://x.com")).link.code
        await pg_service.record_click(code)
        
        stats = await pg_service.get_statistics()
        
        assert stats["total_links"] == 1
        assert stats["total_clicks"] == 1
        assert stats["database"] == "postgres"
