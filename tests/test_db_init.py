import pytest
from tortoise import Tortoise

from crawlqueue.storage.db_init import close_database, init_database
from crawlqueue.storage.models import CrawlQueueEntry
from crawlqueue.storage.queue_repository import QueueRepository


@pytest.mark.anyio
async def test_init_database_generates_queue_schema(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite://:memory:")

    await init_database(generate_schemas=True)
    try:
        await CrawlQueueEntry.create(configuration="a", scheduled=1)
        repository = QueueRepository(Tortoise.get_connection("default"))

        assert await repository.count_all() == 1
        assert CrawlQueueEntry._meta.db_table == "tx_crawler_queue"
    finally:
        await close_database()
