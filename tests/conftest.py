import os
import sys
from pathlib import Path

import pytest
from tortoise import Tortoise

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from crawlqueue.storage.db_init import MODEL_MODULES
from crawlqueue.storage.models import CrawlQueueEntry
from crawlqueue.storage.queue_repository import QueueRepository


NOW = 1_000


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep host settings from leaking into config tests."""

    for key in [
        "DATABASE_URL",
        "POSTGRES_USER",
        "POSTGRES_PASSWORD",
        "POSTGRES_HOST",
        "POSTGRES_PORT",
        "POSTGRES_DB",
        "LOG_LEVEL",
        "LOG_PATH",
        "METRICS_PORT",
        "METRICS_INTERVAL",
        "CRAWLQUEUE_CONFIG",
    ]:
        monkeypatch.delenv(key, raising=False)

    yield

    for key in list(os.environ.keys()):
        if key.startswith("TEST_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def database(anyio_backend):
    await Tortoise.init(
        db_url="sqlite://:memory:",
        modules={"models": MODEL_MODULES},
    )
    await Tortoise.generate_schemas()
    yield Tortoise.get_connection("default")
    await Tortoise.close_connections()


@pytest.fixture
def repository(database):
    return QueueRepository(database, clock=lambda: NOW)


@pytest.fixture
def add_entry(database):
    async def _add(**values):
        return await CrawlQueueEntry.create(**values)

    return _add
