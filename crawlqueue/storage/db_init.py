from typing import Optional

from loguru import logger
from tortoise import Tortoise

from crawlqueue.utils.config_loader import load_config
from crawlqueue.utils.db_utils import to_tortoise_dsn


MODEL_MODULES = [
    "crawlqueue.storage.models.queue_model",
    "crawlqueue.storage.models.process_model",
]


async def init_database(db_url: Optional[str] = None, *, generate_schemas: bool = False) -> None:
    """
    Connect Tortoise to the queue database.

    Schemas are only generated on request; in production the queue tables
    belong to the crawler that fills them.
    """
    if db_url is None:
        db_url = load_config().database_url
    db_url = to_tortoise_dsn(db_url)

    logger.info("Initializing queue database connection...")

    await Tortoise.init(db_url=db_url, modules={"models": MODEL_MODULES})

    if generate_schemas:
        await Tortoise.generate_schemas(safe=True)
        logger.info("Queue tables created or verified.")


async def close_database() -> None:
    await Tortoise.close_connections()
    logger.info("Queue database connections closed.")
