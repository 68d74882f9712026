import asyncio
import signal

from loguru import logger

from crawlqueue.monitoring.metrics_server import collect_queue_metrics, start_metrics_server
from crawlqueue.storage.db_init import close_database, init_database
from crawlqueue.storage.queue_repository import QueueRepository
from crawlqueue.utils.config_loader import load_config
from crawlqueue.utils.logger import setup_logger


# -------------------------------
# QUEUE METRIC MONITOR TASK
# -------------------------------
async def monitor_queue(repository: QueueRepository, interval: float) -> None:
    while True:
        try:
            await collect_queue_metrics(repository)
        except Exception as e:
            logger.error(f"Queue monitor error: {e}")
        await asyncio.sleep(interval)


# -------------------------------
# MAIN APPLICATION
# -------------------------------
async def main() -> None:
    config = load_config()
    setup_logger(config.log_level, config.log_path)

    logger.info("Starting crawl queue monitor...")

    await init_database(config.database_url)
    repository = QueueRepository()

    metrics_runner, _ = await start_metrics_server(port=config.metrics_port)
    logger.info(f"Serving queue metrics on port {config.metrics_port}")

    monitor_task = asyncio.create_task(monitor_queue(repository, config.metrics_interval))

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown_event.set)

    try:
        await shutdown_event.wait()
    except asyncio.CancelledError:
        pass
    finally:
        monitor_task.cancel()
        await asyncio.gather(monitor_task, return_exceptions=True)

        await metrics_runner.shutdown()
        await metrics_runner.cleanup()

        await close_database()
        logger.info("Crawl queue monitor stopped.")


# -------------------------------
# ENTRYPOINT
# -------------------------------
if __name__ == "__main__":
    asyncio.run(main())
