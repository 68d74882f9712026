from loguru import logger
import os

_logger_initialized = False

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | worker={extra[worker_id]} | {message}"


def setup_logger(
    log_level: str = "INFO",
    log_path: str = "/data/logs/crawlqueue.log",
    worker_id: str | None = None,
):
    global _logger_initialized

    resolved_worker_id = worker_id or os.getenv("WORKER_ID") or str(os.getpid())

    if not _logger_initialized:
        os.makedirs(os.path.dirname(log_path) or ".", exist_ok=True)

        # drop loguru's default stderr sink
        logger.remove()
        logger.configure(extra={"worker_id": resolved_worker_id})

        logger.add(
            log_path,
            rotation="10 MB",
            retention="7 days",
            level=log_level,
            format=LOG_FORMAT,
        )
        logger.add(
            lambda msg: print(msg, end=""),
            colorize=True,
            level=log_level,
            format=LOG_FORMAT,
        )

        _logger_initialized = True

    return logger.bind(worker_id=resolved_worker_id)
