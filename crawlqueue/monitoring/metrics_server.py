from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    generate_latest,
    Gauge,
)

from crawlqueue.storage.queue_repository import QueueRepository

# -------------------------
# Queue Metrics
# -------------------------

QUEUE_PENDING = Gauge(
    "crawlqueue_pending_items",
    "Unscheduled queue entries due for execution",
)

QUEUE_ASSIGNED_PENDING = Gauge(
    "crawlqueue_assigned_pending_items",
    "Due queue entries already claimed by a process",
)

QUEUE_UNASSIGNED_PENDING = Gauge(
    "crawlqueue_unassigned_pending_items",
    "Due queue entries not claimed by any process",
)

QUEUE_UNPROCESSED = Gauge(
    "crawlqueue_unprocessed_items",
    "Unscheduled queue entries without a due date",
)

QUEUE_PENDING_BY_CONFIGURATION = Gauge(
    "crawlqueue_pending_items_by_configuration",
    "Pending queue entries per crawl configuration",
    ["configuration"],
)

QUEUE_ASSIGNED_BY_CONFIGURATION = Gauge(
    "crawlqueue_assigned_pending_items_by_configuration",
    "Assigned pending queue entries per crawl configuration",
    ["configuration"],
)

QUEUE_LAST_EXEC_TIME = Gauge(
    "crawlqueue_last_exec_time",
    "Unix timestamp of the most recently executed queue entry",
)


async def collect_queue_metrics(repository: QueueRepository) -> None:
    """Refresh every queue gauge from the repository."""
    QUEUE_PENDING.set(await repository.count_all_pending_items())
    QUEUE_ASSIGNED_PENDING.set(await repository.count_all_assigned_pending_items())
    QUEUE_UNASSIGNED_PENDING.set(await repository.count_all_unassigned_pending_items())
    QUEUE_UNPROCESSED.set(await repository.count_unprocessed_items())

    grouped = await repository.count_pending_items_grouped_by_configuration_key()
    # configurations that drained since the last refresh must not linger
    QUEUE_PENDING_BY_CONFIGURATION.clear()
    QUEUE_ASSIGNED_BY_CONFIGURATION.clear()
    for item in grouped:
        QUEUE_PENDING_BY_CONFIGURATION.labels(configuration=item.configuration).set(item.unprocessed)
        QUEUE_ASSIGNED_BY_CONFIGURATION.labels(configuration=item.configuration).set(
            item.assigned_but_unprocessed
        )

    timestamps = await repository.get_last_processed_entries_timestamps(limit=1)
    QUEUE_LAST_EXEC_TIME.set(timestamps[0] if timestamps else 0)


# -------------------------
# /metrics endpoint
# -------------------------

async def metrics_handler(request):
    data = generate_latest()

    # aiohttp rejects a charset inside content_type
    ctype = CONTENT_TYPE_LATEST.split(";")[0]

    return web.Response(
        body=data,
        content_type=ctype
    )


async def start_metrics_server(port=8000):
    app = web.Application()
    app.router.add_get("/metrics", metrics_handler)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "0.0.0.0", port)
    await site.start()

    return runner, site
