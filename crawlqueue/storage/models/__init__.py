from .queue_model import CrawlQueueEntry
from .process_model import CrawlProcess

__all__ = [
    "CrawlQueueEntry",
    "CrawlProcess",
]
