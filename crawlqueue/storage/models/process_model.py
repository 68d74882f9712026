import os

from tortoise import fields, models


PROCESS_TABLE = os.getenv("CRAWLER_PROCESS_TABLE", "tx_crawler_process")


class CrawlProcess(models.Model):
    """
    A crawler worker process that claims and completes queue entries.
    """
    id = fields.IntField(pk=True)
    process_id = fields.CharField(max_length=50, unique=True)
    active = fields.BooleanField(default=False, index=True)
    ttl = fields.IntField(default=0)
    assigned_items_count = fields.IntField(default=0)
    deleted = fields.BooleanField(default=False)

    class Meta:
        table = PROCESS_TABLE
