import os

from tortoise import fields, models


QUEUE_TABLE = os.getenv("CRAWLER_QUEUE_TABLE", "tx_crawler_queue")


class CrawlQueueEntry(models.Model):
    """
    One unit of crawl work with its scheduling and execution state.

    ``exec_time == 0`` means the entry has not been executed yet.
    """
    id = fields.IntField(pk=True)
    page_id = fields.IntField(default=0, index=True)
    set_id = fields.IntField(default=0, index=True)

    configuration = fields.CharField(max_length=250, default="", index=True)
    configuration_hash = fields.CharField(max_length=32, default="")
    parameters = fields.TextField(null=True)
    parameters_hash = fields.CharField(max_length=50, default="")

    process_id = fields.CharField(max_length=50, default="", index=True)
    process_id_completed = fields.CharField(max_length=50, default="", index=True)
    process_scheduled = fields.IntField(default=0)

    scheduled = fields.IntField(default=0, index=True)
    exec_time = fields.IntField(default=0, index=True)
    result_data = fields.TextField(null=True)

    class Meta:
        table = QUEUE_TABLE
        indexes = (("exec_time", "scheduled"), ("set_id", "scheduled"))
