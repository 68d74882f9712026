from __future__ import annotations

import enum
import time
from dataclasses import dataclass, fields as dataclass_fields
from typing import Any, Callable, Dict, Iterable, List, Mapping, NamedTuple, Optional, Protocol, Sequence, Union

from loguru import logger
from tortoise.backends.base.client import BaseDBAsyncClient
from tortoise.expressions import Q
from tortoise.functions import Count, Max, Min
from tortoise.queryset import QuerySet

from crawlqueue.storage.models.queue_model import CrawlQueueEntry


DEFAULT_LIMIT = 100


class InvalidArgumentError(ValueError):
    """Raised when a query argument can never be satisfied, e.g. a negative limit."""


class Assignment(enum.Enum):
    """Which assignment predicate a pending query adds on top of the due/executed gates."""

    ANY = "any"
    NOT_SCHEDULED = "not_scheduled"
    ASSIGNED = "assigned"
    UNASSIGNED = "unassigned"


@dataclass(frozen=True)
class QueueEntry:
    id: int = 0
    page_id: int = 0
    set_id: int = 0
    configuration: str = ""
    configuration_hash: str = ""
    parameters: Optional[str] = None
    parameters_hash: str = ""
    process_id: str = ""
    process_id_completed: str = ""
    process_scheduled: int = 0
    scheduled: int = 0
    exec_time: int = 0
    result_data: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "QueueEntry":
        known = {f.name for f in dataclass_fields(cls)}
        return cls(**{key: value for key, value in row.items() if key in known})

    @property
    def executed(self) -> bool:
        return self.exec_time != 0

    @property
    def assigned(self) -> bool:
        return self.process_id != ""


class PendingConfigurationCount(NamedTuple):
    configuration: str
    unprocessed: int
    assigned_but_unprocessed: int


class HasProcessId(Protocol):
    process_id: str


ProcessRef = Union[str, HasProcessId]


def _process_id(process: ProcessRef) -> str:
    if isinstance(process, str):
        return process
    return process.process_id


def _selected_fields(fields: Union[str, Sequence[str], None]) -> List[str]:
    """Column names to select; empty means every column, as does any ``*``."""
    if fields is None:
        return []
    if isinstance(fields, str):
        fields = fields.split(",")
    names = [name.strip() for name in fields if name.strip()]
    if "*" in names:
        return []
    return names


def _check_limit(limit: int) -> None:
    if limit < 0:
        raise InvalidArgumentError(f"limit must not be negative, got {limit}")


def pending_filter(assignment: Assignment, due_before: int) -> Q:
    """
    Build the "pending" predicate: not executed, due at ``due_before`` or
    earlier (inclusive), narrowed by ``assignment``.
    """
    criteria = Q(exec_time=0, scheduled__lte=due_before)
    if assignment is Assignment.NOT_SCHEDULED:
        return Q(process_scheduled=0) & criteria
    if assignment is Assignment.ASSIGNED:
        return ~Q(process_id="") & criteria
    if assignment is Assignment.UNASSIGNED:
        return Q(process_id="") & criteria
    return criteria


class QueueRepository:
    """Read-only statistics and lookups over the crawl queue table."""

    def __init__(
        self,
        db: Optional[BaseDBAsyncClient] = None,
        *,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.db = db
        self.clock = clock or (lambda: int(time.time()))

    def _entries(self) -> QuerySet[CrawlQueueEntry]:
        queryset = CrawlQueueEntry.all()
        if self.db is not None:
            queryset = queryset.using_db(self.db)
        return queryset

    # -------------------------------------------------------
    # Per-process lookups
    # -------------------------------------------------------

    async def find_youngest_entry_for_process(self, process: ProcessRef) -> Optional[QueueEntry]:
        """Earliest executed entry completed by ``process``, or None."""
        return await self._first_executed_entry(process, "exec_time")

    async def find_oldest_entry_for_process(self, process: ProcessRef) -> Optional[QueueEntry]:
        """Most recently executed entry completed by ``process``, or None."""
        return await self._first_executed_entry(process, "-exec_time")

    async def _first_executed_entry(self, process: ProcessRef, ordering: str) -> Optional[QueueEntry]:
        rows = await (
            self._entries()
            .filter(process_id_completed=_process_id(process), exec_time__gt=0)
            .order_by(ordering)
            .limit(1)
            .values()
        )
        if not rows:
            return None
        return QueueEntry.from_row(rows[0])

    async def count_executed_items_by_process(self, process: ProcessRef) -> int:
        return await self._entries().filter(
            process_id_completed=_process_id(process),
            exec_time__gt=0,
        ).count()

    async def count_non_executed_items_by_process(self, process: ProcessRef) -> int:
        """Items claimed by ``process`` that have not run yet."""
        return await self._entries().filter(
            process_id=_process_id(process),
            exec_time=0,
        ).count()

    # -------------------------------------------------------
    # Pending counters
    # -------------------------------------------------------

    async def count_pending_items(
        self,
        assignment: Assignment = Assignment.ANY,
        due_before: Optional[int] = None,
    ) -> int:
        if due_before is None:
            due_before = self.clock()
        count = await self._entries().filter(pending_filter(assignment, due_before)).count()
        logger.debug(f"Pending items ({assignment.value}, due <= {due_before}): {count}")
        return count

    async def count_unprocessed_items(self) -> int:
        """Unscheduled items without any due date (``scheduled <= 0``)."""
        return await self.count_pending_items(Assignment.NOT_SCHEDULED, due_before=0)

    async def count_all_pending_items(self) -> int:
        return await self.count_pending_items(Assignment.NOT_SCHEDULED)

    async def count_all_assigned_pending_items(self) -> int:
        return await self.count_pending_items(Assignment.ASSIGNED)

    async def count_all_unassigned_pending_items(self) -> int:
        return await self.count_pending_items(Assignment.UNASSIGNED)

    # -------------------------------------------------------
    # Grouped statistics
    # -------------------------------------------------------

    async def count_pending_items_grouped_by_configuration_key(self) -> List[PendingConfigurationCount]:
        # strictly before now, unlike the single pending counters
        rows = await (
            self._entries()
            .filter(exec_time=0, scheduled__lt=self.clock())
            .annotate(
                unprocessed=Count("id"),
                assigned_but_unprocessed=Count("id", _filter=~Q(process_id="")),
            )
            .group_by("configuration")
            .order_by("configuration")
            .values("configuration", "unprocessed", "assigned_but_unprocessed")
        )
        return [
            PendingConfigurationCount(
                configuration=row["configuration"],
                unprocessed=int(row["unprocessed"]),
                assigned_but_unprocessed=int(row["assigned_but_unprocessed"] or 0),
            )
            for row in rows
        ]

    async def get_set_id_with_unprocessed_entries(self) -> List[int]:
        set_ids = await (
            self._entries()
            .filter(scheduled__lt=self.clock(), exec_time=0)
            .distinct()
            .order_by("set_id")
            .values_list("set_id", flat=True)
        )
        return [int(set_id) for set_id in set_ids]

    async def get_total_queue_entries_by_configuration(self, set_ids: Iterable[int]) -> Dict[str, int]:
        set_ids = [int(set_id) for set_id in set_ids]
        if not set_ids:
            return {}

        rows = await (
            self._entries()
            .filter(set_id__in=set_ids, scheduled__lt=self.clock())
            .annotate(total=Count("id"))
            .group_by("configuration")
            .values("configuration", "total")
        )
        return {row["configuration"]: int(row["total"]) for row in rows}

    # -------------------------------------------------------
    # Recent activity
    # -------------------------------------------------------

    async def get_last_processed_entries_timestamps(self, limit: int = DEFAULT_LIMIT) -> List[int]:
        _check_limit(limit)
        if limit == 0:
            return []

        timestamps = await (
            self._entries()
            .order_by("-exec_time")
            .limit(limit)
            .values_list("exec_time", flat=True)
        )
        return [int(ts) for ts in timestamps]

    async def get_last_processed_entries(
        self,
        fields: Union[str, Sequence[str], None] = None,
        limit: int = DEFAULT_LIMIT,
    ) -> List[Dict[str, Any]]:
        """
        Latest rows by ``exec_time``, unfiltered.

        ``fields`` is a list of column names or a comma separated string;
        None, or a ``"*"`` anywhere in the selection, selects every column.
        """
        _check_limit(limit)
        if limit == 0:
            return []

        return await (
            self._entries()
            .order_by("-exec_time")
            .limit(limit)
            .values(*_selected_fields(fields))
        )

    async def get_performance_data(self, start: int, end: int) -> Dict[str, Dict[str, Any]]:
        """Per-process first/last execution time and url count within [start, end]."""
        rows = await (
            self._entries()
            .filter(exec_time__not=0, exec_time__gte=int(start), exec_time__lte=int(end))
            .annotate(
                start_time=Min("exec_time"),
                end_time=Max("exec_time"),
                urlcount=Count("id"),
            )
            .group_by("process_id_completed")
            .values("process_id_completed", "start_time", "end_time", "urlcount")
        )

        performance: Dict[str, Dict[str, Any]] = {}
        for row in rows:
            process_id = row["process_id_completed"]
            performance[process_id] = {
                "process_id_completed": process_id,
                "start": int(row["start_time"]),
                "end": int(row["end_time"]),
                "urlcount": int(row["urlcount"]),
            }
        return performance

    async def count_all(self, *filters: Q, **lookups: Any) -> int:
        return await self._entries().filter(*filters, **lookups).count()
