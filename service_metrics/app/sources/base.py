"""
Read-only contracts of the subsystems queried during a scrape.

The scheduler, the API key controller and the search admission queue are
owned elsewhere; the metrics pipeline only depends on these protocols so
any implementation (or test double) can be injected.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Mapping, Optional, Protocol

from ..auth.filters import AccessFilter


class TaskStatus(str, Enum):
    """Task status enumeration."""
    ENQUEUED = "enqueued"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


@dataclass(frozen=True)
class Task:
    """A task from the scheduler's task log."""
    uid: int
    kind: str
    status: TaskStatus
    enqueued_at: datetime
    index_uid: Optional[str] = None


@dataclass(frozen=True)
class TaskQuery:
    """Task log query.

    With ``reverse`` set, tasks come back most recently enqueued first.
    """
    limit: Optional[int] = None
    reverse: bool = False
    statuses: Optional[FrozenSet[TaskStatus]] = None


@dataclass(frozen=True)
class IndexStats:
    """Statistics of a single index."""
    number_of_documents: int
    is_indexing: bool = False


@dataclass(frozen=True)
class GlobalStats:
    """Database-wide statistics for the indexes visible to a filter."""
    database_size: int
    used_database_size: int
    indexes: Mapping[str, IndexStats] = field(default_factory=dict)
    last_update: Optional[datetime] = None


# task kind -> status -> count
TaskStatusCounts = Dict[str, Dict[str, int]]


class IndexScheduler(Protocol):
    """Task scheduler and index store."""

    def get_global_stats(self, access_filter: AccessFilter) -> GlobalStats:
        ...

    def get_task_status_counts(self) -> TaskStatusCounts:
        ...

    def is_task_processing(self) -> bool:
        ...

    def query_tasks(self, query: TaskQuery, access_filter: AccessFilter) -> List[Task]:
        ...


class AuthController(Protocol):
    """Resolves the caller's API key into an access filter.

    The key store is a database of its own; its on-disk sizes are added to
    the scheduler's when reporting database size.
    """

    def current_filter(self, api_key: Optional[str]) -> AccessFilter:
        ...

    def size(self) -> int:
        ...

    def used_size(self) -> int:
        ...


class SearchQueue(Protocol):
    """Admission queue bounding concurrent searches."""

    def capacity(self) -> int:
        ...

    def searches_running(self) -> int:
        ...

    def searches_waiting(self) -> int:
        ...
