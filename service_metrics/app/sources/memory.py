"""
In-memory subsystems used when the service runs standalone and in tests.
"""

import threading
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Iterator, List, Mapping, Optional

from shared.errors import AuthenticationError, InvalidApiKey
from shared.logging import get_logger

from ..auth.filters import ALL_INDEXES, AccessFilter
from .base import GlobalStats, IndexStats, Task, TaskQuery, TaskStatus, TaskStatusCounts

METRICS_GET = "metrics.get"


class InMemoryIndexScheduler:
    """Index store and task log kept in process memory."""

    def __init__(self, database_size: int = 0, used_database_size: int = 0):
        self.logger = get_logger("metrics.sources.scheduler")
        self._lock = threading.RLock()
        self._database_size = database_size
        self._used_database_size = used_database_size
        self._documents: Dict[str, int] = {}
        self._tasks: List[Task] = []
        self._last_update: Optional[datetime] = None

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    def set_database_size(self, database_size: int, used_database_size: int):
        with self._lock:
            self._database_size = database_size
            self._used_database_size = used_database_size

    def add_index(self, index_uid: str, number_of_documents: int = 0):
        with self._lock:
            self._documents[index_uid] = number_of_documents
            self._last_update = self._now()

    def delete_index(self, index_uid: str):
        with self._lock:
            self._documents.pop(index_uid, None)
            self._last_update = self._now()

    def set_document_count(self, index_uid: str, number_of_documents: int):
        with self._lock:
            if index_uid not in self._documents:
                raise KeyError(f"Index `{index_uid}` not found.")
            self._documents[index_uid] = number_of_documents
            self._last_update = self._now()

    def enqueue(self, kind: str, index_uid: Optional[str] = None, enqueued_at: Optional[datetime] = None) -> Task:
        """Append a task to the log and return it."""
        with self._lock:
            task = Task(
                uid=len(self._tasks),
                kind=kind,
                status=TaskStatus.ENQUEUED,
                enqueued_at=enqueued_at or self._now(),
                index_uid=index_uid
            )
            self._tasks.append(task)

        self.logger.debug("Task enqueued", uid=task.uid, kind=kind, index_uid=index_uid)
        return task

    def update_status(self, uid: int, status: TaskStatus) -> Task:
        with self._lock:
            task = replace(self._tasks[uid], status=status)
            self._tasks[uid] = task
            if status == TaskStatus.SUCCEEDED:
                self._last_update = self._now()
        return task

    def get_global_stats(self, access_filter: AccessFilter) -> GlobalStats:
        with self._lock:
            indexing = {
                task.index_uid for task in self._tasks
                if task.status == TaskStatus.PROCESSING and task.index_uid
            }
            indexes = {
                uid: IndexStats(number_of_documents=count, is_indexing=uid in indexing)
                for uid, count in self._documents.items()
                if access_filter.is_index_authorized(uid)
            }
            return GlobalStats(
                database_size=self._database_size,
                used_database_size=self._used_database_size,
                indexes=indexes,
                last_update=self._last_update
            )

    def get_task_status_counts(self) -> TaskStatusCounts:
        counts: Dict[str, Dict[str, int]] = defaultdict(dict)
        with self._lock:
            for task in self._tasks:
                by_status = counts[task.kind]
                by_status[task.status.value] = by_status.get(task.status.value, 0) + 1
        return dict(counts)

    def is_task_processing(self) -> bool:
        with self._lock:
            return any(task.status == TaskStatus.PROCESSING for task in self._tasks)

    def query_tasks(self, query: TaskQuery, access_filter: AccessFilter) -> List[Task]:
        with self._lock:
            tasks = list(self._tasks)

        matched = [
            task for task in tasks
            if (query.statuses is None or task.status in query.statuses)
            and self._is_task_visible(task, access_filter)
        ]
        matched.sort(key=lambda task: task.uid, reverse=query.reverse)
        if query.limit is not None:
            matched = matched[:query.limit]
        return matched

    @staticmethod
    def _is_task_visible(task: Task, access_filter: AccessFilter) -> bool:
        if task.index_uid is None:
            return access_filter.all_indexes_authorized()
        return access_filter.is_index_authorized(task.index_uid)


@dataclass(frozen=True)
class ApiKey:
    """A configured API key."""
    actions: FrozenSet[str] = frozenset({"*"})
    indexes: FrozenSet[str] = frozenset({ALL_INDEXES})
    expires_at: Optional[datetime] = None


@dataclass
class StaticAuthController:
    """Resolves API keys from a fixed key table.

    Without a master key the instance is unprotected and every caller
    gets an all-index filter.
    """
    master_key: Optional[str] = None
    keys: Mapping[str, ApiKey] = field(default_factory=dict)
    required_action: str = METRICS_GET
    store_size: int = 0
    used_store_size: int = 0

    def current_filter(self, api_key: Optional[str]) -> AccessFilter:
        if self.master_key is None:
            return AccessFilter.all_indexes()
        if not api_key:
            raise AuthenticationError()
        if api_key == self.master_key:
            return AccessFilter.all_indexes()

        key = self.keys.get(api_key)
        if key is None or not self._allows(key):
            raise InvalidApiKey()
        if key.expires_at is not None and key.expires_at <= datetime.now(timezone.utc):
            raise InvalidApiKey()
        return AccessFilter.for_indexes(key.indexes)

    def size(self) -> int:
        return self.store_size

    def used_size(self) -> int:
        return self.used_store_size

    def _allows(self, key: ApiKey) -> bool:
        family = self.required_action.split(".")[0]
        return bool({"*", f"{family}.*", self.required_action} & key.actions)


class InMemorySearchQueue:
    """Counts searches running and waiting for one of `capacity` slots."""

    def __init__(self, capacity: int):
        self._capacity = capacity
        self._slots = threading.BoundedSemaphore(capacity)
        self._lock = threading.Lock()
        self._running = 0
        self._waiting = 0

    def capacity(self) -> int:
        return self._capacity

    def searches_running(self) -> int:
        with self._lock:
            return self._running

    def searches_waiting(self) -> int:
        with self._lock:
            return self._waiting

    @contextmanager
    def permit(self) -> Iterator[None]:
        """Hold a search slot for the duration of the block."""
        with self._lock:
            self._waiting += 1
        self._slots.acquire()
        with self._lock:
            self._waiting -= 1
            self._running += 1
        try:
            yield
        finally:
            with self._lock:
                self._running -= 1
            self._slots.release()
