"""
Fixtures for Metrics service tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from unittest.mock import MagicMock

import pytest
from prometheus_client import CollectorRegistry

from service_metrics.app.exporters.registry import MetricRegistry
from service_metrics.app.sources.base import GlobalStats, IndexStats, Task, TaskStatus

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_scheduler(
    database_size: int = 0,
    used_database_size: int = 0,
    indexes: Optional[Dict[str, int]] = None,
    task_counts: Optional[Dict[str, Dict[str, int]]] = None,
    is_processing: bool = False,
    pending_tasks: Optional[list] = None,
    last_update: Optional[datetime] = None
) -> MagicMock:
    """A scheduler double returning fixed statistics."""
    scheduler = MagicMock()
    scheduler.get_global_stats.return_value = GlobalStats(
        database_size=database_size,
        used_database_size=used_database_size,
        indexes={
            uid: IndexStats(number_of_documents=count)
            for uid, count in (indexes or {}).items()
        },
        last_update=last_update
    )
    scheduler.get_task_status_counts.return_value = task_counts or {}
    scheduler.is_task_processing.return_value = is_processing
    scheduler.query_tasks.return_value = pending_tasks or []
    return scheduler


def make_search_queue(capacity: int = 1000, running: int = 0, waiting: int = 0) -> MagicMock:
    queue = MagicMock()
    queue.capacity.return_value = capacity
    queue.searches_running.return_value = running
    queue.searches_waiting.return_value = waiting
    return queue


def make_task(
    status: TaskStatus = TaskStatus.ENQUEUED,
    enqueued_at: datetime = FIXED_NOW,
    kind: str = "documentAdditionOrUpdate",
    uid: int = 0,
    index_uid: Optional[str] = "products"
) -> Task:
    return Task(uid=uid, kind=kind, status=status, enqueued_at=enqueued_at, index_uid=index_uid)


@pytest.fixture
def scheduler_factory():
    return make_scheduler


@pytest.fixture
def search_queue_factory():
    return make_search_queue


@pytest.fixture
def task_factory():
    return make_task


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def metric_registry():
    """A registry isolated from the process-global default one."""
    return MetricRegistry(CollectorRegistry())


@pytest.fixture
def recent_enqueued_task():
    """A task enqueued five seconds ago by the wall clock."""
    return make_task(enqueued_at=datetime.now(timezone.utc) - timedelta(seconds=5))
