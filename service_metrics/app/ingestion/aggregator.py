"""
Scrape-time statistics aggregation for Metrics Service.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, TypeVar

from shared.errors import ExternalServiceError
from shared.logging import get_logger
from shared.tracing import trace_operation

from ..auth.filters import AccessFilter
from ..exporters import registry as gauges
from ..exporters.registry import MetricRegistry
from ..sources.base import AuthController, GlobalStats, IndexScheduler, SearchQueue, TaskStatusCounts
from .latency import QueueLatencyEstimator

T = TypeVar("T")


class AggregationError(ExternalServiceError):
    """A subsystem call failed while gathering statistics."""

    def __init__(self, component: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.component = component
        super().__init__(component, message, details, code="AGGREGATION_ERROR")


@dataclass(frozen=True)
class StatsSnapshot:
    """Everything gathered for one scrape pass."""
    global_stats: GlobalStats
    task_counts: TaskStatusCounts
    is_indexing: bool
    search_queue_size: int
    searches_running: int
    searches_waiting: int
    task_queue_latency_seconds: float
    auth_store_size: int = 0
    used_auth_store_size: int = 0


class StatsAggregator:
    """Gathers scheduler, index, key store and search-queue statistics into gauges.

    All retrievals finish before the first gauge is written: when any
    subsystem call fails, the registry keeps the values of the previous
    successful pass untouched.
    """

    def __init__(
        self,
        scheduler: IndexScheduler,
        search_queue: SearchQueue,
        registry: MetricRegistry,
        latency_estimator: Optional[QueueLatencyEstimator] = None,
        auth_controller: Optional[AuthController] = None
    ):
        self.scheduler = scheduler
        self.search_queue = search_queue
        self.registry = registry
        self.latency_estimator = latency_estimator or QueueLatencyEstimator()
        self.auth_controller = auth_controller
        self.logger = get_logger("metrics.aggregator")

    def run(self, access_filter: AccessFilter) -> StatsSnapshot:
        """Collect a snapshot and publish it into the registry."""
        snapshot = self.collect(access_filter)
        self.publish(snapshot)
        return snapshot

    def collect(self, access_filter: AccessFilter) -> StatsSnapshot:
        with trace_operation("metrics.collect"):
            global_stats = self._retrieve("index_scheduler", self.scheduler.get_global_stats, access_filter)
            task_counts = self._retrieve("index_scheduler", self.scheduler.get_task_status_counts)
            is_indexing = self._retrieve("index_scheduler", self.scheduler.is_task_processing)

            auth_store_size = used_auth_store_size = 0
            if self.auth_controller is not None:
                auth_store_size = self._retrieve("auth_controller", self.auth_controller.size)
                used_auth_store_size = self._retrieve("auth_controller", self.auth_controller.used_size)

            search_queue_size = self._retrieve("search_queue", self.search_queue.capacity)
            searches_running = self._retrieve("search_queue", self.search_queue.searches_running)
            searches_waiting = self._retrieve("search_queue", self.search_queue.searches_waiting)

            latency = self._retrieve(
                "index_scheduler",
                self.latency_estimator.estimate,
                self.scheduler,
                access_filter
            )

        return StatsSnapshot(
            global_stats=global_stats,
            task_counts=task_counts,
            is_indexing=is_indexing,
            search_queue_size=search_queue_size,
            searches_running=searches_running,
            searches_waiting=searches_waiting,
            task_queue_latency_seconds=latency,
            auth_store_size=auth_store_size,
            used_auth_store_size=used_auth_store_size
        )

    def publish(self, snapshot: StatsSnapshot) -> None:
        stats = snapshot.global_stats
        # The key store lives in its own database and counts towards the total
        self.registry.set(gauges.DATABASE_SIZE_BYTES, stats.database_size + snapshot.auth_store_size)
        self.registry.set(
            gauges.USED_DATABASE_SIZE_BYTES,
            stats.used_database_size + snapshot.used_auth_store_size
        )
        self.registry.set(gauges.INDEX_COUNT, len(stats.indexes))

        self.registry.set(gauges.SEARCH_QUEUE_SIZE, snapshot.search_queue_size)
        self.registry.set(gauges.SEARCHES_RUNNING, snapshot.searches_running)
        self.registry.set(gauges.SEARCHES_WAITING_TO_BE_PROCESSED, snapshot.searches_waiting)

        for index_uid, index_stats in stats.indexes.items():
            self.registry.set(gauges.INDEX_DOCS_COUNT, index_stats.number_of_documents, index=index_uid)

        for kind, by_status in snapshot.task_counts.items():
            for status, count in by_status.items():
                self.registry.set(gauges.NB_TASKS, count, kind=kind, status=status)

        if stats.last_update is not None:
            self.registry.set(gauges.LAST_UPDATE, int(stats.last_update.timestamp()))
        self.registry.set(gauges.IS_INDEXING, int(snapshot.is_indexing))
        self.registry.set(gauges.TASK_QUEUE_LATENCY_SECONDS, snapshot.task_queue_latency_seconds)

        self.logger.debug(
            "Statistics published",
            index_count=len(stats.indexes),
            is_indexing=snapshot.is_indexing,
            task_queue_latency_seconds=snapshot.task_queue_latency_seconds
        )

    def _retrieve(self, component: str, call: Callable[..., T], *args: Any) -> T:
        try:
            return call(*args)
        except Exception as e:
            self.logger.error("Statistics retrieval failed", component=component, error=str(e))
            raise AggregationError(component, str(e)) from e
