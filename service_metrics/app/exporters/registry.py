"""
Process-wide gauge store backing the `/metrics` endpoint.
"""

import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from prometheus_client import CollectorRegistry, Gauge


@dataclass(frozen=True)
class GaugeDefinition:
    """Name, help text and label names of an exported gauge."""
    name: str
    documentation: str
    labelnames: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MetricSample:
    """A gauge value as currently held by the registry."""
    name: str
    labels: Tuple[Tuple[str, str], ...]
    value: float


DATABASE_SIZE_BYTES = "database_size_bytes"
USED_DATABASE_SIZE_BYTES = "used_database_size_bytes"
INDEX_COUNT = "index_count"
INDEX_DOCS_COUNT = "index_docs_count"
NB_TASKS = "nb_tasks"
LAST_UPDATE = "last_update"
IS_INDEXING = "is_indexing"
SEARCH_QUEUE_SIZE = "search_queue_size"
SEARCHES_RUNNING = "searches_running"
SEARCHES_WAITING_TO_BE_PROCESSED = "searches_waiting_to_be_processed"
TASK_QUEUE_LATENCY_SECONDS = "task_queue_latency_seconds"

SEARCH_GAUGES: Tuple[GaugeDefinition, ...] = (
    GaugeDefinition(DATABASE_SIZE_BYTES, "Database size in bytes"),
    GaugeDefinition(USED_DATABASE_SIZE_BYTES, "Used database size in bytes"),
    GaugeDefinition(INDEX_COUNT, "Index count"),
    GaugeDefinition(INDEX_DOCS_COUNT, "Index Docs Count", ("index",)),
    GaugeDefinition(NB_TASKS, "Number of tasks", ("kind", "status")),
    GaugeDefinition(LAST_UPDATE, "Last update timestamp"),
    GaugeDefinition(IS_INDEXING, "Whether a task is currently being processed"),
    GaugeDefinition(SEARCH_QUEUE_SIZE, "Search queue size"),
    GaugeDefinition(SEARCHES_RUNNING, "Searches running"),
    GaugeDefinition(SEARCHES_WAITING_TO_BE_PROCESSED, "Searches waiting to be processed"),
    GaugeDefinition(TASK_QUEUE_LATENCY_SECONDS, "Task queue latency in seconds"),
)


class MetricRegistry:
    """Named gauges keyed by (name, labels), overwritten on each write.

    Gauges are registered on first write, so a gauge that was never set
    does not appear in the exposition at all. Individual writes are
    atomic; a scrape pass as a whole is not.
    """

    def __init__(
        self,
        registry: Optional[CollectorRegistry] = None,
        definitions: Iterable[GaugeDefinition] = SEARCH_GAUGES
    ):
        self.registry = registry or CollectorRegistry()
        self._definitions: Dict[str, GaugeDefinition] = {d.name: d for d in definitions}
        self._gauges: Dict[str, Gauge] = {}
        self._lock = threading.Lock()

    def _gauge(self, name: str) -> Gauge:
        gauge = self._gauges.get(name)
        if gauge is not None:
            return gauge

        with self._lock:
            gauge = self._gauges.get(name)
            if gauge is None:
                definition = self._definitions[name]
                gauge = Gauge(
                    definition.name,
                    definition.documentation,
                    definition.labelnames,
                    registry=self.registry
                )
                self._gauges[name] = gauge
        return gauge

    def set(self, name: str, value: float, **labels: str) -> None:
        """Set a gauge; raises KeyError for names without a definition."""
        gauge = self._gauge(name)
        if labels:
            gauge.labels(**labels).set(value)
        else:
            gauge.set(value)

    def get(self, name: str, **labels: str) -> Optional[float]:
        return self.registry.get_sample_value(name, labels)

    def samples(self) -> List[MetricSample]:
        with self._lock:
            gauges = list(self._gauges.values())

        samples = []
        for gauge in gauges:
            for family in gauge.collect():
                for sample in family.samples:
                    samples.append(MetricSample(
                        name=sample.name,
                        labels=tuple(sorted(sample.labels.items())),
                        value=sample.value
                    ))
        return samples
