"""
Metrics service for the Search Operations layer.
"""

from typing import Dict, Optional

from fastapi import Request, Response
from prometheus_client import CollectorRegistry

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config

from .auth.gate import AuthorizationGate
from .exporters.prometheus import PrometheusExporter
from .exporters.registry import MetricRegistry
from .ingestion.aggregator import StatsAggregator
from .ingestion.latency import QueueLatencyEstimator
from .sources.base import AuthController, IndexScheduler, SearchQueue
from .sources.memory import InMemoryIndexScheduler, InMemorySearchQueue, StaticAuthController

SERVICE_NAME = "metrics"
DEFAULT_PORT = 7700


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization")
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class MetricsService(BaseService):
    """Serves `/metrics` for the search engine.

    The registry is created once here and shared by every scrape; the
    subsystems default to in-memory implementations and can be injected.
    """

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        scheduler: Optional[IndexScheduler] = None,
        auth_controller: Optional[AuthController] = None,
        search_queue: Optional[SearchQueue] = None,
        latency_estimator: Optional[QueueLatencyEstimator] = None,
        registry: Optional[CollectorRegistry] = None
    ):
        config = config or get_config(SERVICE_NAME, DEFAULT_PORT)
        super().__init__(SERVICE_NAME, config.port, config=config, registry=registry)

        self.scheduler = scheduler or InMemoryIndexScheduler()
        self.auth_controller = auth_controller or StaticAuthController(master_key=self.config.master_key)
        self.search_queue = search_queue or InMemorySearchQueue(self.config.search_queue_capacity)

        self.gate = AuthorizationGate(self.config.experimental_enable_metrics)
        self.metric_registry = MetricRegistry(self.registry)
        self.aggregator = StatsAggregator(
            self.scheduler,
            self.search_queue,
            self.metric_registry,
            latency_estimator=latency_estimator,
            auth_controller=self.auth_controller
        )
        self.exporter = PrometheusExporter(self.metric_registry)

        self._setup_metrics_routes()

    def _setup_metrics_routes(self):
        """Set up metrics-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": SERVICE_NAME,
                "message": "Search Operations - Metrics Service",
                "version": "1.0.0",
                "metrics_enabled": self.gate.metrics_enabled
            }

        # Subsystem calls block, so this handler runs on the threadpool.
        @self.app.get("/metrics")
        def get_metrics(request: Request):
            """Prometheus scrape endpoint."""
            self.gate.check_feature()
            access_filter = self.auth_controller.current_filter(_bearer_token(request))
            self.gate.check(access_filter)

            self.aggregator.run(access_filter)

            return Response(
                content=self.exporter.render(),
                media_type=self.exporter.content_type
            )

    def _should_record_request_metrics(self) -> bool:
        return self.gate.metrics_enabled

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check metrics service dependencies."""
        return {
            "index_scheduler": "processing" if self.scheduler.is_task_processing() else "idle",
            "search_queue": f"{self.search_queue.searches_running()}/{self.search_queue.capacity()}"
        }


def create_app(**kwargs):
    """Create metrics service application."""
    service = MetricsService(**kwargs)
    return service.app


if __name__ == "__main__":
    service = MetricsService()
    service.run()
