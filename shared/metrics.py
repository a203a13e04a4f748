"""
Shared HTTP request metrics for the Search Operations layer.
"""

from typing import Dict, Any, Optional

from prometheus_client import Counter, Histogram, CollectorRegistry


class MetricsCollector:
    """Request-level metrics recorded by the service middleware."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "HTTP requests",
            ["method", "path", "status"],
            registry=self.registry
        )

        self._metrics["http_response_time_seconds"] = Histogram(
            "http_response_time_seconds",
            "HTTP response times",
            ["method", "path"],
            registry=self.registry
        )

    def record_http_request(self, method: str, path: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            path=path,
            status=str(status_code)
        ).inc()

        self._metrics["http_response_time_seconds"].labels(
            method=method,
            path=path
        ).observe(duration)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
