"""
Prometheus exporter for Metrics Service.
"""

from typing import Any, Dict, Optional

from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from shared.errors import SearchOpsException
from shared.logging import get_logger

from .registry import MetricRegistry


class InternalEncodingFailure(SearchOpsException):
    """The registry could not be encoded. Indicates a defect, not bad input."""

    status_code = 500

    def __init__(self, message: str = "Failed to encode metrics", details: Optional[Dict[str, Any]] = None):
        super().__init__("INTERNAL_ERROR", message, details)


class PrometheusExporter:
    """Renders a MetricRegistry in the Prometheus text exposition format."""

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: MetricRegistry):
        self.registry = registry
        self.logger = get_logger("metrics.exporter.prometheus")

    def render(self) -> bytes:
        try:
            return generate_latest(self.registry.registry)
        except Exception as e:
            self.logger.error("Error encoding metrics", error=str(e), exc_info=True)
            raise InternalEncodingFailure(details={"error": str(e)}) from e
