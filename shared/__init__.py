"""
Shared utilities for the Search Operations services.

- config: Service configuration via pydantic-settings
- logging: Structured logging with trace correlation
- metrics: Prometheus HTTP request metrics
- tracing: OpenTelemetry tracing config
- errors: Canonical error types and responses
- base_service: FastAPI service shell

Do not import from service_* packages into shared/.
"""
