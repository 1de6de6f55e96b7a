"""
Shared utilities for the traffic proxy.

This package aggregates the building blocks services are assembled from:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Proxy error types and their JSON responses
- base_service: FastAPI application scaffolding
- test_helpers: Fake clock and stub upstream for tests

Do not import from service_* packages into shared/.
"""
