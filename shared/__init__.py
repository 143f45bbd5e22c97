"""
Shared utilities for the container metrics collector.

This package holds the building blocks the collector service is assembled from:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus self-metrics helpers
- errors: Error types for inventory and per-container failures
- base_service: FastAPI service skeleton
- test_helpers: Fakes and factories for tests
"""
