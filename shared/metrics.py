"""
Self-observability metrics for the container metrics collector.
"""

from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry, generate_latest
from typing import Dict, Any, Optional


class MetricsCollector:
    """Prometheus metrics describing the collector process itself."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        # Private registry unless one is passed in
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up the collector's metrics."""

        # Service info
        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        # Collection cycle metrics
        self._metrics["collector_cycles_total"] = Counter(
            "collector_cycles_total",
            "Total collection cycles by outcome",
            ["outcome"],
            registry=self.registry
        )

        self._metrics["collector_cycle_duration_seconds"] = Histogram(
            "collector_cycle_duration_seconds",
            "Collection cycle duration in seconds",
            registry=self.registry
        )

        self._metrics["collector_instances_discovered"] = Gauge(
            "collector_instances_discovered",
            "Containers discovered in the last completed cycle",
            registry=self.registry
        )

        self._metrics["collector_published_entries"] = Gauge(
            "collector_published_entries",
            "Entries in the currently published snapshot",
            registry=self.registry
        )

        self._metrics["collector_instance_failures_total"] = Counter(
            "collector_instance_failures_total",
            "Per-container failures by reason",
            ["reason"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_cycle(self, outcome: str, discovered: int = 0, published: Optional[int] = None,
                     duration: Optional[float] = None):
        """Record the outcome of one collection cycle."""
        self._metrics["collector_cycles_total"].labels(outcome=outcome).inc()
        if outcome == "success":
            self._metrics["collector_instances_discovered"].set(discovered)
        if published is not None:
            self._metrics["collector_published_entries"].set(published)
        if duration is not None:
            self._metrics["collector_cycle_duration_seconds"].observe(duration)

    def record_instance_failure(self, reason: str):
        """Record a failure confined to one container."""
        self._metrics["collector_instance_failures_total"].labels(reason=reason).inc()

    def render(self) -> bytes:
        """Render the registry in the Prometheus text format."""
        return generate_latest(self.registry)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
