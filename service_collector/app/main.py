"""
Collector service: discovers labelled containers and republishes their metrics.
"""

from typing import Optional

from fastapi import Response
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST

from shared.base_service import BaseService
from shared.config import CollectorConfig, CollectorMode

from .discovery.engine import ContainerDiscovery
from .exporters.http_sd import render_sd
from .exporters.prometheus import CONTENT_TYPE, render_aggregated
from .ingestion.cycle import CollectionCycle, CycleScheduler
from .ingestion.fetcher import MetricsFetcher
from .ingestion.snapshot import SnapshotStore
from .inventory.base import ContainerInventory
from .inventory.docker import DockerInventory


class CollectorService(BaseService):
    """Collector service implementation."""

    def __init__(
        self,
        config: Optional[CollectorConfig] = None,
        inventory: Optional[ContainerInventory] = None,
        fetcher: Optional[MetricsFetcher] = None,
    ):
        super().__init__("collector", config)

        self.mode = self.config.mode

        # Initialize components
        self.inventory = inventory or DockerInventory(
            self.config.docker_host,
            timeout=self.config.inventory_timeout_seconds,
        )
        self.fetcher = fetcher or MetricsFetcher(timeout=self.config.fetch_timeout_seconds)
        self.store = SnapshotStore(self.mode)
        self.discovery = ContainerDiscovery(self.inventory, self.config.label_filter)
        self.cycle = CollectionCycle(
            self.inventory,
            self.discovery,
            self.fetcher,
            self.store,
            mode=self.mode,
            default_port=self.config.default_port,
            probe_targets=self.config.sd_probe_targets,
            metrics=self.metrics,
        )
        self.scheduler = CycleScheduler(self.cycle, self.config.scrape_interval_seconds)

        @self.app.on_event("startup")
        async def _startup():
            await self.start()

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.stop()

        if self.mode == CollectorMode.DISCOVERY:
            self._setup_discovery_routes()
        else:
            self._setup_aggregation_routes()

        self.app.state.collector_service = self

    def _setup_aggregation_routes(self):
        """Set up aggregation-mode routes."""

        @self.app.get("/metrics")
        async def aggregated_metrics():
            """Metrics of every collected container, merged."""
            body = render_aggregated(self.store.current())
            return Response(content=body, headers={"Content-Type": CONTENT_TYPE})

        @self.app.get("/internal/metrics")
        async def internal_metrics():
            """The collector's own Prometheus metrics."""
            return Response(
                content=self.metrics.render(),
                headers={"Content-Type": CONTENT_TYPE_LATEST},
            )

    def _setup_discovery_routes(self):
        """Set up discovery-mode routes."""

        @self.app.get("/sd")
        async def http_sd():
            """Prometheus HTTP service discovery targets."""
            try:
                body = render_sd(self.store.current())
            except (TypeError, ValueError) as e:
                self.logger.error("Error encoding HTTP SD response", error=str(e))
                return PlainTextResponse("Internal Server Error", status_code=500)
            return Response(content=body, media_type="application/json")

    async def start(self):
        """Start the collection scheduler."""
        await self.scheduler.start()
        self.logger.info("Collector service started", mode=self.mode.value)

    async def stop(self):
        """Stop the scheduler and release the inventory client."""
        await self.scheduler.stop()
        await self.inventory.close()
        self.logger.info("Collector service stopped")


def create_app(
    config: Optional[CollectorConfig] = None,
    inventory: Optional[ContainerInventory] = None,
    fetcher: Optional[MetricsFetcher] = None,
):
    """Create collector service application."""
    service = CollectorService(config=config, inventory=inventory, fetcher=fetcher)
    return service.app


def main():
    """Console entry point."""
    service = CollectorService()
    service.logger.info("Starting container metrics collector", port=service.port)
    service.run()


if __name__ == "__main__":
    main()
