"""
Collection cycle for the Collector Service.
"""

import asyncio
import time
from typing import Dict, List, Optional, Tuple, Union

from shared.config import CollectorMode, EXPOSED_LABEL_PREFIX
from shared.errors import InstanceError, InventoryUnavailable, NoAddressFound
from shared.logging import cycle_context, get_logger
from shared.metrics import MetricsCollector

from ..discovery.engine import ContainerDiscovery, InstanceDescriptor
from ..inventory.base import ContainerInventory
from .fetcher import MetricsFetcher
from .filtering import filter_metrics
from .snapshot import PublishedState, SDTarget, SnapshotStore

Contribution = Union[Tuple[str, str], SDTarget]


class CollectionCycle:
    """Discovers containers, collects from each concurrently and publishes."""

    def __init__(
        self,
        inventory: ContainerInventory,
        discovery: ContainerDiscovery,
        fetcher: MetricsFetcher,
        store: SnapshotStore,
        *,
        mode: CollectorMode = CollectorMode.AGGREGATE,
        default_port: str = "80",
        probe_targets: bool = False,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.inventory = inventory
        self.discovery = discovery
        self.fetcher = fetcher
        self.store = store
        self.mode = mode
        self.default_port = default_port
        self.probe_targets = probe_targets
        self.metrics = metrics
        self.logger = get_logger("collector.cycle")
        self.cycles_completed = 0
        self.cycles_started = 0

    async def run_cycle(self) -> None:
        """Run one cycle and publish its result.

        On discovery failure the previous snapshot stays published.
        """
        self.cycles_started += 1
        with cycle_context(self.cycles_started):
            await self._run()

    async def _run(self) -> None:
        start_time = time.time()
        try:
            instances = await self.discovery.discover()
        except InventoryUnavailable as e:
            self.logger.error("Error discovering containers", error=e.message, details=e.details)
            if self.metrics:
                self.metrics.record_cycle("inventory_unavailable")
            return

        results = await asyncio.gather(
            *(self._collect_instance(instance) for instance in instances),
            return_exceptions=True,
        )

        contributions: List[Contribution] = []
        for instance, outcome in zip(instances, results):
            if isinstance(outcome, InstanceError):
                self.logger.warning(
                    "Container skipped this cycle",
                    container_id=instance.id,
                    reason=outcome.reason,
                    error=outcome.message,
                )
                if self.metrics:
                    self.metrics.record_instance_failure(outcome.reason)
                continue
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, Exception):
                self.logger.error(
                    "Unexpected error collecting container",
                    container_id=instance.id,
                    error=str(outcome),
                )
                if self.metrics:
                    self.metrics.record_instance_failure("unexpected")
                continue
            contributions.append(outcome)

        state = self._build_state(contributions)
        self.store.publish(state)
        self.cycles_completed = state.cycle

        duration = time.time() - start_time
        if self.metrics:
            self.metrics.record_cycle(
                "success",
                discovered=len(instances),
                published=len(state),
                duration=duration,
            )

        self.logger.info(
            "Collection cycle completed",
            cycle=state.cycle,
            discovered=len(instances),
            published=len(state),
            duration_ms=round(duration * 1000, 2),
        )

    def _build_state(self, contributions: List[Contribution]) -> PublishedState:
        cycle = self.cycles_completed + 1
        if self.mode == CollectorMode.DISCOVERY:
            return PublishedState.build(self.mode, targets=contributions, cycle=cycle)

        metrics: Dict[str, str] = dict(contributions)
        return PublishedState.build(self.mode, metrics=metrics, cycle=cycle)

    async def _collect_instance(self, instance: InstanceDescriptor) -> Contribution:
        """Collect one container's contribution; raises InstanceError on failure."""
        port = instance.resolve_port(self.default_port)

        details = await self.inventory.inspect_container(instance.id)
        # First network with an address wins, in the order the runtime lists them
        address = details.first_ip_address()
        if not address:
            raise NoAddressFound(instance.id)

        if self.mode == CollectorMode.DISCOVERY:
            if self.probe_targets:
                await self.fetcher.fetch(address, port, container_id=instance.id)
            return SDTarget(
                targets=[f"{address}:{port}"],
                labels=instance.exposed_labels(EXPOSED_LABEL_PREFIX),
            )

        body = await self.fetcher.fetch(address, port, container_id=instance.id)
        return instance.id, filter_metrics(body, instance.drop_rules)


class CycleScheduler:
    """Runs a CollectionCycle immediately and then on a fixed interval."""

    def __init__(self, cycle: CollectionCycle, interval_seconds: float = 30.0):
        self.cycle = cycle
        self.interval_seconds = interval_seconds
        self.logger = get_logger("collector.scheduler")
        self.task: Optional[asyncio.Task] = None
        self.running = False

    async def start(self):
        """Start the periodic collection loop."""
        self.running = True
        self.task = asyncio.create_task(self._run_loop())
        self.logger.info("Collection scheduler started", interval_seconds=self.interval_seconds)

    async def stop(self):
        """Stop the periodic collection loop."""
        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            self.task = None

        self.logger.info("Collection scheduler stopped")

    async def _run_loop(self):
        """Main collection loop, at a fixed rate from the first run."""
        loop = asyncio.get_running_loop()
        next_run = loop.time()
        while self.running:
            try:
                await self.cycle.run_cycle()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.logger.error("Error in collection loop", error=str(e))

            next_run += self.interval_seconds
            now = loop.time()
            if next_run < now:
                # Overran one or more ticks: skip them and restart the schedule
                self.logger.warning("Collection cycle overran interval", interval_seconds=self.interval_seconds)
                next_run = now
            await asyncio.sleep(next_run - now)
