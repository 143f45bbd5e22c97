"""
Container discovery for the Collector Service.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from shared.config import DROP_LABEL, ENABLE_LABEL, EXPOSED_LABEL_PREFIX, PORT_LABEL
from shared.logging import get_logger

from ..inventory.base import ContainerInventory, ContainerSummary


@dataclass(frozen=True)
class InstanceDescriptor:
    """A container selected for collection in the current cycle."""
    id: str
    labels: Dict[str, str] = field(default_factory=dict)
    names: List[str] = field(default_factory=list)

    @classmethod
    def from_summary(cls, summary: ContainerSummary) -> "InstanceDescriptor":
        return cls(id=summary.id, labels=dict(summary.labels), names=list(summary.names))

    @property
    def port_override(self) -> Optional[str]:
        return self.labels.get(PORT_LABEL) or None

    def resolve_port(self, default_port: str = "80") -> str:
        """Declared port override, else the default."""
        return self.port_override or default_port

    @property
    def drop_rules(self) -> List[str]:
        """Comma-separated metric drop rules from the container's labels."""
        raw = self.labels.get(DROP_LABEL, "")
        return [rule.strip() for rule in raw.split(",") if rule.strip()]

    def exposed_labels(self, prefix: str = EXPOSED_LABEL_PREFIX) -> Dict[str, str]:
        """Labels under ``prefix`` with the prefix stripped.

        Entries whose name is empty after stripping are discarded.
        """
        exposed: Dict[str, str] = {}
        for key, value in self.labels.items():
            if key.startswith(prefix):
                name = key[len(prefix):]
                if name:
                    exposed[name] = value
        return exposed


def matches_label_filter(labels: Mapping[str, str], label_filter: Mapping[str, str]) -> bool:
    """True when every required pair is present with exactly that value."""
    for key, value in label_filter.items():
        if key not in labels or labels[key] != value:
            return False
    return True


class ContainerDiscovery:
    """Selects running containers that opted in and match the label filter."""

    def __init__(self, inventory: ContainerInventory, label_filter: Optional[Mapping[str, str]] = None):
        self.inventory = inventory
        self.label_filter: Dict[str, str] = dict(label_filter or {})
        self.logger = get_logger("collector.discovery")

        if self.label_filter:
            self.logger.info("Using label filter", label_filter=self.label_filter)

    async def discover(self) -> List[InstanceDescriptor]:
        """Return the containers to collect from this cycle.

        InventoryUnavailable from the inventory propagates unchanged; there
        is no partial result.
        """
        containers = await self.inventory.list_containers()

        selected = [
            InstanceDescriptor.from_summary(container)
            for container in containers
            if container.labels.get(ENABLE_LABEL) == "true"
            and matches_label_filter(container.labels, self.label_filter)
        ]

        self.logger.debug(
            "Discovered containers",
            running=len(containers),
            selected=len(selected),
        )
        return selected
