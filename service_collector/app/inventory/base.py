"""
Container inventory capability.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(frozen=True)
class ContainerSummary:
    """A running container as returned by a list call."""
    id: str
    labels: Dict[str, str] = field(default_factory=dict)
    names: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class NetworkEndpoint:
    """One network a container is attached to."""
    ip_address: str = ""


@dataclass(frozen=True)
class ContainerDetails:
    """The part of an inspect response the collector uses."""
    id: str
    # Insertion order is whatever the runtime returned
    networks: Dict[str, NetworkEndpoint] = field(default_factory=dict)

    def first_ip_address(self) -> str:
        """Return the first non-empty IP address across attached networks."""
        for endpoint in self.networks.values():
            if endpoint.ip_address:
                return endpoint.ip_address
        return ""


class ContainerInventory(ABC):
    """List and inspect running containers."""

    @abstractmethod
    async def list_containers(self) -> List[ContainerSummary]:
        """List running containers.

        Raises InventoryUnavailable when the runtime cannot be queried.
        """

    @abstractmethod
    async def inspect_container(self, container_id: str) -> ContainerDetails:
        """Inspect one container.

        Raises InspectFailed when the container cannot be inspected.
        """

    async def close(self) -> None:
        """Release any held resources."""
