"""
Container inventory package.

Defines the list/inspect capability the collector needs from a container
runtime, plus the Docker Engine API implementation used in production.
"""

from .base import ContainerDetails, ContainerInventory, ContainerSummary, NetworkEndpoint
from .docker import DockerInventory

__all__ = [
    "ContainerDetails",
    "ContainerInventory",
    "ContainerSummary",
    "DockerInventory",
    "NetworkEndpoint",
]
