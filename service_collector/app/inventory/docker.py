"""
Docker Engine API inventory used by the Collector Service.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from shared.errors import InspectFailed, InventoryUnavailable
from shared.logging import get_logger

from .base import ContainerDetails, ContainerInventory, ContainerSummary, NetworkEndpoint

# Host part is ignored when talking over a unix socket
SOCKET_BASE_URL = "http://docker"


def _client_settings(
    docker_host: str, transport: Optional[httpx.AsyncBaseTransport] = None
) -> Dict[str, Any]:
    """Translate a DOCKER_HOST style address into httpx client settings."""
    if docker_host.startswith("unix://"):
        base_url = SOCKET_BASE_URL
        if transport is None:
            transport = httpx.AsyncHTTPTransport(uds=docker_host[len("unix://"):])
    elif docker_host.startswith("tcp://"):
        base_url = "http://" + docker_host[len("tcp://"):]
    else:
        base_url = docker_host

    settings: Dict[str, Any] = {"base_url": base_url}
    if transport is not None:
        settings["transport"] = transport
    return settings


class DockerInventory(ContainerInventory):
    """Lists and inspects containers through the Docker Engine HTTP API."""

    def __init__(
        self,
        docker_host: str = "unix:///var/run/docker.sock",
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.docker_host = docker_host
        self.logger = get_logger("collector.inventory.docker")

        settings = _client_settings(docker_host, transport)
        self._client = httpx.AsyncClient(timeout=timeout, **settings)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def list_containers(self) -> List[ContainerSummary]:
        """List running containers."""
        try:
            response = await self._client.get("/containers/json")
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise InventoryUnavailable(
                f"failed to list containers: {exc}",
                details={"docker_host": self.docker_host},
            ) from exc
        except ValueError as exc:
            raise InventoryUnavailable(
                f"invalid container list response: {exc}",
                details={"docker_host": self.docker_host},
            ) from exc

        try:
            containers = [
                ContainerSummary(
                    id=item.get("Id", ""),
                    labels=dict(item.get("Labels") or {}),
                    names=list(item.get("Names") or []),
                )
                for item in payload or []
            ]
        except (AttributeError, TypeError, ValueError) as exc:
            raise InventoryUnavailable(
                f"unexpected container list shape: {exc}",
                details={"docker_host": self.docker_host},
            ) from exc
        self.logger.debug("Listed running containers", count=len(containers))
        return containers

    async def inspect_container(self, container_id: str) -> ContainerDetails:
        """Inspect one container and return its attached networks."""
        try:
            response = await self._client.get(f"/containers/{container_id}/json")
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise InspectFailed(
                container_id,
                f"Error inspecting container {container_id}: {exc}",
            ) from exc

        network_settings = payload.get("NetworkSettings") or {}
        networks = {
            name: NetworkEndpoint(ip_address=(settings or {}).get("IPAddress") or "")
            for name, settings in (network_settings.get("Networks") or {}).items()
        }
        return ContainerDetails(id=payload.get("Id", container_id), networks=networks)
