"""
Per-container metrics fetching for the Collector Service.
"""

import asyncio
from typing import Optional

import httpx

from shared.errors import FetchFailed, FetchNon200, FetchTimeout
from shared.logging import get_logger


def metrics_url(address: str, port: str) -> str:
    """Build the metrics endpoint URL for a container."""
    return f"http://{address}:{port}/metrics"


def valid_port(port: str) -> bool:
    return port.isdigit() and 0 < int(port) < 65536


class MetricsFetcher:
    """Fetches the Prometheus text exposition of one container."""

    def __init__(self, timeout: float = 5.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self._transport = transport
        self.logger = get_logger("collector.fetcher")

    async def fetch(self, address: str, port: str, container_id: str = "") -> str:
        """Fetch the metrics text from ``address:port``.

        Every failure is raised as a FetchError subclass carrying the
        container id; nothing else escapes.
        """
        url = metrics_url(address, port)
        if not valid_port(port):
            raise FetchFailed(
                container_id,
                f"Invalid port {port!r} for {address}",
                details={"url": url},
            )

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                # One deadline for connect, headers and body together
                response = await asyncio.wait_for(client.get(url), self.timeout)
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            raise FetchTimeout(
                container_id,
                f"Timed out fetching {url}",
                details={"url": url, "timeout": self.timeout},
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FetchFailed(
                container_id,
                f"Failed to fetch {url}: {exc}",
                details={"url": url},
            ) from exc

        if response.status_code != 200:
            raise FetchNon200(container_id, response.status_code, details={"url": url})

        self.logger.debug("Fetched metrics", container_id=container_id, url=url, size=len(response.content))
        return response.text
