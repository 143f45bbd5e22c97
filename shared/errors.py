"""
Shared error handling for the container metrics collector.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class CollectorError(Exception):
    """Base exception for the collector."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class InventoryUnavailable(CollectorError):
    """The container inventory could not be listed. Aborts one cycle."""

    def __init__(self, message: str = "Container inventory unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVENTORY_UNAVAILABLE", message, details)


class InstanceError(CollectorError):
    """A failure confined to one container for one cycle."""

    reason = "instance_error"

    def __init__(self, container_id: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.container_id = container_id
        details = dict(details or {})
        details.setdefault("container_id", container_id)
        super().__init__(self.reason.upper(), message, details)


class InspectFailed(InstanceError):
    """Inspecting the container failed."""

    reason = "inspect_failed"


class NoAddressFound(InstanceError):
    """None of the container's networks carries an IP address."""

    reason = "no_address_found"

    def __init__(self, container_id: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(container_id, f"No IP address found for container {container_id}", details)


class FetchError(InstanceError):
    """Fetching the container's metrics failed."""

    reason = "fetch_failed"


class FetchFailed(FetchError):
    """Network or body-read error while fetching metrics."""

    reason = "fetch_failed"


class FetchTimeout(FetchError):
    """The metrics fetch exceeded its timeout."""

    reason = "fetch_timeout"


class FetchNon200(FetchError):
    """The metrics endpoint answered with a status other than 200."""

    reason = "fetch_non_200"

    def __init__(self, container_id: str, status_code: int, details: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        details = dict(details or {})
        details["status_code"] = status_code
        super().__init__(container_id, f"Unexpected status code: {status_code}", details)
