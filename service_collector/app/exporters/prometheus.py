"""
Aggregated Prometheus text view for the Collector Service.
"""

from typing import Mapping

from ..ingestion.snapshot import PublishedState

# Prometheus text exposition format
CONTENT_TYPE = "text/plain; version=0.0.4"


def source_comment(container_id: str) -> str:
    """One-line comment attributing the following lines to a container."""
    return f"# Container: {container_id}"


def aggregate_metrics(metrics: Mapping[str, str]) -> str:
    """Concatenate per-container metrics, sorted by container id.

    Every section ends with a blank line; an empty body leaves only the
    attribution comment.
    """
    sections = []
    for container_id in sorted(metrics):
        body = metrics[container_id]
        if body and not body.endswith("\n"):
            body += "\n"
        sections.append(f"{source_comment(container_id)}\n{body}\n")
    return "".join(sections)


def render_aggregated(state: PublishedState) -> str:
    """Render the aggregated text view of a published snapshot."""
    return aggregate_metrics(state.metrics)
