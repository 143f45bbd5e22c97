"""
Prometheus HTTP service discovery view for the Collector Service.
"""

import json
from typing import Any, Dict, List

from ..ingestion.snapshot import PublishedState


def sd_payload(state: PublishedState) -> List[Dict[str, Any]]:
    """Targets of a published snapshot as plain JSON-ready dicts."""
    return [target.model_dump() for target in state.targets]


def render_sd(state: PublishedState) -> str:
    """Serialize the targets of a published snapshot.

    Raises TypeError or ValueError when the payload cannot be encoded.
    """
    return json.dumps(sd_payload(state))
