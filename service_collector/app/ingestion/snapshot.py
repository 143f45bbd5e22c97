"""
Published collection state.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from shared.config import CollectorMode


class SDTarget(BaseModel):
    """One entry of a Prometheus HTTP service discovery response."""

    model_config = ConfigDict(frozen=True)

    targets: List[str]
    labels: Dict[str, str] = Field(default_factory=dict)


@dataclass(frozen=True)
class PublishedState:
    """Result of one completed collection cycle.

    ``metrics`` is filled in aggregation mode, ``targets`` in discovery mode.
    """
    mode: CollectorMode
    metrics: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    targets: Tuple[SDTarget, ...] = ()
    cycle: int = 0
    completed_at: Optional[datetime] = None

    @classmethod
    def build(
        cls,
        mode: CollectorMode,
        *,
        metrics: Optional[Dict[str, str]] = None,
        targets: Optional[List[SDTarget]] = None,
        cycle: int = 0,
    ) -> "PublishedState":
        return cls(
            mode=mode,
            metrics=MappingProxyType(dict(metrics or {})),
            targets=tuple(targets or ()),
            cycle=cycle,
            completed_at=datetime.now(timezone.utc),
        )

    def __len__(self) -> int:
        if self.mode == CollectorMode.DISCOVERY:
            return len(self.targets)
        return len(self.metrics)


class SnapshotStore:
    """Holds the current PublishedState.

    The lock is held only while the reference is read or replaced, never
    while a cycle runs.
    """

    def __init__(self, mode: CollectorMode):
        self._lock = threading.Lock()
        self._state = PublishedState(mode=mode)

    def current(self) -> PublishedState:
        with self._lock:
            return self._state

    def publish(self, state: PublishedState) -> None:
        with self._lock:
            self._state = state
