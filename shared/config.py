"""
Shared configuration management for the container metrics collector.
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CollectorMode(str, Enum):
    """What a collection cycle publishes."""
    AGGREGATE = "aggregate"
    DISCOVERY = "discovery"


# Container labels recognised by discovery and collection.
ENABLE_LABEL = "prometheus.auto.enable"
PORT_LABEL = "prometheus.auto.port"
DROP_LABEL = "prometheus.auto.metrics.drop"
EXPOSED_LABEL_PREFIX = "prometheus.auto.label."


def parse_label_filter(spec: Optional[str]) -> Dict[str, str]:
    """Parse ``key=value,key2=value2`` into a label filter mapping.

    Pairs without ``=`` are skipped.
    """
    label_filter: Dict[str, str] = {}
    if not spec:
        return label_filter

    for pair in spec.split(","):
        key, sep, value = pair.partition("=")
        if not sep:
            continue
        label_filter[key.strip()] = value.strip()

    return label_filter


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="COLLECTOR_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    log_format: str = Field(default="json")

    # HTTP server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)


class CollectorConfig(BaseConfig):
    """Collector-specific configuration."""

    service_name: str = Field(default="collector")
    mode: CollectorMode = Field(default=CollectorMode.AGGREGATE)

    # Discovery
    label_filter_spec: str = Field(
        default="",
        validation_alias=AliasChoices(
            "label_filter_spec",
            "COLLECTOR_LABEL_FILTER",
            "PROMETHEUS_LABEL_FILTER",
        ),
    )
    docker_host: str = Field(
        default="unix:///var/run/docker.sock",
        validation_alias=AliasChoices("docker_host", "COLLECTOR_DOCKER_HOST", "DOCKER_HOST"),
    )
    inventory_timeout_seconds: float = Field(default=10.0)

    # Collection
    scrape_interval_seconds: float = Field(default=30.0)
    fetch_timeout_seconds: float = Field(default=5.0)
    default_port: str = Field(default="80")
    sd_probe_targets: bool = Field(default=False)

    @property
    def label_filter(self) -> Dict[str, str]:
        """Required label pairs parsed from ``label_filter_spec``."""
        return parse_label_filter(self.label_filter_spec)


def get_config(**overrides) -> CollectorConfig:
    """Get collector configuration from the environment."""
    return CollectorConfig(**overrides)
