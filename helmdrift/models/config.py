"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class StorageConfig:
    """Helm release storage configuration."""

    driver: str = "secret"
    page_size: int = 250


@dataclass
class DiffConfig:
    """Diff engine configuration."""

    max_concurrency: int = 8


@dataclass
class KubeConfig:
    """Kubernetes API access configuration."""

    context: str = ""
    request_timeout: int = 30
    helmrelease_version: str = "v2"


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "warning"
    format: str = "json"


@dataclass
class HelmDriftConfig:
    """Top-level helmdrift configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    diff: DiffConfig = field(default_factory=DiffConfig)
    kube: KubeConfig = field(default_factory=KubeConfig)
    log: LogConfig = field(default_factory=LogConfig)
