"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from helmdrift.models.config import (
    DiffConfig,
    HelmDriftConfig,
    KubeConfig,
    LogConfig,
    StorageConfig,
)
from helmdrift.observability.logging import LOG_FORMATS

_DRIVERS = {
    "": "secret",
    "secret": "secret",
    "secrets": "secret",
    "configmap": "configmap",
    "configmaps": "configmap",
}


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"HELMDRIFT_{key}", default)


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def validate_driver(value: str) -> str:
    """Normalise a Helm storage driver name.

    Only the Kubernetes-object backed drivers are readable from the cluster
    API; ``memory`` and ``sql`` are rejected.
    """
    driver = _DRIVERS.get(value.strip().lower())
    if driver is None:
        raise ValueError(f"Unsupported Helm storage driver: {value!r}. Must be one of secret, configmap")
    return driver


def validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def validate_log_format(value: str) -> str:
    if value.lower() not in LOG_FORMATS:
        raise ValueError(f"Invalid log format: {value}. Must be one of {', '.join(LOG_FORMATS)}")
    return value.lower()


def load_config() -> HelmDriftConfig:
    """Load configuration from HELMDRIFT_* environment variables.

    The storage driver falls back to Helm's own ``HELM_DRIVER`` variable so
    the tool reads releases from wherever the helm CLI would.
    """
    return HelmDriftConfig(
        storage=StorageConfig(
            driver=validate_driver(_env("HELM_DRIVER", os.environ.get("HELM_DRIVER", ""))),
            page_size=_env_int("LIST_PAGE_SIZE", 250, min_val=1, max_val=1000),
        ),
        diff=DiffConfig(
            max_concurrency=_env_int("MAX_CONCURRENCY", 8, min_val=1, max_val=64),
        ),
        kube=KubeConfig(
            context=_env("KUBE_CONTEXT", ""),
            request_timeout=_env_int("REQUEST_TIMEOUT", 30, min_val=1, max_val=300),
            helmrelease_version=_env("HELMRELEASE_VERSION", "v2"),
        ),
        log=LogConfig(
            level=validate_log_level(_env("LOG_LEVEL", "warning")),
            format=validate_log_format(_env("LOG_FORMAT", "json")),
        ),
    )
