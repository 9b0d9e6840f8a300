"""Declarative HelmRelease state: ignore rules and storage overrides."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class DriftDetectionMode(StrEnum):
    """Value of ``spec.driftDetection.mode`` on a HelmRelease."""

    ENABLED = "enabled"
    WARN = "warn"
    DISABLED = "disabled"


@dataclass(frozen=True)
class TargetSelector:
    """Selects the objects an IgnoreRule applies to.

    Empty fields match anything. ``name`` and ``namespace`` are regular
    expressions anchored at both ends; ``group``, ``version`` and ``kind``
    match exactly. Label and annotation selectors use the equality-based
    Kubernetes selector syntax.
    """

    group: str = ""
    version: str = ""
    kind: str = ""
    name: str = ""
    namespace: str = ""
    label_selector: str = ""
    annotation_selector: str = ""


@dataclass(frozen=True)
class IgnoreRule:
    """Excludes JSON pointer paths of the selected objects from drift.

    An empty ``paths`` tuple excludes the selected objects entirely.
    A rule without ``target`` applies to every object of the release.
    """

    paths: tuple[str, ...] = ()
    target: TargetSelector | None = None


@dataclass(frozen=True)
class DeclaredResource:
    """The HelmRelease governing a Helm release."""

    name: str
    namespace: str
    release_name: str = ""
    storage_namespace: str = ""
    drift_mode: DriftDetectionMode = DriftDetectionMode.DISABLED
    ignore_rules: tuple[IgnoreRule, ...] = ()

    def resolve_release_name(self, default: str) -> str:
        return self.release_name or default

    def resolve_storage_namespace(self, default: str) -> str:
        return self.storage_namespace or default
