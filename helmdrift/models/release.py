"""Recorded release state: object identities, manifest objects and release records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ObjectRef:
    """Identity of a Kubernetes object rendered by a release."""

    api_version: str
    kind: str
    namespace: str
    name: str

    @property
    def group(self) -> str:
        """API group, empty for the core group."""
        if "/" in self.api_version:
            return self.api_version.split("/", 1)[0]
        return ""

    @property
    def version(self) -> str:
        return self.api_version.rsplit("/", 1)[-1]

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.kind}/{self.namespace}/{self.name}"
        return f"{self.kind}/{self.name}"


@dataclass(frozen=True)
class ManifestObject:
    """One object of a rendered release manifest.

    ``body`` is the full document as rendered by Helm (apiVersion, kind,
    metadata, spec, ...). It is treated as read-only.
    """

    ref: ObjectRef
    body: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def labels(self) -> dict[str, str]:
        return _metadata_map(self.body, "labels")

    @property
    def annotations(self) -> dict[str, str]:
        return _metadata_map(self.body, "annotations")


@dataclass(frozen=True)
class ReleaseRecord:
    """The last recorded deployed state of a Helm release."""

    name: str
    namespace: str
    version: int
    status: str = ""
    chart: str = ""
    manifest: tuple[ManifestObject, ...] = ()


def _metadata_map(body: dict[str, Any], key: str) -> dict[str, str]:
    metadata = body.get("metadata") or {}
    if not isinstance(metadata, dict):
        return {}
    values = metadata.get(key) or {}
    if not isinstance(values, dict):
        return {}
    return {str(k): str(v) for k, v in values.items()}
