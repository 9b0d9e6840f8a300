"""Declared-State Reader: fetches and decodes the governing HelmRelease."""

from __future__ import annotations

from typing import Any

from helmdrift.cluster.base import ClusterReader
from helmdrift.diff.selector import IgnoreMatcher
from helmdrift.errors import DecodeError
from helmdrift.models.declared import DeclaredResource, DriftDetectionMode, IgnoreRule, TargetSelector
from helmdrift.observability.logging import get_logger

_log = get_logger("declared")

HELMRELEASE_GROUP = "helm.toolkit.fluxcd.io"
HELMRELEASE_PLURAL = "helmreleases"

_TARGET_FIELDS = {
    "group": "group",
    "version": "version",
    "kind": "kind",
    "name": "name",
    "namespace": "namespace",
    "labelSelector": "label_selector",
    "annotationSelector": "annotation_selector",
}


class DeclaredStateReader:
    """Reads HelmRelease objects through a ClusterReader."""

    def __init__(self, cluster: ClusterReader, version: str = "v2") -> None:
        self._cluster = cluster
        self._version = version

    async def read(self, name: str, namespace: str) -> DeclaredResource:
        obj = await self._cluster.get_custom_object(
            HELMRELEASE_GROUP, self._version, HELMRELEASE_PLURAL, namespace, name
        )
        declared = parse_helmrelease(obj)
        _log.info(
            "helmrelease loaded",
            helmrelease=f"{namespace}/{name}",
            release_name=declared.release_name or None,
            storage_namespace=declared.storage_namespace or None,
            drift_mode=declared.drift_mode,
            ignore_rules=len(declared.ignore_rules),
        )
        return declared


def parse_helmrelease(obj: dict[str, Any]) -> DeclaredResource:
    """Decode a HelmRelease document.

    Raises:
        DecodeError: a field has the wrong shape, or an ignore rule has an
            invalid selector, regular expression or path.
    """
    metadata = _mapping(obj.get("metadata"), "metadata")
    spec = _mapping(obj.get("spec"), "spec")
    drift = _mapping(spec.get("driftDetection"), "spec.driftDetection")

    mode_value = drift.get("mode") or DriftDetectionMode.DISABLED.value
    try:
        mode = DriftDetectionMode(mode_value)
    except ValueError as exc:
        raise DecodeError(f"unknown spec.driftDetection.mode {mode_value!r}") from exc

    raw_rules = drift.get("ignore") or []
    if not isinstance(raw_rules, list):
        raise DecodeError("spec.driftDetection.ignore must be a list")
    rules = tuple(_ignore_rule(raw, i) for i, raw in enumerate(raw_rules))

    try:
        IgnoreMatcher(rules)
    except ValueError as exc:
        raise DecodeError(f"invalid spec.driftDetection.ignore: {exc}") from exc

    return DeclaredResource(
        name=str(metadata.get("name") or ""),
        namespace=str(metadata.get("namespace") or ""),
        release_name=str(spec.get("releaseName") or ""),
        storage_namespace=str(spec.get("storageNamespace") or ""),
        drift_mode=mode,
        ignore_rules=rules,
    )


def _ignore_rule(raw: Any, index: int) -> IgnoreRule:
    where = f"spec.driftDetection.ignore[{index}]"
    rule = _mapping(raw, where)
    paths = rule.get("paths") or []
    if not isinstance(paths, list) or not all(isinstance(p, str) for p in paths):
        raise DecodeError(f"{where}.paths must be a list of strings")

    target = None
    if rule.get("target") is not None:
        raw_target = _mapping(rule["target"], f"{where}.target")
        target = TargetSelector(
            **{attr: str(raw_target.get(key) or "") for key, attr in _TARGET_FIELDS.items()}
        )
    return IgnoreRule(paths=tuple(paths), target=target)


def _mapping(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DecodeError(f"{where} must be a mapping, got {type(value).__name__}")
    return value
