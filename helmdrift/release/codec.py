"""Decoding of Helm v3 release storage entries and rendered manifests.

A storage entry (Secret or ConfigMap) holds the release under the
``release`` key as base64 text of a gzip-compressed JSON document. Secret
data carries one more base64 layer added by the API server.
"""

from __future__ import annotations

import base64
import binascii
import gzip
import json
from typing import Any

import yaml

from helmdrift.errors import DecodeError
from helmdrift.models.release import ManifestObject, ObjectRef, ReleaseRecord
from helmdrift.observability.logging import get_logger

_log = get_logger("release.codec")

_GZIP_MAGIC = b"\x1f\x8b\x08"

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _ManifestLoader(yaml.SafeLoader):
    """SafeLoader producing the values the API server stores as JSON.

    Unquoted dates stay strings and mapping keys are always strings.
    """

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[str, Any]:
        mapping = super().construct_mapping(node, deep=deep)
        return {_mapping_key(key): value for key, value in mapping.items()}


_ManifestLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _mapping_key(key: Any) -> str:
    if isinstance(key, bool):
        return "true" if key else "false"
    if key is None:
        return "null"
    if isinstance(key, float) and key.is_integer():
        return str(int(key))
    return str(key)


def storage_payload(entry: dict[str, Any], kind: str) -> str:
    """Extract the encoded release text from a Secret or ConfigMap."""
    name = (entry.get("metadata") or {}).get("name", "")
    data = entry.get("data") or {}
    value = data.get("release")
    if not isinstance(value, str) or not value:
        raise DecodeError(f"{kind} {name} has no release data")
    if kind != "Secret":
        return value
    try:
        return base64.b64decode(value, validate=True).decode("ascii")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise DecodeError(f"{kind} {name} release data is not valid base64: {exc}") from exc


def decode_release(payload: str) -> dict[str, Any]:
    """Decode Helm's encoded release text into the release document."""
    try:
        raw = base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise DecodeError(f"release payload is not valid base64: {exc}") from exc

    if raw[:3] == _GZIP_MAGIC:
        try:
            raw = gzip.decompress(raw)
        except (OSError, EOFError) as exc:
            raise DecodeError(f"release payload is not valid gzip: {exc}") from exc

    try:
        doc = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DecodeError(f"release payload is not valid JSON: {exc}") from exc
    if not isinstance(doc, dict):
        raise DecodeError("release payload is not a JSON object")
    return doc


def parse_manifest(manifest: str, default_namespace: str) -> tuple[ManifestObject, ...]:
    """Split a rendered multi-document YAML manifest into objects.

    Empty documents are skipped and ``kind: List`` documents are expanded
    into their items. Objects without a namespace get *default_namespace*.
    """
    try:
        documents = list(yaml.load_all(manifest, Loader=_ManifestLoader))  # noqa: S506
    except yaml.YAMLError as exc:
        raise DecodeError(f"release manifest is not valid YAML: {exc}") from exc

    objects: list[ManifestObject] = []
    for doc in documents:
        if doc is None:
            continue
        if not isinstance(doc, dict):
            raise DecodeError(f"manifest document is not a mapping: {type(doc).__name__}")
        if doc.get("kind") == "List" and isinstance(doc.get("items"), list):
            candidates = doc["items"]
        else:
            candidates = [doc]
        for body in candidates:
            obj = _manifest_object(body, default_namespace)
            if obj is not None:
                objects.append(obj)
    return tuple(objects)


def _manifest_object(body: Any, default_namespace: str) -> ManifestObject | None:
    if not isinstance(body, dict):
        raise DecodeError(f"manifest object is not a mapping: {type(body).__name__}")
    metadata = body.get("metadata") or {}
    kind = body.get("kind")
    name = metadata.get("name") if isinstance(metadata, dict) else None
    if not kind or not name:
        _log.debug("skipping manifest object without kind or name", kind=kind, name=name)
        return None
    ref = ObjectRef(
        api_version=str(body.get("apiVersion", "")),
        kind=str(kind),
        namespace=str(metadata.get("namespace") or default_namespace),
        name=str(name),
    )
    return ManifestObject(ref=ref, body=body)


def record_from_document(doc: dict[str, Any]) -> ReleaseRecord:
    """Build a ReleaseRecord from a decoded release document."""
    try:
        name = str(doc["name"])
        namespace = str(doc.get("namespace") or "")
        version = int(doc.get("version") or 0)
    except (KeyError, TypeError, ValueError) as exc:
        raise DecodeError(f"release document is missing identity fields: {exc}") from exc

    info = _section(doc, "info", name)
    chart_meta = _section(_section(doc, "chart", name), "metadata", name)
    chart = ""
    if chart_meta.get("name"):
        chart = f"{chart_meta['name']}-{chart_meta.get('version', '')}".rstrip("-")

    manifest = doc.get("manifest") or ""
    if not isinstance(manifest, str):
        raise DecodeError(f"release {name} manifest is not a string")

    return ReleaseRecord(
        name=name,
        namespace=namespace,
        version=version,
        status=str(info.get("status") or ""),
        chart=chart,
        manifest=parse_manifest(manifest, namespace),
    )


def _section(doc: dict[str, Any], key: str, release: str) -> dict[str, Any]:
    value = doc.get(key) or {}
    if not isinstance(value, dict):
        raise DecodeError(f"release {release} field {key!r} is not a mapping: {type(value).__name__}")
    return value
