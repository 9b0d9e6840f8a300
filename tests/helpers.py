"""Test doubles and factories shared by unit and integration tests.

FakeClusterReader is an in-memory ClusterReader: objects, HelmReleases and
Helm storage entries are registered up front, pagination honours ``limit``,
and individual objects can be marked as access-denied.
"""

from __future__ import annotations

import base64
import copy
import gzip
import json
from typing import Any

import yaml

from helmdrift.cluster.base import ClusterReader, ListPage
from helmdrift.errors import AccessError, NotFoundError, PermissionDeniedError
from helmdrift.models.release import ManifestObject, ObjectRef, ReleaseRecord


class FakeClusterReader(ClusterReader):
    def __init__(self) -> None:
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.custom: dict[tuple[str, str, str, str, str], dict[str, Any]] = {}
        self.storage: dict[tuple[str, str], list[dict[str, Any]]] = {}
        self.namespaces: list[str] = []
        self.denied: set[tuple[str, str, str]] = set()
        self.denied_namespaces: set[str] = set()
        self.failing_namespaces: set[str] = set()
        self.get_calls: list[tuple[str, str, str]] = []
        self.list_calls: list[tuple[str, str]] = []

    # -- registration ---------------------------------------------------

    def add_object(self, body: dict[str, Any], namespace: str | None = None) -> None:
        ns = namespace if namespace is not None else body.get("metadata", {}).get("namespace", "")
        self.objects[(body["kind"], ns, body["metadata"]["name"])] = copy.deepcopy(body)

    def add_helmrelease(self, body: dict[str, Any], version: str = "v2") -> None:
        meta = body["metadata"]
        key = ("helm.toolkit.fluxcd.io", version, "helmreleases", meta["namespace"], meta["name"])
        self.custom[key] = copy.deepcopy(body)

    def add_storage(self, entry: dict[str, Any], kind: str = "Secret") -> None:
        ns = entry["metadata"]["namespace"]
        self.storage.setdefault((kind, ns), []).append(entry)
        if ns not in self.namespaces:
            self.namespaces.append(ns)

    # -- ClusterReader --------------------------------------------------

    async def get_object(self, api_version: str, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        key = (kind, namespace, name)
        self.get_calls.append(key)
        if key in self.denied:
            raise AccessError(f"{kind} {namespace}/{name}: 403 Forbidden")
        obj = self.objects.get(key)
        return copy.deepcopy(obj) if obj is not None else None

    async def get_custom_object(
        self, group: str, version: str, plural: str, namespace: str, name: str
    ) -> dict[str, Any]:
        try:
            return copy.deepcopy(self.custom[(group, version, plural, namespace, name)])
        except KeyError:
            raise NotFoundError(f"{plural}.{group}/{version} {namespace}/{name} not found") from None

    async def list_namespaces(self, limit: int, continue_token: str = "") -> ListPage:
        items = [{"metadata": {"name": ns}} for ns in self.namespaces]
        return _page(items, limit, continue_token)

    async def list_storage_objects(
        self,
        kind: str,
        namespace: str,
        label_selector: str,
        limit: int,
        continue_token: str = "",
    ) -> ListPage:
        self.list_calls.append((kind, namespace))
        if namespace in self.denied_namespaces:
            raise PermissionDeniedError(f"failed to list {kind}s in namespace {namespace}: 403 Forbidden")
        if namespace in self.failing_namespaces:
            raise AccessError(f"failed to list {kind}s in namespace {namespace}: 500 Internal Server Error")
        wanted = dict(part.split("=", 1) for part in label_selector.split(",") if part)
        items = [
            e
            for e in self.storage.get((kind, namespace), [])
            if all(e["metadata"].get("labels", {}).get(k) == v for k, v in wanted.items())
        ]
        return _page(items, limit, continue_token)


def _page(items: list[dict[str, Any]], limit: int, continue_token: str) -> ListPage:
    start = int(continue_token or 0)
    end = start + limit
    return ListPage(
        items=copy.deepcopy(items[start:end]),
        continue_token=str(end) if end < len(items) else "",
    )


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def make_deployment(
    name: str = "descheduler",
    namespace: str | None = "descheduler",
    image: str = "registry.k8s.io/descheduler/descheduler:v0.30.0",
    requests: dict[str, str] | None = None,
    replicas: int = 1,
    annotations: dict[str, str] | None = None,
) -> dict[str, Any]:
    metadata: dict[str, Any] = {"name": name, "labels": {"app.kubernetes.io/name": name}}
    if namespace is not None:
        metadata["namespace"] = namespace
    if annotations:
        metadata["annotations"] = annotations
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": metadata,
        "spec": {
            "replicas": replicas,
            "template": {
                "spec": {
                    "containers": [
                        {
                            "name": name,
                            "image": image,
                            "resources": {"requests": requests or {"cpu": "500m", "memory": "256Mi"}},
                        }
                    ]
                }
            },
        },
    }


def make_service(name: str = "descheduler", namespace: str | None = "descheduler") -> dict[str, Any]:
    metadata: dict[str, Any] = {"name": name}
    if namespace is not None:
        metadata["namespace"] = namespace
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": metadata,
        "spec": {"ports": [{"name": "http", "port": 10258}]},
    }


def with_server_fields(body: dict[str, Any]) -> dict[str, Any]:
    """Return *body* decorated the way the API server returns it."""
    live = copy.deepcopy(body)
    live["metadata"].update({"uid": "8d3e", "resourceVersion": "4711", "generation": 3})
    live["status"] = {"observedGeneration": 3}
    return live


def make_manifest_object(body: dict[str, Any], default_namespace: str = "descheduler") -> ManifestObject:
    metadata = body["metadata"]
    return ManifestObject(
        ref=ObjectRef(
            api_version=body["apiVersion"],
            kind=body["kind"],
            namespace=metadata.get("namespace") or default_namespace,
            name=metadata["name"],
        ),
        body=body,
    )


def make_record(*bodies: dict[str, Any], name: str = "descheduler", namespace: str = "descheduler") -> ReleaseRecord:
    return ReleaseRecord(
        name=name,
        namespace=namespace,
        version=1,
        status="deployed",
        manifest=tuple(make_manifest_object(b, namespace) for b in bodies),
    )


def encode_release(
    name: str,
    namespace: str,
    version: int,
    bodies: list[dict[str, Any]],
    status: str = "deployed",
    compress: bool = True,
) -> str:
    """Encode a release the way Helm writes it into storage."""
    doc = {
        "name": name,
        "namespace": namespace,
        "version": version,
        "info": {"status": status},
        "chart": {"metadata": {"name": name, "version": "0.30.1"}},
        "manifest": "---\n" + yaml.safe_dump_all(bodies, sort_keys=False),
    }
    raw = json.dumps(doc).encode()
    if compress:
        raw = gzip.compress(raw)
    return base64.b64encode(raw).decode()


def release_secret(
    name: str,
    namespace: str,
    version: int,
    bodies: list[dict[str, Any]],
    status: str = "deployed",
) -> dict[str, Any]:
    payload = encode_release(name, namespace, version, bodies, status=status)
    return {
        "metadata": {
            "name": f"sh.helm.release.v1.{name}.v{version}",
            "namespace": namespace,
            "labels": {"owner": "helm", "name": name, "version": str(version), "status": status},
        },
        "type": "helm.sh/release.v1",
        "data": {"release": base64.b64encode(payload.encode()).decode()},
    }


def release_configmap(name: str, namespace: str, version: int, bodies: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "metadata": {
            "name": f"sh.helm.release.v1.{name}.v{version}",
            "namespace": namespace,
            "labels": {"owner": "helm", "name": name, "version": str(version), "status": "deployed"},
        },
        "data": {"release": encode_release(name, namespace, version, bodies)},
    }


def make_helmrelease(
    name: str = "descheduler",
    namespace: str = "descheduler",
    release_name: str | None = None,
    storage_namespace: str | None = None,
    ignore: list[dict[str, Any]] | None = None,
    mode: str = "enabled",
) -> dict[str, Any]:
    spec: dict[str, Any] = {"interval": "10m", "chart": {"spec": {"chart": name}}}
    if release_name:
        spec["releaseName"] = release_name
    if storage_namespace:
        spec["storageNamespace"] = storage_namespace
    spec["driftDetection"] = {"mode": mode}
    if ignore is not None:
        spec["driftDetection"]["ignore"] = ignore
    return {
        "apiVersion": "helm.toolkit.fluxcd.io/v2",
        "kind": "HelmRelease",
        "metadata": {"name": name, "namespace": namespace},
        "spec": spec,
    }
