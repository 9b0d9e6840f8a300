"""Release Locator: finds and loads the last stored revision of a Helm release."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from helmdrift.cluster.base import ClusterReader
from helmdrift.errors import DecodeError, DriftError, NotFoundError, PermissionDeniedError
from helmdrift.models.release import ReleaseRecord
from helmdrift.observability.logging import get_logger
from helmdrift.release.codec import decode_release, record_from_document, storage_payload

_log = get_logger("release.locator")

STORAGE_PREFIX = "sh.helm.release.v1"

_STORAGE_KINDS = {"secret": "Secret", "configmap": "ConfigMap"}


def storage_prefix(release_name: str) -> str:
    """Name prefix shared by every storage entry of *release_name*."""
    return f"{STORAGE_PREFIX}.{release_name}.v"


class ReleaseLocator:
    """Resolves a release name to its last stored ReleaseRecord.

    The storage driver is passed in explicitly (``secret`` or
    ``configmap``); nothing is read from the process environment here.
    """

    def __init__(self, cluster: ClusterReader, driver: str = "secret", page_size: int = 250) -> None:
        if driver not in _STORAGE_KINDS:
            raise ValueError(f"Unsupported Helm storage driver: {driver!r}")
        self._cluster = cluster
        self._kind = _STORAGE_KINDS[driver]
        self._page_size = page_size

    async def locate(self, release_name: str, namespace: str | None = None) -> ReleaseRecord:
        """Return the last release stored in *namespace*.

        When *namespace* is ``None`` the storage namespace is discovered
        first by scanning every accessible namespace.
        """
        if namespace is None:
            namespace = await self.discover_namespace(release_name)
        return await self.last_release(release_name, namespace)

    async def discover_namespace(self, release_name: str) -> str:
        """Find the namespace holding storage entries for *release_name*.

        Namespaces are scanned in lexicographic order and the first one with a
        matching entry wins. Namespaces whose storage the caller may not list
        are skipped.
        """
        namespaces: list[str] = []
        async for ns in self._paginate_namespaces():
            name = (ns.get("metadata") or {}).get("name")
            if name:
                namespaces.append(str(name))
        namespaces.sort()

        prefix = storage_prefix(release_name)
        for namespace in namespaces:
            try:
                found = await self._holds_release(namespace, prefix)
            except PermissionDeniedError as exc:
                _log.debug("skipping namespace without storage access", namespace=namespace, error=str(exc))
                continue
            if found:
                _log.info("release storage discovered", release=release_name, namespace=namespace)
                return namespace

        raise NotFoundError(f"release {release_name!r} not found in any of {len(namespaces)} namespaces")

    async def last_release(self, release_name: str, namespace: str) -> ReleaseRecord:
        """Load the highest stored revision of *release_name* from *namespace*."""
        prefix = storage_prefix(release_name)
        entries = [
            entry
            async for entry in self._paginate_storage(namespace, f"owner=helm,name={release_name}")
            if _entry_name(entry).startswith(prefix)
        ]
        if not entries:
            raise NotFoundError(f"release {release_name!r} not found in namespace {namespace!r}")

        latest = max(entries, key=_entry_version)
        entry_name = _entry_name(latest)
        try:
            record = record_from_document(decode_release(storage_payload(latest, self._kind)))
        except DecodeError as exc:
            raise exc.wrap(f"failed to decode {self._kind} {namespace}/{entry_name}") from exc

        _log.info(
            "release loaded",
            release=record.name,
            version=record.version,
            status=record.status,
            objects=len(record.manifest),
            storage=f"{namespace}/{entry_name}",
        )
        return record

    async def _holds_release(self, namespace: str, prefix: str) -> bool:
        async for entry in self._paginate_storage(namespace, "owner=helm"):
            if _entry_name(entry).startswith(prefix):
                return True
        return False

    async def _paginate_namespaces(self) -> AsyncIterator[dict[str, Any]]:
        token = ""
        while True:
            page = await self._cluster.list_namespaces(self._page_size, token)
            for item in page.items:
                yield item
            if not page.continue_token:
                return
            token = page.continue_token

    async def _paginate_storage(self, namespace: str, selector: str) -> AsyncIterator[dict[str, Any]]:
        token = ""
        while True:
            try:
                page = await self._cluster.list_storage_objects(self._kind, namespace, selector, self._page_size, token)
            except DriftError as exc:
                raise exc.wrap(f"failed to list release storage in namespace {namespace}") from exc
            for item in page.items:
                yield item
            if not page.continue_token:
                return
            token = page.continue_token


def _entry_name(entry: dict[str, Any]) -> str:
    return str((entry.get("metadata") or {}).get("name") or "")


def _entry_version(entry: dict[str, Any]) -> int:
    """Revision number from the ``version`` label, else the name suffix."""
    labels = (entry.get("metadata") or {}).get("labels") or {}
    for candidate in (labels.get("version"), _entry_name(entry).rsplit(".v", 1)[-1]):
        try:
            return int(candidate)
        except (TypeError, ValueError):
            continue
    return 0
