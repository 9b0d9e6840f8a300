"""Capabilities the drift detector depends on.

HelmClient      -- ABC: read the HelmRelease, load the last release,
                   diff it against the cluster.
ClusterHelmClient -- Implementation composing the Declared-State Reader,
                     Release Locator and Diff Engine over a ClusterReader.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from helmdrift.cluster.base import ClusterReader
from helmdrift.declared import DeclaredStateReader
from helmdrift.diff.engine import DiffEngine
from helmdrift.models.config import HelmDriftConfig
from helmdrift.models.declared import DeclaredResource, IgnoreRule
from helmdrift.models.diff import DiffSet
from helmdrift.models.release import ReleaseRecord
from helmdrift.release.locator import ReleaseLocator


class HelmClient(ABC):
    """Abstract capability set used by DriftDetector."""

    @abstractmethod
    async def get_helm_release(self, name: str, namespace: str) -> DeclaredResource:
        """Fetch the HelmRelease *namespace*/*name*."""

    @abstractmethod
    async def get_release(self, name: str, storage_namespace: str | None) -> ReleaseRecord:
        """Load the last release; ``None`` discovers the storage namespace."""

    @abstractmethod
    async def diff_release(self, release: ReleaseRecord, ignore_rules: Sequence[IgnoreRule]) -> DiffSet:
        """Compare the release manifest with the live cluster."""


class ClusterHelmClient(HelmClient):
    """HelmClient reading everything through one ClusterReader."""

    def __init__(self, cluster: ClusterReader, config: HelmDriftConfig | None = None) -> None:
        config = config or HelmDriftConfig()
        self._declared = DeclaredStateReader(cluster, version=config.kube.helmrelease_version)
        self._locator = ReleaseLocator(cluster, driver=config.storage.driver, page_size=config.storage.page_size)
        self._engine = DiffEngine(cluster, max_concurrency=config.diff.max_concurrency)

    async def get_helm_release(self, name: str, namespace: str) -> DeclaredResource:
        return await self._declared.read(name, namespace)

    async def get_release(self, name: str, storage_namespace: str | None) -> ReleaseRecord:
        return await self._locator.locate(name, storage_namespace)

    async def diff_release(self, release: ReleaseRecord, ignore_rules: Sequence[IgnoreRule]) -> DiffSet:
        return await self._engine.diff(release, ignore_rules)
