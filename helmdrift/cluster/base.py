"""Read-only cluster access consumed by the drift pipeline."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ListPage:
    """One page of a paginated list call.

    ``continue_token`` is empty on the last page.
    """

    items: list[dict[str, Any]] = field(default_factory=list)
    continue_token: str = ""


class ClusterReader(ABC):
    """Abstract read-only view of a Kubernetes cluster.

    Objects are returned as plain JSON-like dicts using API field names
    (``apiVersion``, ``metadata``...). Implementations raise
    ``AccessError`` for permission or connectivity failures and never
    mutate cluster state.
    """

    @abstractmethod
    async def get_object(self, api_version: str, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        """Return the live object, or ``None`` when it does not exist.

        ``namespace`` is ignored for cluster-scoped kinds. A kind the
        cluster does not serve counts as not existing.
        """

    @abstractmethod
    async def get_custom_object(
        self, group: str, version: str, plural: str, namespace: str, name: str
    ) -> dict[str, Any]:
        """Return a namespaced custom resource.

        Raises:
            NotFoundError: the object does not exist.
        """

    @abstractmethod
    async def list_namespaces(self, limit: int, continue_token: str = "") -> ListPage:
        """Return one page of Namespace objects."""

    @abstractmethod
    async def list_storage_objects(
        self,
        kind: str,
        namespace: str,
        label_selector: str,
        limit: int,
        continue_token: str = "",
    ) -> ListPage:
        """Return one page of Secrets or ConfigMaps (``kind``) in *namespace*."""
