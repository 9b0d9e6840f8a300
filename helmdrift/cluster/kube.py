"""kubernetes-asyncio backed ClusterReader."""

from __future__ import annotations

from types import TracebackType
from typing import Any

import aiohttp
import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]
from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]
from kubernetes_asyncio.client.exceptions import ApiException  # type: ignore[import-untyped]
from kubernetes_asyncio.dynamic import DynamicClient  # type: ignore[import-untyped]
from kubernetes_asyncio.dynamic.exceptions import (  # type: ignore[import-untyped]
    DynamicApiError,
    ResourceNotFoundError,
)

from helmdrift.cluster.base import ClusterReader, ListPage
from helmdrift.errors import AccessError, NotFoundError, PermissionDeniedError
from helmdrift.observability.logging import get_logger

_log = get_logger("cluster.kube")

# aiohttp.ClientError covers dropped connections that are not OSErrors.
_TRANSPORT_ERRORS = (aiohttp.ClientError, OSError, TimeoutError)

_DENIED_STATUSES = frozenset({401, 403})


class KubeClusterReader(ClusterReader):
    """ClusterReader talking to the Kubernetes API server.

    Arbitrary manifest kinds are resolved through the dynamic client's
    discovery cache; Namespaces, Secrets, ConfigMaps and HelmReleases go
    through the typed APIs.
    """

    def __init__(self, api_client: Any, request_timeout: int = 30) -> None:
        self._api = api_client
        self._timeout = request_timeout
        self._core = k8s_client.CoreV1Api(api_client)
        self._custom = k8s_client.CustomObjectsApi(api_client)
        self._dynamic: Any | None = None

    @classmethod
    async def create(cls, context: str = "", request_timeout: int = 30) -> KubeClusterReader:
        """Build a reader from in-cluster config or kubeconfig.

        An explicit *context* always selects kubeconfig.
        """
        configuration = k8s_client.Configuration()
        try:
            if context:
                await k8s_config.load_kube_config(context=context, client_configuration=configuration)
                _log.debug("k8s client configured from kubeconfig", context=context)
            else:
                try:
                    k8s_config.load_incluster_config(client_configuration=configuration)
                    _log.debug("k8s client configured from in-cluster service account")
                except k8s_config.ConfigException:
                    await k8s_config.load_kube_config(client_configuration=configuration)
                    _log.debug("k8s client configured from kubeconfig")
        except (k8s_config.ConfigException, OSError) as exc:
            raise AccessError(f"failed to load kubernetes configuration: {exc}") from exc
        return cls(k8s_client.ApiClient(configuration=configuration), request_timeout=request_timeout)

    async def close(self) -> None:
        await self._api.close()

    async def __aenter__(self) -> KubeClusterReader:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # ClusterReader
    # ------------------------------------------------------------------

    async def get_object(self, api_version: str, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        what = f"{kind} {namespace}/{name}" if namespace else f"{kind} {name}"
        try:
            dynamic = await self._dynamic_client()
            resource = await dynamic.resources.get(api_version=api_version, kind=kind)
            obj = await dynamic.get(
                resource,
                name=name,
                namespace=namespace if resource.namespaced else None,
                _request_timeout=self._timeout,
            )
        except ResourceNotFoundError:
            _log.debug("kind not served by cluster", api_version=api_version, kind=kind)
            return None
        except DynamicApiError as exc:
            if exc.status == 404:
                return None
            raise _access_error(f"failed to get {what}", exc) from exc
        except (ApiException, *_TRANSPORT_ERRORS) as exc:
            raise _access_error(f"failed to get {what}", exc) from exc
        return obj.to_dict()  # type: ignore[no-any-return]

    async def get_custom_object(
        self, group: str, version: str, plural: str, namespace: str, name: str
    ) -> dict[str, Any]:
        what = f"{plural}.{group}/{version} {namespace}/{name}"
        try:
            obj = await self._custom.get_namespaced_custom_object(
                group, version, namespace, plural, name, _request_timeout=self._timeout
            )
        except ApiException as exc:
            if exc.status == 404:
                raise NotFoundError(f"{what} not found") from exc
            raise _access_error(f"failed to get {what}", exc) from exc
        except _TRANSPORT_ERRORS as exc:
            raise _access_error(f"failed to get {what}", exc) from exc
        return obj  # type: ignore[no-any-return]

    async def list_namespaces(self, limit: int, continue_token: str = "") -> ListPage:
        kwargs: dict[str, Any] = {"limit": limit, "_request_timeout": self._timeout}
        if continue_token:
            kwargs["_continue"] = continue_token
        try:
            result = await self._core.list_namespace(**kwargs)
        except (ApiException, *_TRANSPORT_ERRORS) as exc:
            raise _access_error("failed to list namespaces", exc) from exc
        return self._page(result)

    async def list_storage_objects(
        self,
        kind: str,
        namespace: str,
        label_selector: str,
        limit: int,
        continue_token: str = "",
    ) -> ListPage:
        kwargs: dict[str, Any] = {
            "label_selector": label_selector,
            "limit": limit,
            "_request_timeout": self._timeout,
        }
        if continue_token:
            kwargs["_continue"] = continue_token
        try:
            if kind == "Secret":
                result = await self._core.list_namespaced_secret(namespace, **kwargs)
            elif kind == "ConfigMap":
                result = await self._core.list_namespaced_config_map(namespace, **kwargs)
            else:
                raise ValueError(f"unsupported storage kind: {kind}")
        except ApiException as exc:
            if exc.status == 404:
                return ListPage()
            raise _access_error(f"failed to list {kind}s in namespace {namespace}", exc) from exc
        except _TRANSPORT_ERRORS as exc:
            raise _access_error(f"failed to list {kind}s in namespace {namespace}", exc) from exc
        return self._page(result)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _dynamic_client(self) -> Any:
        if self._dynamic is None:
            self._dynamic = await DynamicClient(self._api)
        return self._dynamic

    def _page(self, result: Any) -> ListPage:
        raw = self._api.sanitize_for_serialization(result)
        metadata = raw.get("metadata") or {}
        return ListPage(
            items=list(raw.get("items") or []),
            continue_token=str(metadata.get("continue") or ""),
        )


def _reason(exc: Exception) -> str:
    status = getattr(exc, "status", None)
    reason = getattr(exc, "reason", None)
    if status is not None:
        return f"{status} {reason or ''}".strip()
    return str(exc)


def _access_error(context: str, exc: Exception) -> AccessError:
    message = f"{context}: {_reason(exc)}"
    if getattr(exc, "status", None) in _DENIED_STATUSES:
        return PermissionDeniedError(message)
    return AccessError(message)
