"""Cluster access layer.

Submodules:
    base -- ClusterReader ABC and the ListPage pagination container.
    kube -- kubernetes-asyncio backed implementation.
"""

from helmdrift.cluster.base import ClusterReader, ListPage

__all__ = ["ClusterReader", "ListPage"]
