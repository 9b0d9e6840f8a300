"""Helm release storage access.

Submodules:
    codec   -- Storage entry and manifest decoding.
    locator -- ReleaseLocator: storage discovery and last-release lookup.
"""

from helmdrift.release.locator import ReleaseLocator, storage_prefix

__all__ = ["ReleaseLocator", "storage_prefix"]
