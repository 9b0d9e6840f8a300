"""Core data structures for helmdrift."""

from helmdrift.models.config import HelmDriftConfig
from helmdrift.models.declared import (
    DeclaredResource,
    DriftDetectionMode,
    IgnoreRule,
    TargetSelector,
)
from helmdrift.models.diff import (
    DiffEntry,
    DiffSet,
    DiffType,
    PatchOp,
    PatchOperation,
)
from helmdrift.models.release import ManifestObject, ObjectRef, ReleaseRecord

__all__ = [
    "DeclaredResource",
    "DiffEntry",
    "DiffSet",
    "DiffType",
    "DriftDetectionMode",
    "HelmDriftConfig",
    "IgnoreRule",
    "ManifestObject",
    "ObjectRef",
    "PatchOp",
    "PatchOperation",
    "ReleaseRecord",
    "TargetSelector",
]
