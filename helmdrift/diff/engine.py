"""Diff Engine: compares a release manifest against live cluster objects.

The comparison is ownership-aware: only fields the manifest declares are
examined. Fields that exist only on the live object (defaults, fields set
by other controllers, status) are not drift. For each declared field:

    live value differs      -> replace, carrying the live value
    live value missing      -> add
    surplus live list items -> remove, carrying the live item

Declared ``null`` values express no opinion and are skipped.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any

from helmdrift.cluster.base import ClusterReader
from helmdrift.diff import pointer
from helmdrift.diff.selector import IgnoreMatcher
from helmdrift.errors import DriftError
from helmdrift.models.declared import IgnoreRule
from helmdrift.models.diff import DiffEntry, DiffSet, DiffType, PatchOp, PatchOperation
from helmdrift.models.release import ManifestObject, ReleaseRecord
from helmdrift.observability.logging import get_logger

_log = get_logger("diff.engine")

DRIFT_DETECTION_KEY = "helm.toolkit.fluxcd.io/driftDetection"
DRIFT_DETECTION_DISABLED = "disabled"

# Top-level fields owned by the API server, never compared.
_SERVER_OWNED = frozenset({"status"})


def compare(declared: Any, live: Any, path: str = "") -> list[PatchOperation]:
    """Return the patch operations that turn *live* back into *declared*.

    Operations appear in declared document order.
    """
    ops: list[PatchOperation] = []
    _compare(declared, live, path, ops)
    return ops


def _compare(declared: Any, live: Any, path: str, ops: list[PatchOperation]) -> None:
    if isinstance(declared, dict) and isinstance(live, dict):
        for key, value in declared.items():
            if value is None:
                continue
            child = pointer.join(path, key)
            if live.get(key) is None:
                ops.append(PatchOperation(path=child, op=PatchOp.ADD))
            else:
                _compare(value, live[key], child, ops)
        return

    if isinstance(declared, list) and isinstance(live, list):
        for index, value in enumerate(declared):
            child = pointer.join(path, index)
            if index >= len(live):
                ops.append(PatchOperation(path=child, op=PatchOp.ADD))
            elif value is not None:
                _compare(value, live[index], child, ops)
        # Highest index first so the operations apply in sequence.
        for index in range(len(live) - 1, len(declared) - 1, -1):
            ops.append(PatchOperation(path=pointer.join(path, index), op=PatchOp.REMOVE, value=live[index]))
        return

    if not _scalar_equal(declared, live):
        ops.append(PatchOperation(path=path, op=PatchOp.REPLACE, value=live))


def _scalar_equal(declared: Any, live: Any) -> bool:
    # bool is an int subclass; True must not equal 1.
    if isinstance(declared, bool) or isinstance(live, bool):
        return type(declared) is type(live) and declared == live
    if isinstance(declared, int | float):
        if isinstance(live, int | float):
            return declared == live
        # Quantities such as `cpu: 1` are stored by the API server as "1".
        if isinstance(live, str):
            return live == _canonical_number(declared)
        return False
    return type(declared) is type(live) and declared == live


def _canonical_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def drift_detection_disabled(obj: ManifestObject) -> bool:
    """True if the object opts out via the driftDetection annotation or label."""
    return DRIFT_DETECTION_DISABLED in (
        obj.annotations.get(DRIFT_DETECTION_KEY),
        obj.labels.get(DRIFT_DETECTION_KEY),
    )


def diff_object(obj: ManifestObject, live: dict[str, Any] | None, matcher: IgnoreMatcher) -> DiffEntry | None:
    """Compare one manifest object with its live counterpart.

    Returns ``None`` when the object is unchanged or fully ignored.
    """
    if matcher.ignores_object(obj):
        return None
    if live is None:
        return DiffEntry(ref=obj.ref, type=DiffType.CREATE)

    declared = {k: v for k, v in obj.body.items() if k not in _SERVER_OWNED}
    ops = [op for op in compare(declared, live) if not matcher.ignores_path(obj, op.path)]
    if not ops:
        return None
    return DiffEntry(ref=obj.ref, type=DiffType.UPDATE, patch=tuple(ops))


class DiffEngine:
    """Computes the DiffSet of a release against the live cluster.

    Live objects are fetched concurrently, at most ``max_concurrency`` at a
    time. The first fetch failure cancels the remaining fetches and
    propagates.
    """

    def __init__(self, cluster: ClusterReader, max_concurrency: int = 8) -> None:
        self._cluster = cluster
        self._max_concurrency = max(1, max_concurrency)

    async def diff(self, record: ReleaseRecord, ignore_rules: Iterable[IgnoreRule] = ()) -> DiffSet:
        matcher = IgnoreMatcher(ignore_rules)
        candidates = [
            obj for obj in record.manifest if not drift_detection_disabled(obj) and not matcher.ignores_object(obj)
        ]
        skipped = len(record.manifest) - len(candidates)

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _fetch(obj: ManifestObject) -> dict[str, Any] | None:
            ref = obj.ref
            async with semaphore:
                try:
                    return await self._cluster.get_object(ref.api_version, ref.kind, ref.namespace, ref.name)
                except DriftError as exc:
                    raise exc.wrap(f"failed to fetch live state of {ref}") from exc

        tasks = [asyncio.create_task(_fetch(obj)) for obj in candidates]
        try:
            lives = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        entries = []
        for obj, live in zip(candidates, lives, strict=True):
            entry = diff_object(obj, live, matcher)
            if entry is not None:
                entries.append(entry)

        diff_set = DiffSet(entries=entries)
        _log.info(
            "diff computed",
            release=record.name,
            objects=len(record.manifest),
            skipped=skipped,
            created=len(diff_set.created()),
            updated=len(diff_set.updated()),
        )
        return diff_set
