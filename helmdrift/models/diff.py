"""Drift computation results."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from helmdrift.models.release import ObjectRef


class DiffType(StrEnum):
    """Classification of one object's comparison result.

    ``CREATE`` marks an object that is declared in the manifest but absent
    from the cluster: restoring the declared state would create it.
    """

    CREATE = "create"
    UPDATE = "update"


class PatchOp(StrEnum):
    """Operation that would move the live value back to the declared one."""

    ADD = "add"
    REPLACE = "replace"
    REMOVE = "remove"


@dataclass(frozen=True)
class PatchOperation:
    """A single field-level difference.

    ``value`` is the live value that a reconciliation would overwrite or
    remove; it is ``None`` for ``add`` operations.
    """

    path: str
    op: PatchOp
    value: Any = None


@dataclass(frozen=True)
class DiffEntry:
    """Comparison result for one manifest object."""

    ref: ObjectRef
    type: DiffType
    patch: tuple[PatchOperation, ...] = ()

    @property
    def kind(self) -> str:
        return self.ref.kind

    @property
    def name(self) -> str:
        return self.ref.name


@dataclass
class DiffSet:
    """Ordered diff entries, in manifest object order."""

    entries: list[DiffEntry] = field(default_factory=list)

    def has_changes(self) -> bool:
        return bool(self.entries)

    def created(self) -> list[DiffEntry]:
        return [e for e in self.entries if e.type == DiffType.CREATE]

    def updated(self) -> list[DiffEntry]:
        return [e for e in self.entries if e.type == DiffType.UPDATE]

    def __iter__(self) -> Iterator[DiffEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)
