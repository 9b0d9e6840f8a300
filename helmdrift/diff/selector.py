"""Ignore-rule target matching.

Targets follow the Flux/kustomize selector model: exact group, version and
kind; anchored regular expressions for name and namespace; Kubernetes label
selector syntax for labels and annotations.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from helmdrift.diff import pointer
from helmdrift.models.declared import IgnoreRule, TargetSelector
from helmdrift.models.release import ManifestObject

_RE_SET_REQUIREMENT = re.compile(r"^\s*([^\s!=()]+)\s+(in|notin)\s+\(([^)]*)\)\s*$")


@dataclass(frozen=True)
class _Requirement:
    key: str
    operator: str  # one of "=", "!=", "exists", "!exists", "in", "notin"
    values: frozenset[str] = frozenset()

    def matches(self, values: dict[str, str]) -> bool:
        present = self.key in values
        if self.operator == "exists":
            return present
        if self.operator == "!exists":
            return not present
        if self.operator in ("=", "in"):
            return present and values[self.key] in self.values
        # "!=" and "notin" match objects without the key
        return not present or values[self.key] not in self.values


def _split_requirements(expr: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current = ""
    for ch in expr:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append(current)
            current = ""
            continue
        current += ch
    parts.append(current)
    return [p.strip() for p in parts if p.strip()]


def parse_selector(expr: str) -> tuple[_Requirement, ...]:
    """Parse a label selector expression.

    Raises:
        ValueError: the expression is not a valid selector.
    """
    requirements: list[_Requirement] = []
    for part in _split_requirements(expr):
        set_match = _RE_SET_REQUIREMENT.match(part)
        if set_match:
            key, op, raw_values = set_match.groups()
            values = frozenset(v.strip() for v in raw_values.split(",") if v.strip())
            requirements.append(_Requirement(key, op, values))
        elif "!=" in part:
            key, value = part.split("!=", 1)
            requirements.append(_Requirement(key.strip(), "!=", frozenset({value.strip()})))
        elif "==" in part:
            key, value = part.split("==", 1)
            requirements.append(_Requirement(key.strip(), "=", frozenset({value.strip()})))
        elif "=" in part:
            key, value = part.split("=", 1)
            requirements.append(_Requirement(key.strip(), "=", frozenset({value.strip()})))
        elif part.startswith("!"):
            requirements.append(_Requirement(part[1:].strip(), "!exists"))
        else:
            requirements.append(_Requirement(part, "exists"))
    for req in requirements:
        if not req.key or any(c in req.key for c in " ()"):
            raise ValueError(f"invalid selector requirement in {expr!r}")
    return tuple(requirements)


class _CompiledTarget:
    def __init__(self, target: TargetSelector) -> None:
        self.group = target.group
        self.version = target.version
        self.kind = target.kind
        self.name = re.compile(f"^(?:{target.name})$") if target.name else None
        self.namespace = re.compile(f"^(?:{target.namespace})$") if target.namespace else None
        self.labels = parse_selector(target.label_selector)
        self.annotations = parse_selector(target.annotation_selector)

    def matches(self, obj: ManifestObject) -> bool:
        ref = obj.ref
        if self.group and self.group != ref.group:
            return False
        if self.version and self.version != ref.version:
            return False
        if self.kind and self.kind != ref.kind:
            return False
        if self.name is not None and not self.name.match(ref.name):
            return False
        if self.namespace is not None and not self.namespace.match(ref.namespace):
            return False
        if self.labels and not all(r.matches(obj.labels) for r in self.labels):
            return False
        if self.annotations and not all(r.matches(obj.annotations) for r in self.annotations):
            return False
        return True


class IgnoreMatcher:
    """Evaluates a set of IgnoreRules against manifest objects and paths.

    Raises ValueError on construction if a rule has an invalid regular
    expression, selector or path.
    """

    def __init__(self, rules: Iterable[IgnoreRule] = ()) -> None:
        self._rules: list[tuple[_CompiledTarget | None, tuple[str, ...]]] = []
        for rule in rules:
            for path in rule.paths:
                pointer.split(path)
            try:
                target = _CompiledTarget(rule.target) if rule.target is not None else None
            except re.error as exc:
                raise ValueError(f"invalid ignore rule target: {exc}") from exc
            self._rules.append((target, rule.paths))

    def __bool__(self) -> bool:
        return bool(self._rules)

    def _applicable(self, obj: ManifestObject) -> list[tuple[str, ...]]:
        return [paths for target, paths in self._rules if target is None or target.matches(obj)]

    def ignores_object(self, obj: ManifestObject) -> bool:
        """True if a matching rule with no paths excludes the whole object."""
        return any(not paths for paths in self._applicable(obj))

    def ignores_path(self, obj: ManifestObject, path: str) -> bool:
        for paths in self._applicable(obj):
            if not paths:
                return True
            if any(pointer.is_within(path, p) for p in paths):
                return True
        return False
