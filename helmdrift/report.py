"""Report Renderer: turns a DiffSet into the human-readable drift report.

Example::

    Detected drift in HelmRelease apps/podinfo:

    1 - Resource: Deployment/podinfo
        Reason: changed
        1 - Path: /spec/replicas
            Recovery Operation: replace
            Original Value: 3

    2 - Resource: Service/podinfo
        Reason: removed
"""

from __future__ import annotations

import math
from typing import Any

from helmdrift.models.diff import DiffSet, DiffType

INDENT = "    "


def format_value(value: Any) -> str:
    """Render a JSON-like value in compact ``%v`` notation.

    Maps become ``map[k:v ...]`` with sorted keys and lists ``[a b]``.
    """
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "map[" + " ".join(f"{format_value(k)}:{format_value(v)}" for k, v in items) + "]"
    if isinstance(value, list | tuple):
        return "[" + " ".join(format_value(v) for v in value) + "]"
    return str(value)


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def render_lines(diff_set: DiffSet, release_name: str, namespace: str) -> list[str]:
    """Return the report as a list of lines, without trailing newlines."""
    if not diff_set.has_changes():
        return [f"No drift detected in {namespace}/{release_name}"]

    lines = [f"Detected drift in HelmRelease {namespace}/{release_name}:"]
    for index, entry in enumerate(diff_set, start=1):
        lines.append("")
        lines.append(f"{index} - Resource: {entry.kind}/{entry.name}")
        if entry.type == DiffType.CREATE:
            lines.append(f"{INDENT}Reason: removed")
            continue
        lines.append(f"{INDENT}Reason: changed")
        for j, op in enumerate(entry.patch, start=1):
            lines.append(f"{INDENT}{j} - Path: {op.path}")
            lines.append(f"{INDENT}{INDENT}Recovery Operation: {op.op}")
            if op.value is not None:
                lines.append(f"{INDENT}{INDENT}Original Value: {format_value(op.value)}")
    return lines


def render(diff_set: DiffSet, release_name: str, namespace: str) -> str:
    """Render the full report as one newline-joined string."""
    return "\n".join(render_lines(diff_set, release_name, namespace))
