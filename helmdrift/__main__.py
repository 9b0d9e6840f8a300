"""Entry point for `python -m helmdrift`.

Usage:
    python -m helmdrift -n flux-system -r podinfo
    uv run python -m helmdrift -r podinfo
"""

from __future__ import annotations

from helmdrift.cli import cli

cli()
