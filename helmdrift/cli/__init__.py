"""helmdrift command-line interface.

Exposes:
    cli -- Click command entry point (registered as ``helmdrift`` script).
"""

from helmdrift.cli.main import cli

__all__ = ["cli"]
