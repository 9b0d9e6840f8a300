"""Drift computation.

Submodules:
    pointer  -- JSON pointer helpers.
    selector -- IgnoreMatcher: ignore-rule target and path matching.
    engine   -- DiffEngine and the structural compare() it is built on.
"""
