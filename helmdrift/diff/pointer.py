"""JSON pointer (RFC 6901) helpers for patch and ignore paths."""

from __future__ import annotations


def escape(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def join(base: str, token: str | int) -> str:
    """Append one reference token to a pointer."""
    return f"{base}/{escape(str(token))}"


def split(pointer: str) -> list[str]:
    """Return the unescaped reference tokens of *pointer*.

    The empty pointer and ``/`` both address the document root.
    """
    if pointer in ("", "/"):
        return []
    if not pointer.startswith("/"):
        raise ValueError(f"JSON pointer must start with '/': {pointer!r}")
    return [unescape(t) for t in pointer[1:].split("/")]


def is_within(path: str, prefix: str) -> bool:
    """True if *path* equals *prefix* or addresses something beneath it.

    Comparison is token-wise, so ``/spec/template`` covers
    ``/spec/template/spec`` but not ``/spec/templates``.
    """
    prefix_tokens = split(prefix)
    path_tokens = split(path)
    return path_tokens[: len(prefix_tokens)] == prefix_tokens
