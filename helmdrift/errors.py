"""Error taxonomy for the drift pipeline.

Every failure surfaced by a pipeline stage is one of three kinds:

    NotFoundError -- a release, HelmRelease or storage scope does not exist.
    AccessError   -- the cluster API could not be queried (permissions,
                     connectivity, unexpected API responses).
                     PermissionDeniedError narrows it to refused requests.
    DecodeError   -- a stored or fetched document could not be parsed.

Errors keep their kind as they propagate; ``wrap`` adds the operation and
identifiers being processed at each level.
"""

from __future__ import annotations

from typing import Self


class DriftError(Exception):
    """Base class for all pipeline failures."""

    def wrap(self, context: str) -> Self:
        """Return an error of the same kind prefixed with *context*.

        Use as ``raise exc.wrap("...") from exc``.
        """
        return type(self)(f"{context}: {self}")


class NotFoundError(DriftError):
    """The requested object does not exist."""


class AccessError(DriftError):
    """The backing store or cluster API could not be queried."""


class DecodeError(DriftError):
    """A stored or fetched document is malformed."""


class PermissionDeniedError(AccessError):
    """The API server refused the request (401/403)."""
