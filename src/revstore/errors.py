"""Exceptions raised by the revision store and tag index.

Filesystem failures are not wrapped: OSError and its subclasses reach the
caller as-is.
"""

from __future__ import annotations


class RevstoreError(Exception):
    """Base class for revstore errors."""


class InvalidArgumentError(RevstoreError, ValueError):
    """A required identifier or field is missing or unusable."""


class NotFoundError(RevstoreError, KeyError):
    """The object (or the requested revision of it) does not exist."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep plain messages
        return str(self.args[0]) if self.args else ""
