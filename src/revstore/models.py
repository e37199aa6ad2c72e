"""Revision filename helpers.

A revision file is named ``<rev>-<uid>.<ext>``. Which file is "latest" is
decided only by natural order of those names (digit runs compared as numbers,
letters compared case-insensitively), never by mtime.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from typing import Any

from revstore.errors import InvalidArgumentError

DEFAULT_EXTENSION = "json"

# Synthetic entry used when an object has no revision files yet.
BASELINE_FILENAME = "0-a.json"

_DIGIT_RUN = re.compile(r"(\d+)")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def new_uid() -> str:
    """Random v4 UUID string used to keep revision filenames unique."""
    return str(uuid.uuid4())


def natural_key(name: str) -> tuple[tuple[Any, ...], str]:
    """Sort key: digit runs as integers, the rest casefolded.

    re.split with a capture group always yields text at even positions and
    digits at odd positions, so two keys compare position by position without
    mixing str and int. The raw name breaks ties between names that differ
    only in case.

    Unlike ICU numeric collation, a digit run sorts before punctuation
    (``"1-"`` vs ``"-1"``). Revision filenames always start with a
    non-negative integer, so the two orders agree on them.
    """
    parts = _DIGIT_RUN.split(name)
    key = tuple(int(p) if i % 2 else p.casefold() for i, p in enumerate(parts))
    return key, name


def natural_sort(names: list[str]) -> list[str]:
    return sorted(names, key=natural_key)


def parse_leading_int(text: str) -> int | None:
    """Leading integer of text (``"12abc"`` -> 12), or None."""
    m = _LEADING_INT.match(text)
    return int(m.group(1)) if m else None


def revision_number(filename: str) -> int:
    """Revision number encoded in a filename; 1 if it cannot be parsed."""
    head = filename.split("-", 1)[0]
    value = parse_leading_int(head)
    return 1 if value is None else value


def revision_filename(rev: int, uid: str, extension: str = DEFAULT_EXTENSION) -> str:
    return f"{rev}-{uid}.{extension}"


@dataclass(frozen=True)
class RevisionFile:
    """A revision filename split into its parts."""

    name: str
    rev: int
    uid: str

    @classmethod
    def parse(cls, name: str) -> RevisionFile:
        stem = name.rsplit(".", 1)[0]
        _, _, uid = stem.partition("-")
        return cls(name=name, rev=revision_number(name), uid=uid)


def validate_key(value: object, what: str = "id") -> str:
    """Return value if usable as a single directory or file name."""
    if not value:
        msg = f"{what} is required"
        raise InvalidArgumentError(msg)
    if not isinstance(value, str):
        msg = f"{what} must be a string, got {type(value).__name__}"
        raise InvalidArgumentError(msg)
    if value in (".", "..") or "/" in value or "\\" in value or "\0" in value:
        msg = f"{what} must be a plain name without path separators: {value!r}"
        raise InvalidArgumentError(msg)
    return value
