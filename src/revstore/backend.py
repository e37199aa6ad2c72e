"""Keyed revision logs: where revision files physically live.

A log maps a key (object id, one directory) to a set of named immutable
entries (revision files). The store owns all sorting, parsing and compaction
decisions; a log only lists, reads, writes and deletes names.

    FileSystemLog   <root>/<key>/<name>   (production)
    MemoryLog       dict of dicts         (unit tests)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Protocol


class KeyedRevisionLog(Protocol):
    """Storage seam used by RevisionStore."""

    def ensure_root(self) -> None: ...

    def has_key(self, key: str) -> bool: ...

    def keys(self) -> list[str]: ...

    def entries(self, key: str) -> list[str]: ...

    def read(self, key: str, name: str) -> str: ...

    def write_new(self, key: str, name: str, text: str) -> str: ...

    def delete(self, key: str, name: str) -> str: ...

    def location(self, key: str, name: str | None = None) -> str: ...


# ---------------------------------------------------------------------------
# Filesystem
# ---------------------------------------------------------------------------


class FileSystemLog:
    """One directory per key, one file per entry."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).resolve()

    def _key_dir(self, key: str) -> Path:
        return self.root / key

    def location(self, key: str, name: str | None = None) -> str:
        path = self._key_dir(key)
        return str(path / name) if name else str(path)

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def has_key(self, key: str) -> bool:
        return self._key_dir(key).exists()

    def keys(self) -> list[str]:
        """Visible subdirectories of root. Entries that vanish mid-listing are skipped."""
        try:
            names = os.listdir(self.root)
        except FileNotFoundError:
            return []
        return [
            name for name in names
            if not name.startswith(".") and (self.root / name).is_dir()
        ]

    def entries(self, key: str) -> list[str]:
        """Visible entry names under key (temp files are dot-prefixed)."""
        try:
            names = os.listdir(self._key_dir(key))
        except (FileNotFoundError, NotADirectoryError):
            return []
        return [name for name in names if not name.startswith(".")]

    def read(self, key: str, name: str) -> str:
        return (self._key_dir(key) / name).read_text(encoding="utf-8")

    def write_new(self, key: str, name: str, text: str) -> str:
        """Write text under a hidden temp name, then rename it into place.

        Listings never show a partially written entry.
        """
        directory = self._key_dir(key)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        tmp = directory / f".{name}.tmp"
        try:
            with tmp.open("w", encoding="utf-8") as f:
                f.write(text)
            tmp.replace(path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
        return str(path)

    def delete(self, key: str, name: str) -> str:
        path = self._key_dir(key) / name
        path.unlink()
        return str(path)


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class MemoryLog:
    """Dict-backed log with the same listing semantics as FileSystemLog."""

    def __init__(self) -> None:
        self.data: dict[str, dict[str, str]] = {}

    def location(self, key: str, name: str | None = None) -> str:
        return f"{key}/{name}" if name else key

    def ensure_root(self) -> None:
        pass

    def has_key(self, key: str) -> bool:
        return key in self.data

    def keys(self) -> list[str]:
        return [k for k in self.data if not k.startswith(".")]

    def entries(self, key: str) -> list[str]:
        return [n for n in self.data.get(key, {}) if not n.startswith(".")]

    def read(self, key: str, name: str) -> str:
        try:
            return self.data[key][name]
        except KeyError:
            msg = f"No such entry: {self.location(key, name)}"
            raise FileNotFoundError(msg) from None

    def write_new(self, key: str, name: str, text: str) -> str:
        self.data.setdefault(key, {})[name] = text
        return self.location(key, name)

    def delete(self, key: str, name: str) -> str:
        try:
            del self.data[key][name]
        except KeyError:
            msg = f"No such entry: {self.location(key, name)}"
            raise FileNotFoundError(msg) from None
        return self.location(key, name)
