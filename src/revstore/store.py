"""RevisionStore: append-only, multi-writer safe JSON object store.

    store = RevisionStore("/path/to/objects")
    record = store.put({"id": "alice-profile", "name": "Alice"})
    store.get("alice-profile")        # {"id": ..., "name": ..., "rev": 1, "uid": ...}

Layout:
    <root>/
        <id>/
            1-<uuid>.json
            2-<uuid>.json     # latest = last in natural order

Every put writes a brand-new file whose name carries a fresh UUID, so two
writers never touch the same file. Readers pick the last name in natural
order; when two writers computed the same rev the UUID decides. That is
last-sort-order-wins, not last-writer-wins.

clean() deletes all but the last revision of an object and takes no lock.
Run it only when no put/get on the same object can be in flight.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from revstore.backend import FileSystemLog, KeyedRevisionLog, MemoryLog
from revstore.errors import InvalidArgumentError, NotFoundError, RevstoreError
from revstore.models import (
    BASELINE_FILENAME,
    DEFAULT_EXTENSION,
    natural_sort,
    new_uid,
    revision_filename,
    revision_number,
    validate_key,
)

if TYPE_CHECKING:
    from pathlib import Path

    from revstore.config import StoreConfig

logger = logging.getLogger("revstore.store")

_DEFAULT_INDENT = 2


class RevisionStore:
    """Revisioned object store over a KeyedRevisionLog."""

    def __init__(
        self,
        root: Path | str | None = None,
        *,
        log: KeyedRevisionLog | None = None,
        extension: str = DEFAULT_EXTENSION,
        indent: int | None = _DEFAULT_INDENT,
    ) -> None:
        self.extension = extension
        self.indent = indent
        self.log: KeyedRevisionLog | None = None
        if log is not None:
            self.log = log
            self.log.ensure_root()
        elif root is not None:
            self.configure(root)

    @classmethod
    def from_config(cls, cfg: StoreConfig) -> RevisionStore:
        return cls(cfg.objects_dir, extension=cfg.extension, indent=cfg.indent)

    @classmethod
    def in_memory(cls) -> RevisionStore:
        return cls(log=MemoryLog())

    def configure(self, root: Path | str) -> None:
        """Point the store at root (resolved to an absolute path, created if missing)."""
        self.log = FileSystemLog(root)
        self.log.ensure_root()

    @property
    def _log(self) -> KeyedRevisionLog:
        if self.log is None:
            msg = "RevisionStore has no root; call configure() first"
            raise RevstoreError(msg)
        return self.log

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def has(self, object_id: str) -> bool:
        """True if the object's directory exists (it may still hold no revisions)."""
        return self._log.has_key(validate_key(object_id))

    def revisions(self, object_id: str) -> list[str]:
        """Revision filenames of an object in natural order, oldest first."""
        suffix = f".{self.extension}"
        names = [n for n in self._log.entries(validate_key(object_id)) if n.endswith(suffix)]
        return natural_sort(names)

    def latest_revision_number(self, object_id: str) -> int:
        """Leading integer of the latest revision filename.

        An object without revisions yields 0. A latest filename without a
        parsable leading integer yields 1.
        """
        files = self.revisions(object_id) or [BASELINE_FILENAME]
        return revision_number(files[-1])

    def get(self, object_id: str) -> dict[str, Any]:
        """Full stored record of the latest revision."""
        files = self.revisions(object_id)
        if not files:
            msg = f"Object not found: {object_id}"
            raise NotFoundError(msg)
        return self._load(object_id, files[-1])

    def get_revision(self, object_id: str, rev: int) -> dict[str, Any]:
        """Stored record for a specific revision number.

        When concurrent writers produced several files with the same number,
        the last one in natural order is returned, as get() would.
        """
        matches = [f for f in self.revisions(object_id) if revision_number(f) == rev]
        if not matches:
            msg = f"Revision {rev} not found for object {object_id}"
            raise NotFoundError(msg)
        return self._load(object_id, matches[-1])

    def _load(self, object_id: str, name: str) -> dict[str, Any]:
        return json.loads(self._log.read(object_id, name))  # type: ignore[no-any-return]

    def list_ids(self) -> set[str]:
        """Ids of all stored objects (hidden entries excluded), in no particular order."""
        return set(self._log.keys())

    async def alist_ids(self) -> set[str]:
        """list_ids() run on a worker thread."""
        return await asyncio.to_thread(self.list_ids)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def put(self, data: Mapping[str, Any] | None) -> dict[str, Any]:
        """Store a new revision of data["id"] and return the stored record.

        The revision written is one above the caller's "rev" if data carries
        one, else one above the latest stored revision, else 1. A caller
        supplied rev is therefore a floor, never the exact stored number.
        """
        if data is None:
            msg = "data is required"
            raise InvalidArgumentError(msg)
        if not isinstance(data, Mapping):
            msg = f"data must be a mapping, got {type(data).__name__}"
            raise InvalidArgumentError(msg)
        if not data.get("id"):
            msg = "data.id is required"
            raise InvalidArgumentError(msg)
        object_id = validate_key(data["id"], "data.id")
        log = self._log

        if "rev" in data:
            rev = _caller_rev(data["rev"])
        elif log.has_key(object_id):
            rev = self.latest_revision_number(object_id)
        else:
            rev = 0
        rev += 1

        uid = new_uid()
        record = {**data, "rev": rev, "uid": uid}
        text = json.dumps(record, indent=self.indent, ensure_ascii=False)

        name = revision_filename(rev, uid, self.extension)
        path = log.write_new(object_id, name, text)
        logger.debug("put %s rev=%d -> %s", object_id, rev, path)
        return record

    def clean(self, object_id: str | None = None) -> list[str]:
        """Delete all but the latest revision of one object, or of every object.

        Returns the locations of the deleted files. Files that another
        process removed first are skipped, not reported as errors.
        """
        log = self._log
        ids = [validate_key(object_id)] if object_id else sorted(self.list_ids())

        deleted: list[str] = []
        for oid in ids:
            if not log.has_key(oid):
                continue
            files = self.revisions(oid)
            if len(files) < 2:
                continue
            keep = files.pop()
            removed = 0
            for name in files:
                with contextlib.suppress(FileNotFoundError):
                    deleted.append(log.delete(oid, name))
                    removed += 1
            logger.info("clean %s: kept %s, deleted %d", oid, keep, removed)
        return deleted


def _caller_rev(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"rev must be an integer, got {value!r}"
        raise InvalidArgumentError(msg)
    if value < 0:
        msg = f"rev must not be negative, got {value}"
        raise InvalidArgumentError(msg)
    return value
