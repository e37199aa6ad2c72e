"""TagIndex: tag -> object id membership kept as marker files.

Layout:
    <root>/
        <tag>/
            <id>        # one-byte marker; existence means "id has tag"

The index is not updated by RevisionStore. Callers add and remove tags
alongside their put() calls. Empty tag directories are left in place.
"""

from __future__ import annotations

import contextlib
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from revstore.errors import InvalidArgumentError
from revstore.models import validate_key

if TYPE_CHECKING:
    from collections.abc import Iterable

    from revstore.config import StoreConfig

logger = logging.getLogger("revstore.tags")

_MARKER = "1"


def _visible(directory: Path) -> set[str]:
    try:
        names = os.listdir(directory)
    except (FileNotFoundError, NotADirectoryError):
        return set()
    return {name for name in names if not name.startswith(".")}


class TagIndex:
    """Filesystem set-membership index from tags to object ids."""

    def __init__(self, root: Path | str | None) -> None:
        if not root:
            msg = "TagIndex requires a root directory"
            raise InvalidArgumentError(msg)
        self.root = Path(root).resolve()

    @classmethod
    def from_config(cls, cfg: StoreConfig) -> TagIndex:
        return cls(cfg.tags_dir)

    def _tag_dir(self, tag: str) -> Path:
        return self.root / validate_key(tag, "tag")

    def add_tag(self, tag: str, object_id: str) -> None:
        directory = self._tag_dir(tag)
        directory.mkdir(parents=True, exist_ok=True)
        (directory / validate_key(object_id)).write_text(_MARKER)
        logger.debug("tag %s += %s", tag, object_id)

    def remove_tag(self, tag: str, object_id: str) -> None:
        """Drop the marker. Removing an absent marker is not an error."""
        path = self._tag_dir(tag) / validate_key(object_id)
        with contextlib.suppress(FileNotFoundError):
            path.unlink()
            logger.debug("tag %s -= %s", tag, object_id)

    def articles_for_tag(self, tag: str) -> set[str]:
        return _visible(self._tag_dir(tag))

    def articles_by_tags(self, tags: Iterable[str]) -> set[str]:
        """Ids carrying every tag in tags. No tags selects nothing."""
        if isinstance(tags, str):
            msg = f"tags must be a collection of tag names, not a string: {tags!r}"
            raise InvalidArgumentError(msg)
        result: set[str] | None = None
        for tag in tags:
            members = self.articles_for_tag(tag)
            result = members if result is None else result & members
            if not result:
                break
        return result or set()

    def tags(self) -> set[str]:
        """All tag names ever written, including ones with no members left."""
        return {name for name in _visible(self.root) if (self.root / name).is_dir()}

    def tags_for(self, object_id: str) -> set[str]:
        """Reverse lookup: tags whose directory holds a marker for object_id."""
        name = validate_key(object_id)
        return {tag for tag in self.tags() if (self.root / tag / name).exists()}
