"""StoreConfig: project-local config for a revision store and its tag index.

Default layout (all relative to the project root):

    revstore.toml         # project config
    .revstore/
        objects/          # RevisionStore root
            <id>/
                <rev>-<uuid>.json
        tags/             # TagIndex root
            <tag>/
                <id>

revstore.toml example:

    [store]
    name = "my-site"
    # objects_dir = ".revstore/objects"   # default
    # tags_dir = ".revstore/tags"         # default
    # extension = "json"
    # indent = 2
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from revstore.models import DEFAULT_EXTENSION

_CONFIG_FILENAME = "revstore.toml"
_DEFAULT_OBJECTS_DIR = ".revstore/objects"
_DEFAULT_TAGS_DIR = ".revstore/tags"
_DEFAULT_INDENT = 2


@dataclass
class StoreConfig:
    """Resolved configuration for a revstore project."""

    root: Path                      # directory that contains revstore.toml
    name: str = ""
    objects_dir: Path = field(default_factory=Path)
    tags_dir: Path = field(default_factory=Path)
    extension: str = DEFAULT_EXTENSION
    indent: int = _DEFAULT_INDENT

    @property
    def config_path(self) -> Path:
        return self.root / _CONFIG_FILENAME

    def ensure_dirs(self) -> None:
        """Create objects_dir and tags_dir if they don't exist."""
        self.objects_dir.mkdir(parents=True, exist_ok=True)
        self.tags_dir.mkdir(parents=True, exist_ok=True)


def load_config(root: Path | str | None = None) -> StoreConfig:
    """Load revstore.toml from root (or search upward from cwd if root is None)."""
    root_path = _find_root(Path(root).resolve() if root else Path.cwd())
    config_path = root_path / _CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.exists():
        with config_path.open("rb") as f:
            raw = tomllib.load(f)

    section = raw.get("store", {})
    extension = str(section.get("extension", DEFAULT_EXTENSION)).lstrip(".")
    if not extension:
        msg = f"{config_path}: [store] extension must not be empty"
        raise ValueError(msg)

    return StoreConfig(
        root=root_path,
        name=section.get("name", root_path.name),
        objects_dir=root_path / section.get("objects_dir", _DEFAULT_OBJECTS_DIR),
        tags_dir=root_path / section.get("tags_dir", _DEFAULT_TAGS_DIR),
        extension=extension,
        indent=int(section.get("indent", _DEFAULT_INDENT)),
    )


def _find_root(start: Path) -> Path:
    """Walk upward from start looking for revstore.toml."""
    for directory in (start, *start.parents):
        if (directory / _CONFIG_FILENAME).exists():
            return directory
    return start


def init_config(root: Path, name: str | None = None) -> Path:
    """Write a default revstore.toml at root. Raises if already exists."""
    config_path = root / _CONFIG_FILENAME
    if config_path.exists():
        msg = f"revstore.toml already exists at {config_path}"
        raise FileExistsError(msg)

    project_name = name or root.name
    content = f"""\
[store]
name = "{project_name}"
# objects_dir = ".revstore/objects"   # default
# tags_dir = ".revstore/tags"         # default
# extension = "json"                  # revision file extension
# indent = 2                          # pretty-print indent for revision files
"""
    config_path.write_text(content)
    return config_path
