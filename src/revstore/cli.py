"""revstore CLI — inspect and maintain a revision store from the shell.

Commands:
    revstore init [NAME]           create revstore.toml + .revstore/ dirs
    revstore put [FILE]            store a JSON object (stdin by default)
    revstore get ID                print the latest revision
    revstore ls                    list object ids
    revstore history ID            list revision files, oldest first
    revstore clean [ID]            delete all but the latest revision
    revstore tag add|rm|ls|query   maintain and query the tag index
    revstore status                project stats
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import IO, Any

import click

from revstore.config import StoreConfig, init_config, load_config
from revstore.errors import InvalidArgumentError, NotFoundError
from revstore.models import RevisionFile, validate_key
from revstore.store import RevisionStore
from revstore.tags import TagIndex

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_cfg() -> StoreConfig:
    try:
        return load_config()
    except Exception as exc:
        raise click.ClickException(str(exc)) from exc


def _store(cfg: StoreConfig) -> RevisionStore:
    return RevisionStore.from_config(cfg)


def _tags(cfg: StoreConfig) -> TagIndex:
    return TagIndex.from_config(cfg)


def _dump(record: dict[str, Any]) -> None:
    click.echo(json.dumps(record, indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="revstore")
@click.option("--verbose", "-v", is_flag=True, help="Log store activity to stderr")
def cli(verbose: bool) -> None:
    """revstore — revisioned JSON object store on the filesystem."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(message)s")


# ---------------------------------------------------------------------------
# revstore init
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("name", required=False)
@click.option("--dir", "root", default=".", show_default=True, help="Project root")
def init(name: str | None, root: str) -> None:
    """Create revstore.toml and .revstore/ directories in the current project."""
    root_path = Path(root).resolve()
    try:
        config_path = init_config(root_path, name=name)
        click.echo(f"Created {config_path}")
    except FileExistsError:
        click.echo("revstore.toml already exists — skipping init")

    cfg = load_config(root_path)
    cfg.ensure_dirs()
    click.echo(f"Objects dir : {cfg.objects_dir}")
    click.echo(f"Tags dir    : {cfg.tags_dir}")


# ---------------------------------------------------------------------------
# Objects
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("source", type=click.File("r"), default="-")
@click.option("--tag", "-t", "tags", multiple=True, help="Tag the stored object (repeatable)")
def put(source: IO[str], tags: tuple[str, ...]) -> None:
    """Store a JSON object read from SOURCE (default: stdin)."""
    try:
        for tag in tags:
            validate_key(tag, "tag")
    except InvalidArgumentError as exc:
        raise click.ClickException(str(exc)) from exc

    try:
        data = json.load(source)
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"Invalid JSON: {exc}") from exc

    cfg = _load_cfg()
    try:
        record = _store(cfg).put(data)
    except InvalidArgumentError as exc:
        raise click.ClickException(str(exc)) from exc

    if tags:
        index = _tags(cfg)
        for tag in tags:
            index.add_tag(tag, record["id"])
    _dump(record)


@cli.command()
@click.argument("object_id")
@click.option("--rev", "-r", type=int, default=None, help="Revision number (default: latest)")
def get(object_id: str, rev: int | None) -> None:
    """Print the latest (or a specific) revision of an object."""
    store = _store(_load_cfg())
    try:
        record = store.get(object_id) if rev is None else store.get_revision(object_id, rev)
    except (NotFoundError, InvalidArgumentError) as exc:
        raise click.ClickException(str(exc)) from exc
    _dump(record)


@cli.command("ls")
def list_objects() -> None:
    """List object ids, sorted."""
    for object_id in sorted(_store(_load_cfg()).list_ids()):
        click.echo(object_id)


@cli.command()
@click.argument("object_id")
def history(object_id: str) -> None:
    """List revision files of an object, oldest first (last line = latest)."""
    store = _store(_load_cfg())
    try:
        names = store.revisions(object_id)
    except InvalidArgumentError as exc:
        raise click.ClickException(str(exc)) from exc
    if not names:
        raise click.ClickException(f"Object not found: {object_id}")
    for name in names:
        rf = RevisionFile.parse(name)
        click.echo(f"{rf.rev}\t{rf.uid}")


@cli.command()
@click.argument("object_id", required=False)
def clean(object_id: str | None) -> None:
    """Delete all but the latest revision of OBJECT_ID (or of every object).

    \b
    Not safe while another process writes to the same object; stop writers first.
    """
    store = _store(_load_cfg())
    try:
        deleted = store.clean(object_id)
    except InvalidArgumentError as exc:
        raise click.ClickException(str(exc)) from exc
    for path in deleted:
        click.echo(path)
    click.echo(f"Deleted {len(deleted)} files", err=True)


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


@cli.group()
def tag() -> None:
    """Maintain and query the tag index."""


@tag.command("add")
@click.argument("tag_name")
@click.argument("object_ids", nargs=-1, required=True)
def tag_add(tag_name: str, object_ids: tuple[str, ...]) -> None:
    """Tag one or more objects."""
    index = _tags(_load_cfg())
    try:
        for object_id in object_ids:
            index.add_tag(tag_name, object_id)
    except InvalidArgumentError as exc:
        raise click.ClickException(str(exc)) from exc


@tag.command("rm")
@click.argument("tag_name")
@click.argument("object_ids", nargs=-1, required=True)
def tag_rm(tag_name: str, object_ids: tuple[str, ...]) -> None:
    """Untag one or more objects."""
    index = _tags(_load_cfg())
    try:
        for object_id in object_ids:
            index.remove_tag(tag_name, object_id)
    except InvalidArgumentError as exc:
        raise click.ClickException(str(exc)) from exc


@tag.command("ls")
@click.argument("tag_name", required=False)
def tag_ls(tag_name: str | None) -> None:
    """List ids with TAG_NAME, or all tag names if none given."""
    index = _tags(_load_cfg())
    try:
        names = index.articles_for_tag(tag_name) if tag_name else index.tags()
    except InvalidArgumentError as exc:
        raise click.ClickException(str(exc)) from exc
    for name in sorted(names):
        click.echo(name)


@tag.command("query")
@click.argument("tag_names", nargs=-1, required=True)
def tag_query(tag_names: tuple[str, ...]) -> None:
    """List ids carrying every one of TAG_NAMES."""
    index = _tags(_load_cfg())
    try:
        ids = index.articles_by_tags(tag_names)
    except InvalidArgumentError as exc:
        raise click.ClickException(str(exc)) from exc
    for object_id in sorted(ids):
        click.echo(object_id)


# ---------------------------------------------------------------------------
# revstore status
# ---------------------------------------------------------------------------


@cli.command()
def status() -> None:
    """Show project stats: objects, revision files, tags."""
    from rich.console import Console
    from rich.table import Table

    cfg = _load_cfg()
    console = Console()

    table = Table(title=f"revstore — {cfg.name}", show_header=True, header_style="bold")
    table.add_column("Metric", style="dim", no_wrap=True)
    table.add_column("Value", justify="right")

    from importlib.metadata import PackageNotFoundError
    from importlib.metadata import version as _pkg_version
    try:
        _ver = _pkg_version("revstore")
    except PackageNotFoundError:
        _ver = "unknown"
    table.add_row("Version", _ver)
    table.add_row("Config", str(cfg.config_path) if cfg.config_path.exists() else "[dim]none[/dim]")
    table.add_row("Objects dir", str(cfg.objects_dir))
    table.add_row("Tags dir", str(cfg.tags_dir))
    table.add_row("", "")

    if cfg.objects_dir.exists():
        store = _store(cfg)
        ids = store.list_ids()
        n_files = sum(len(store.revisions(i)) for i in ids)
        table.add_row("Objects", str(len(ids)))
        table.add_row("Revision files", str(n_files))
        if n_files > len(ids):
            table.add_row("", f"[dim]{n_files - len(ids)} reclaimable with `revstore clean`[/dim]")
    else:
        table.add_row("Objects", "[dim]none — run `revstore init`[/dim]")

    if cfg.tags_dir.exists():
        table.add_row("Tags", str(len(_tags(cfg).tags())))

    console.print(table)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli(standalone_mode=True)


if __name__ == "__main__":
    main()
