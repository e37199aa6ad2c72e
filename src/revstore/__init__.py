"""File-based revision store: immutable JSON revision files plus a tag index.

Layout:
    objects/
        <id>/
            <rev>-<uuid>.json   # one immutable file per revision
    tags/
        <tag>/
            <id>                # marker file: id has tag

The newest revision of an object is the last filename in natural order
(numeric-aware, case-insensitive). Writers never modify or overwrite a file,
so concurrent processes need no lock for put/get. clean() compacts history and
must not race with writers on the same object.
"""

from revstore.config import StoreConfig, init_config, load_config
from revstore.errors import InvalidArgumentError, NotFoundError, RevstoreError
from revstore.store import RevisionStore
from revstore.tags import TagIndex

__all__ = [
    "InvalidArgumentError",
    "NotFoundError",
    "RevisionStore",
    "RevstoreError",
    "StoreConfig",
    "TagIndex",
    "init_config",
    "load_config",
]
