"""
Tests for RevisionStore.

Sort/parse/compaction behaviour runs over the in-memory log; on-disk layout
and filesystem edge cases run against a temp directory.
"""

import asyncio
import json
import os

import pytest

from revstore.backend import FileSystemLog, MemoryLog
from revstore.errors import InvalidArgumentError, NotFoundError, RevstoreError
from revstore.models import natural_sort
from revstore.store import RevisionStore


class TestConfigure:
    """Root directory handling"""

    def test_creates_missing_root(self, tmp_path):
        root = tmp_path / "a" / "b" / "objects"
        RevisionStore(root)
        assert root.is_dir()

    def test_root_is_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        store = RevisionStore("relative-db")
        assert isinstance(store.log, FileSystemLog)
        assert store.log.root.is_absolute()
        assert store.log.root == tmp_path.resolve() / "relative-db"

    def test_configure_is_idempotent(self, tmp_path):
        store = RevisionStore(tmp_path / "db")
        store.put({"id": "x", "v": 1})
        store.configure(tmp_path / "db")
        assert store.get("x")["v"] == 1

    def test_unconfigured_store_raises(self):
        store = RevisionStore()
        with pytest.raises(RevstoreError, match="configure"):
            store.get("x")


class TestPutGet:
    """put followed by get"""

    def test_first_put_is_rev_1(self, mem_store):
        record = mem_store.put({"id": "alice", "name": "Alice"})
        assert record["rev"] == 1
        assert record["name"] == "Alice"
        assert record["id"] == "alice"
        assert len(record["uid"]) == 36

    def test_get_returns_full_record(self, mem_store):
        record = mem_store.put({"id": "alice", "name": "Alice", "tags": ["a", "b"]})
        assert mem_store.get("alice") == record

    def test_revisions_increment(self, mem_store):
        revs = [mem_store.put({"id": "doc", "n": n})["rev"] for n in range(12)]
        assert revs == list(range(1, 13))
        assert mem_store.get("doc")["n"] == 11
        assert mem_store.latest_revision_number("doc") == 12

    def test_latest_survives_digit_count_change(self, mem_store):
        """Revision 10 must beat revision 9 (natural, not lexical, order)"""
        for n in range(10):
            mem_store.put({"id": "doc", "n": n})
        assert mem_store.get("doc")["rev"] == 10

    def test_explicit_rev_is_a_floor(self, mem_store):
        record = mem_store.put({"id": "doc", "rev": 41})
        assert record["rev"] == 42
        assert mem_store.get("doc")["rev"] == 42

    def test_explicit_rev_below_latest_still_plus_one(self, mem_store):
        for _ in range(3):
            mem_store.put({"id": "doc"})
        record = mem_store.put({"id": "doc", "rev": 0})
        assert record["rev"] == 1
        # 3-<uid> still sorts after 1-<uid>
        assert mem_store.get("doc")["rev"] == 3

    def test_put_after_get_round_trip(self, mem_store):
        """Saving what get returned bumps the revision"""
        mem_store.put({"id": "doc", "text": "one"})
        current = mem_store.get("doc")
        current["text"] = "two"
        updated = mem_store.put(current)
        assert updated["rev"] == 2
        assert updated["uid"] != current["uid"]
        assert mem_store.get("doc")["text"] == "two"

    def test_put_does_not_mutate_input(self, mem_store):
        data = {"id": "doc", "v": 1}
        mem_store.put(data)
        assert data == {"id": "doc", "v": 1}

    def test_field_order_preserved(self, mem_store):
        record = mem_store.put({"id": "doc", "rev": 1, "body": "x"})
        assert list(record) == ["id", "rev", "body", "uid"]


class TestPutValidation:
    """Invalid put input"""

    def test_none(self, mem_store):
        with pytest.raises(InvalidArgumentError, match="data is required"):
            mem_store.put(None)

    def test_missing_id(self, mem_store):
        with pytest.raises(InvalidArgumentError, match="data.id is required"):
            mem_store.put({"name": "nobody"})

    def test_empty_id(self, mem_store):
        with pytest.raises(InvalidArgumentError, match="data.id is required"):
            mem_store.put({"id": ""})

    def test_not_a_mapping(self, mem_store):
        with pytest.raises(InvalidArgumentError, match="mapping"):
            mem_store.put(["id", "x"])

    def test_path_separator_in_id(self, mem_store):
        with pytest.raises(InvalidArgumentError):
            mem_store.put({"id": "../escape"})

    @pytest.mark.parametrize("rev", ["3", 2.5, None, True])
    def test_non_integer_rev(self, mem_store, rev):
        with pytest.raises(InvalidArgumentError, match="rev must be an integer"):
            mem_store.put({"id": "doc", "rev": rev})

    @pytest.mark.parametrize("rev", [-1, -3])
    def test_negative_rev(self, mem_store, rev):
        with pytest.raises(InvalidArgumentError, match="must not be negative"):
            mem_store.put({"id": "doc", "rev": rev})
        assert not mem_store.has("doc")

    def test_rejected_negative_rev_leaves_latest_intact(self, mem_store):
        mem_store.put({"id": "doc", "v": "old"})
        with pytest.raises(InvalidArgumentError):
            mem_store.put({"id": "doc", "v": "stray", "rev": -3})
        mem_store.put({"id": "doc", "v": "new"})
        assert mem_store.get("doc")["v"] == "new"
        assert mem_store.get("doc")["rev"] == 2

    def test_invalid_argument_is_value_error(self, mem_store):
        with pytest.raises(ValueError):
            mem_store.put({})

    def test_unserializable_payload_writes_nothing(self, mem_store):
        with pytest.raises(TypeError):
            mem_store.put({"id": "doc", "value": object()})
        assert not mem_store.has("doc")


class TestNotFound:
    """Reads of absent objects"""

    def test_get_unknown_id(self, mem_store):
        with pytest.raises(NotFoundError, match="Object not found: ghost"):
            mem_store.get("ghost")

    def test_not_found_is_key_error(self, mem_store):
        with pytest.raises(KeyError):
            mem_store.get("ghost")

    def test_get_empty_id(self, mem_store):
        with pytest.raises(InvalidArgumentError, match="id is required"):
            mem_store.get("")

    def test_directory_without_revisions(self, store):
        (store.log.root / "empty").mkdir()
        assert store.has("empty")
        with pytest.raises(NotFoundError):
            store.get("empty")

    def test_get_revision_unknown(self, mem_store):
        mem_store.put({"id": "doc"})
        with pytest.raises(NotFoundError, match="Revision 5 not found"):
            mem_store.get_revision("doc", 5)


class TestLatestRevisionNumber:
    """Revision number derived from the latest filename"""

    def test_missing_object_is_zero(self, mem_store):
        assert mem_store.latest_revision_number("ghost") == 0

    def test_empty_directory_then_put_starts_at_1(self, store):
        (store.log.root / "doc").mkdir()
        assert store.latest_revision_number("doc") == 0
        assert store.put({"id": "doc"})["rev"] == 1

    def test_malformed_latest_filename_degrades_to_1(self):
        log = MemoryLog()
        log.data["doc"] = {
            "3-aaa.json": json.dumps({"id": "doc", "rev": 3, "uid": "aaa"}),
            "junk.json": json.dumps({"id": "doc", "note": "hand-edited"}),
        }
        store = RevisionStore(log=log)
        assert store.latest_revision_number("doc") == 1
        assert store.get("doc") == {"id": "doc", "note": "hand-edited"}
        assert store.put({"id": "doc"})["rev"] == 2

    def test_other_extensions_ignored(self):
        log = MemoryLog()
        log.data["doc"] = {
            "1-aaa.json": json.dumps({"id": "doc", "rev": 1, "uid": "aaa"}),
            "99-zzz.bak": "not json",
        }
        store = RevisionStore(log=log)
        assert store.latest_revision_number("doc") == 1
        assert store.get("doc")["rev"] == 1


class TestHistory:
    """revisions() and get_revision()"""

    def test_revisions_in_natural_order(self, mem_store):
        for _ in range(11):
            mem_store.put({"id": "doc"})
        names = mem_store.revisions("doc")
        assert [int(n.split("-")[0]) for n in names] == list(range(1, 12))

    def test_revisions_of_unknown_id(self, mem_store):
        assert mem_store.revisions("ghost") == []

    def test_get_revision(self, mem_store):
        mem_store.put({"id": "doc", "text": "first"})
        mem_store.put({"id": "doc", "text": "second"})
        assert mem_store.get_revision("doc", 1)["text"] == "first"
        assert mem_store.get_revision("doc", 2)["text"] == "second"


class TestListIds:
    """Listing stored objects"""

    def test_lists_all_ids(self, mem_store):
        for oid in ("b", "a", "c"):
            mem_store.put({"id": oid})
        assert mem_store.list_ids() == {"a", "b", "c"}

    def test_empty_store(self, mem_store):
        assert mem_store.list_ids() == set()

    def test_skips_dotfiles_and_plain_files(self, store):
        store.put({"id": "visible"})
        (store.log.root / ".hidden").mkdir()
        (store.log.root / "stray.txt").write_text("x")
        assert store.list_ids() == {"visible"}

    def test_root_removed_after_configure(self, store):
        store.log.root.rmdir()
        assert store.list_ids() == set()

    def test_async_matches_sync(self, store):
        for oid in ("x", "y"):
            store.put({"id": oid})
        assert asyncio.run(store.alist_ids()) == store.list_ids() == {"x", "y"}


class TestClean:
    """Compaction keeps only the latest revision"""

    def test_clean_one(self, mem_store):
        for n in range(5):
            mem_store.put({"id": "doc", "n": n})
        before = mem_store.revisions("doc")

        deleted = mem_store.clean("doc")

        assert deleted == [f"doc/{name}" for name in before[:-1]]
        assert mem_store.revisions("doc") == before[-1:]
        assert mem_store.get("doc")["n"] == 4

    def test_clean_all(self, mem_store):
        for oid in ("a", "b"):
            for _ in range(3):
                mem_store.put({"id": oid})
        mem_store.put({"id": "single"})

        deleted = mem_store.clean()

        assert len(deleted) == 4
        for oid in ("a", "b", "single"):
            assert len(mem_store.revisions(oid)) == 1
        assert mem_store.get("a")["rev"] == 3

    def test_clean_unknown_id_is_noop(self, mem_store):
        assert mem_store.clean("ghost") == []

    def test_clean_twice(self, mem_store):
        for _ in range(3):
            mem_store.put({"id": "doc"})
        assert len(mem_store.clean("doc")) == 2
        assert mem_store.clean("doc") == []

    def test_clean_returns_filesystem_paths(self, store):
        for _ in range(3):
            store.put({"id": "doc"})
        names = store.revisions("doc")
        deleted = store.clean("doc")
        assert deleted == [str(store.log.root / "doc" / n) for n in names[:-1]]
        assert not any(os.path.exists(p) for p in deleted)
        assert os.listdir(store.log.root / "doc") == names[-1:]

    def test_next_put_after_clean_continues_numbering(self, mem_store):
        for _ in range(4):
            mem_store.put({"id": "doc"})
        mem_store.clean("doc")
        assert mem_store.put({"id": "doc"})["rev"] == 5


class TestOnDiskLayout:
    """Revision files as written to the filesystem"""

    def test_filename_and_contents(self, store):
        record = store.put({"id": "alice-profile", "name": "Alice", "bio": "héllo"})
        directory = store.log.root / "alice-profile"
        name = f"{record['rev']}-{record['uid']}.json"

        assert os.listdir(directory) == [name]
        text = (directory / name).read_text(encoding="utf-8")
        assert text == json.dumps(record, indent=2, ensure_ascii=False)
        assert json.loads(text) == record

    def test_no_temp_files_left_behind(self, store):
        for _ in range(3):
            store.put({"id": "doc"})
        leftovers = [n for n in os.listdir(store.log.root / "doc") if n.startswith(".")]
        assert leftovers == []

    def test_temp_files_are_invisible(self, store):
        store.put({"id": "doc", "v": 1})
        (store.log.root / "doc" / ".9-partial.json.tmp").write_text("{")
        (store.log.root / "doc" / ".9-partial.json").write_text("{")
        assert store.get("doc")["v"] == 1
        assert len(store.revisions("doc")) == 1

    def test_custom_extension_and_indent(self, tmp_path):
        store = RevisionStore(tmp_path / "db", extension="rev", indent=None)
        record = store.put({"id": "doc", "v": 1})
        path = tmp_path / "db" / "doc" / f"1-{record['uid']}.rev"
        assert path.read_text(encoding="utf-8") == json.dumps(record, ensure_ascii=False)
        assert store.get("doc") == record

    def test_existing_files_are_readable_by_a_new_store(self, tmp_path):
        RevisionStore(tmp_path / "db").put({"id": "doc", "v": 1})
        assert RevisionStore(tmp_path / "db").get("doc")["v"] == 1

    def test_latest_is_natural_not_mtime(self, store):
        """A later-written lower revision does not become latest"""
        store.put({"id": "doc", "rev": 4})
        store.put({"id": "doc", "rev": 0})
        names = store.revisions("doc")
        assert names == natural_sort(names)
        assert store.get("doc")["rev"] == 5
