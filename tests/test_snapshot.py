"""
Tests for the snapshot file

These tests verify:
- save(): one key:value line per key, lists flattened
- read() / load(): the store is replaced with plain string values
- The documented lossy cases

Run with: python -m pytest tests/test_snapshot.py -v
"""

import time

from respkv.cache.entry import Expiration, ExpireOption, ListValue, StringValue
from respkv.cache.store import KVStore
from respkv.persistence.snapshot import Snapshot, flatten


class TestFlatten:
    """Test rendering stored values for the file."""

    def test_string(self):
        assert flatten(StringValue(b"abc")) == b"abc"

    def test_list_joined_with_spaces(self):
        assert flatten(ListValue([b"a", b"b", b"c"])) == b"a b c"

    def test_empty_list(self):
        assert flatten(ListValue()) == b""


class TestSave:
    """Test writing snapshots."""

    def test_save_writes_records(self, store: KVStore, snapshot: Snapshot, snapshot_path):
        store.set(b"name", b"JOHN")
        store.rpush(b"list", b"a", b"b")

        assert snapshot.save(store) == 2

        lines = sorted(snapshot_path.read_bytes().splitlines())
        assert lines == [b"list:a b", b"name:JOHN"]

    def test_save_empty_store(self, store: KVStore, snapshot: Snapshot, snapshot_path):
        assert snapshot.save(store) == 0
        assert snapshot_path.read_bytes() == b""

    def test_save_leaves_no_temp_file(self, store: KVStore, snapshot: Snapshot, snapshot_path):
        store.set(b"k", b"v")
        snapshot.save(store)

        assert [p.name for p in snapshot_path.parent.iterdir()] == [snapshot_path.name]

    def test_save_overwrites_previous_snapshot(self, store: KVStore, snapshot: Snapshot, snapshot_path):
        store.set(b"old", b"1")
        snapshot.save(store)

        store.clear()
        store.set(b"new", b"2")
        snapshot.save(store)

        assert snapshot_path.read_bytes() == b"new:2\n"

    def test_save_drops_expired_keys(self, store: KVStore, snapshot: Snapshot, snapshot_path):
        store.set(b"dead", b"x", Expiration(ExpireOption.EXAT, 1, set_at=time.time()))
        store.set(b"live", b"y", Expiration.parse(b"EX", b"60"))

        snapshot.save(store)

        assert snapshot_path.read_bytes() == b"live:y\n"


class TestLoad:
    """Test reading snapshots back."""

    def test_round_trip_strings(self, store: KVStore, snapshot: Snapshot):
        store.set(b"a", b"1")
        store.set(b"b", b"hello world")
        snapshot.save(store)

        fresh = KVStore()
        assert snapshot.load(fresh) == 2

        assert fresh.get(b"a") == b"1"
        assert fresh.get(b"b") == b"hello world"

    def test_load_replaces_existing_contents(self, store: KVStore, snapshot: Snapshot, snapshot_path):
        snapshot_path.write_bytes(b"a:1\n")
        store.set(b"other", b"x")

        snapshot.load(store)

        assert store.exists(b"other") == 0
        assert store.get(b"a") == b"1"

    def test_values_may_contain_colons(self, store: KVStore, snapshot: Snapshot, snapshot_path):
        snapshot_path.write_bytes(b"url:http://example.com:80\n")

        snapshot.load(store)

        assert store.get(b"url") == b"http://example.com:80"

    def test_malformed_lines_skipped(self, store: KVStore, snapshot: Snapshot, snapshot_path):
        snapshot_path.write_bytes(b"good:1\nno separator here\n\nalso:2\n")

        assert snapshot.load(store) == 2
        assert store.get(b"good") == b"1"
        assert store.get(b"also") == b"2"

    def test_lists_come_back_as_strings(self, store: KVStore, snapshot: Snapshot):
        """Test type information is not preserved."""
        store.rpush(b"list", b"a", b"b")
        snapshot.save(store)

        snapshot.load(store)

        assert store.get(b"list") == b"a b"

    def test_expiration_not_preserved(self, store: KVStore, snapshot: Snapshot):
        store.set(b"k", b"v", Expiration.parse(b"EX", b"60"))
        snapshot.save(store)

        snapshot.load(store)

        assert store.get_stats()["volatile_keys"] == 0

    def test_newline_in_value_is_lossy(self, store: KVStore, snapshot: Snapshot):
        store.set(b"k", b"line1\nline2")
        snapshot.save(store)

        snapshot.load(store)

        assert store.get(b"k") == b"line1"
