"""Tests for the RemoteStore recency helpers."""

from __future__ import annotations

from datetime import datetime, timezone

from pgvault.models.artifacts import RemoteObjectRef
from pgvault.storage.base import newest, sort_by_recency

T1 = datetime(2026, 1, 1, tzinfo=timezone.utc)
T2 = datetime(2026, 1, 2, tzinfo=timezone.utc)


def _ref(key: str, when: datetime, size: int = 1) -> RemoteObjectRef:
    return RemoteObjectRef(key=key, size_bytes=size, last_modified=when)


class TestRecency:
    def test_oldest_first_with_key_tie_break(self):
        refs = [_ref("p/c", T2), _ref("p/b", T1), _ref("p/a", T1)]
        assert [r.key for r in sort_by_recency(refs)] == ["p/a", "p/b", "p/c"]

    def test_newest_of_empty_is_none(self):
        assert newest([]) is None

    def test_newest_tie_prefers_greater_key(self):
        assert newest([_ref("p/a", T2), _ref("p/b", T2)]).key == "p/b"


class TestLastObject:
    def test_size_zero_when_empty(self, store):
        assert store.last_object("postgres-backups/") is None
        assert store.last_object_size("postgres-backups/") == 0

    def test_size_of_newest_in_prefix(self, store):
        store.add("postgres-backups/old.backup", 10, T1)
        store.add("postgres-backups/new.backup", 20, T2)
        store.add("elsewhere/newer.backup", 99, datetime(2026, 2, 1, tzinfo=timezone.utc))
        assert store.last_object_size("postgres-backups/") == 20
