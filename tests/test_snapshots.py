"""Tests for reference-data snapshots."""

from __future__ import annotations

import threading

import pytest

from services.snapshots import SnapshotStore, content_digest


class TestContentDigest:
    """Tests for content_digest."""

    def test_independent_of_insertion_order(self) -> None:
        """Equal content should give an equal digest."""
        assert content_digest({"a": 1, "b": 2}) == content_digest({"b": 2, "a": 1})

    def test_changes_with_content(self) -> None:
        """A changed value should change the digest."""
        assert content_digest({"a": 1}) != content_digest({"a": 2})


class TestSnapshotStore:
    """Tests for SnapshotStore."""

    def test_empty_store(self) -> None:
        """A new store should serve nothing."""
        assert SnapshotStore[int]("test").current() is None

    def test_publish_assigns_increasing_versions(self) -> None:
        """Each publish should bump the version."""
        store = SnapshotStore[int]("test")

        first = store.publish({"a": 1}, source="static")
        second = store.publish({"a": 2}, source="static")

        assert first.version == 1
        assert second.version == 2
        assert store.current() is second

    def test_snapshot_is_read_only(self) -> None:
        """Snapshot entries should not be mutable."""
        snapshot = SnapshotStore[int]("test").publish({"a": 1}, source="static")

        with pytest.raises(TypeError):
            snapshot.entries["b"] = 2  # type: ignore[index]

    def test_snapshot_isolated_from_input(self) -> None:
        """Mutating the published mapping should not change the snapshot."""
        entries = {"a": 1}
        snapshot = SnapshotStore[int]("test").publish(entries, source="static")

        entries["b"] = 2

        assert "b" not in snapshot
        assert len(snapshot) == 1

    def test_pinned_snapshot_survives_refresh(self) -> None:
        """A reader holding a snapshot should keep seeing its entries."""
        store = SnapshotStore[int]("test")
        pinned = store.publish({"a": 1}, source="static")

        store.publish({"a": 99}, source="feed")

        assert pinned.get("a") == 1
        assert store.current().get("a") == 99

    def test_snapshot_metadata(self) -> None:
        """Snapshots should record source and digest."""
        snapshot = SnapshotStore[int]("test").publish({"a": 1}, source="database")

        assert snapshot.source == "database"
        assert snapshot.digest == content_digest({"a": 1})
        assert list(snapshot) == ["a"]

    def test_concurrent_publishes_get_unique_versions(self) -> None:
        """Concurrent writers should never share a version."""
        store = SnapshotStore[int]("test")
        versions: list[int] = []
        lock = threading.Lock()

        def writer(n: int) -> None:
            snapshot = store.publish({"n": n}, source="static")
            with lock:
                versions.append(snapshot.version)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(versions) == list(range(1, 21))
