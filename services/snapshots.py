"""Immutable reference-data snapshots with atomic replacement."""

from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from types import MappingProxyType
from typing import TYPE_CHECKING

from core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

logger = get_logger(__name__)


def content_digest(entries: Mapping[str, object]) -> str:
    """Hash entries by key order so equal content gives an equal digest."""
    payload = "\n".join(f"{key}={entries[key]!r}" for key in sorted(entries))
    return hashlib.sha256(payload.encode()).hexdigest()[:16]


@dataclass(frozen=True, slots=True)
class Snapshot[T]:
    """
    A read-only view of one load of reference data.

    Attributes:
        version: Monotonic version assigned by the owning store.
        entries: Entries keyed by their lookup key (read-only mapping).
        source: Name of the source the entries were loaded from.
        loaded_at: When the snapshot was published.
        digest: Content hash of the entries, stable across processes.
    """

    version: int
    entries: Mapping[str, T]
    source: str
    loaded_at: datetime
    digest: str = ""

    def get(self, key: str) -> T | None:
        """Return the entry for a key, or None."""
        return self.entries.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


class SnapshotStore[T]:
    """
    Holder of the current snapshot for one kind of reference data.

    Readers call `current()` and keep the returned snapshot for the whole
    calculation; writers build a complete new mapping and `publish()` it.
    The reference swap is the only mutation, so a reader never sees a
    half-refreshed set of entries.
    """

    def __init__(self, name: str) -> None:
        """
        Initialize an empty store.

        Args:
            name: Store name used in log events.
        """
        self.name = name
        self._write_lock = threading.Lock()
        self._version = 0
        self._current: Snapshot[T] | None = None

    def current(self) -> Snapshot[T] | None:
        """Return the snapshot currently being served, if any."""
        return self._current

    def publish(self, entries: Mapping[str, T], source: str) -> Snapshot[T]:
        """
        Replace the served snapshot with a new one.

        Args:
            entries: Complete set of entries for the new snapshot.
            source: Name of the source the entries came from.

        Returns:
            The newly published snapshot.
        """
        with self._write_lock:
            self._version += 1
            snapshot = Snapshot(
                version=self._version,
                entries=MappingProxyType(dict(entries)),
                source=source,
                loaded_at=datetime.now(UTC),
                digest=content_digest(entries),
            )
            self._current = snapshot

        logger.info(
            "Snapshot published",
            store=self.name,
            version=snapshot.version,
            source=source,
            entries=len(snapshot),
        )
        return snapshot
