"""Classification registry backed by an immutable snapshot."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import ValidationError as PydanticValidationError

from core.logging import get_logger
from core.result import Failure, Result, failure, success
from services.classification.types import (
    ClassificationEntry,
    RegistryLoadReport,
    RejectedRow,
    normalize_code,
)
from services.errors import ClassificationNotFoundError, QuoteError, SourceUnavailableError
from services.snapshots import Snapshot, SnapshotStore

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = get_logger(__name__)

type RegistrySnapshot = Snapshot[ClassificationEntry]


@runtime_checkable
class ClassificationSource(Protocol):
    """Read-only provider of raw registry rows."""

    @property
    def name(self) -> str:
        """Return the source name used in logs and snapshots."""
        ...

    def fetch_rows(self) -> Result[list[Mapping[str, Any]], QuoteError]:
        """Return every active registry row."""
        ...


class StaticClassificationSource:
    """In-memory registry rows."""

    def __init__(self, rows: Iterable[Mapping[str, Any]], name: str = "static") -> None:
        self._rows = [dict(row) for row in rows]
        self._name = name

    @property
    def name(self) -> str:
        """Return the source name."""
        return self._name

    def fetch_rows(self) -> Result[list[Mapping[str, Any]], QuoteError]:
        """Return the configured rows."""
        return success(list(self._rows))


class DatabaseClassificationSource:
    """Registry rows read from the active HSNCode table rows."""

    name = "database"

    def fetch_rows(self) -> Result[list[Mapping[str, Any]], QuoteError]:
        """Read all active HSN codes, renamed to registry field names."""
        from django.db import DatabaseError

        from apps.pricing.models import HSNCode

        try:
            rows = list(HSNCode.objects.filter(is_active=True).values())
        except DatabaseError as e:
            logger.error("HSN code query failed", error=str(e))
            return failure(SourceUnavailableError(self.name, details=str(e)))

        return success(
            [
                {
                    "code": row["hsn_code"],
                    "description": row["description"],
                    "category": row["category"],
                    "minimum_valuation_usd": row["minimum_valuation_usd"],
                    "requires_conversion": row["requires_currency_conversion"],
                    "duty_rate_percent": row["customs_rate"],
                    "tax_rate_percent": row["local_tax_rate"],
                    "classification_confidence": row["classification_confidence"],
                }
                for row in rows
            ]
        )


class ClassificationRegistry:
    """
    Lookup from classification code to tax metadata.

    Example:
        >>> registry = ClassificationRegistry()
        >>> report = registry.load([{"code": "4901", "description": "Books", ...}])
        >>> registry.lookup("4901").unwrap().category
        'books'
    """

    def __init__(self, store: SnapshotStore[ClassificationEntry] | None = None) -> None:
        """
        Initialize the registry.

        Args:
            store: Snapshot store to serve from (a new one by default).
        """
        self._store = store or SnapshotStore[ClassificationEntry](name="classifications")

    def snapshot(self) -> RegistrySnapshot | None:
        """Return the snapshot currently being served, if any."""
        return self._store.current()

    def load(self, rows: Iterable[Mapping[str, Any]], source: str = "static") -> RegistryLoadReport:
        """
        Validate rows and publish the valid ones as a new snapshot.

        Args:
            rows: Raw registry rows.
            source: Name of the source the rows came from.

        Returns:
            Report of accepted and rejected rows.
        """
        entries: dict[str, ClassificationEntry] = {}
        rejected: list[RejectedRow] = []

        for index, row in enumerate(rows):
            try:
                entry = ClassificationEntry.model_validate(row)
            except PydanticValidationError as e:
                errors = tuple(
                    f"{'.'.join(str(p) for p in err['loc']) or 'row'}: {err['msg']}"
                    for err in e.errors()
                )
                raw_code = row.get("code")
                rejected.append(RejectedRow(index=index, code=raw_code, errors=errors))
                logger.warning(
                    "Rejected malformed classification row",
                    index=index,
                    code=raw_code,
                    errors=list(errors),
                )
                continue

            if row.get("requires_conversion") and not entry.requires_conversion:
                logger.warning(
                    "Conversion required without a minimum valuation, using declared price",
                    code=entry.code,
                )
            if entry.code in entries:
                logger.warning("Duplicate classification code, last row wins", code=entry.code)
            entries[entry.code] = entry

        snapshot = self._store.publish(entries, source=source)
        return RegistryLoadReport(
            snapshot_version=snapshot.version,
            accepted=len(entries),
            rejected=tuple(rejected),
        )

    def refresh(self, source: ClassificationSource) -> Result[RegistryLoadReport, QuoteError]:
        """
        Reload rows from a source.

        On source failure the current snapshot keeps being served.
        """
        result = source.fetch_rows()
        if isinstance(result, Failure):
            logger.error(
                "Classification refresh failed, keeping previous snapshot",
                source=source.name,
                error=str(result.error),
            )
            return result
        return success(self.load(result.value, source=source.name))

    def lookup(
        self,
        code: str,
        snapshot: RegistrySnapshot | None = None,
    ) -> Result[ClassificationEntry, QuoteError]:
        """
        Find the entry for a classification code.

        Args:
            code: Classification code, in any common notation ("6211.10", "6211 10").
            snapshot: Snapshot to read from (defaults to the current one).

        Returns:
            Result containing the entry, ClassificationNotFoundError, or
            SourceUnavailableError when no snapshot was ever loaded.
        """
        current = snapshot if snapshot is not None else self._store.current()
        if current is None:
            return failure(SourceUnavailableError("classifications", details="no snapshot loaded"))

        normalized = normalize_code(code)
        entry = current.get(normalized)
        if entry is None:
            return failure(ClassificationNotFoundError(normalized))
        return success(entry)

    def search(self, text: str, limit: int = 10) -> list[ClassificationEntry]:
        """
        Search entries by code prefix, description or category.

        Args:
            text: Search text (case-insensitive).
            limit: Maximum number of entries returned.

        Returns:
            Matching entries, code-prefix matches first, each group ordered by code.
        """
        current = self._store.current()
        needle = text.strip().lower()
        if current is None or not needle:
            return []

        code_needle = normalize_code(text)
        by_code: list[ClassificationEntry] = []
        by_text: list[ClassificationEntry] = []
        for code in sorted(current):
            entry = current.entries[code]
            if code_needle and code.startswith(code_needle):
                by_code.append(entry)
            elif needle in entry.description.lower() or needle in entry.category.lower():
                by_text.append(entry)
        return [*by_code, *by_text][:limit]
