"""
Ledger stores: where member rows are read from and updates are sent to.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from ..constants import LEDGER_HEADER_ROW
from ..models.member import MemberRecord
from ..models.submission import normalize_name

logger = logging.getLogger(__name__)


class LedgerStore(ABC):
    """
    Abstract ledger backend.

    Subclasses must implement:
        - read_records(): All member rows
        - apply_update(): Persist one additive update
    """

    @property
    def is_write_enabled(self) -> bool:
        return True

    @abstractmethod
    def read_records(self) -> list[MemberRecord]:
        """Return every member row (header and nameless rows excluded)."""
        pass

    @abstractmethod
    def apply_update(self, payload: dict[str, Any], merged: MemberRecord) -> None:
        """Persist one update.

        Args:
            payload: Additive wire payload (this submission's deltas)
            merged: The merged record the update should produce
        """
        pass


class InMemoryLedgerStore(LedgerStore):
    """Local ledger for dry runs and tests.

    Finds the row by case-insensitive name and replaces it with the merged
    record, or appends a new row.
    """

    def __init__(self, records: Optional[Iterable[MemberRecord]] = None):
        self._rows: list[MemberRecord] = []
        for record in records or []:
            self._append(record)
        self.updates: list[dict[str, Any]] = []

    @classmethod
    def from_rows(cls, rows: list[list[Any]]) -> "InMemoryLedgerStore":
        """Seed from raw sheet rows, header included."""
        store = cls()
        for row_number, row in enumerate(rows[1:], start=2):
            record = MemberRecord.from_row(row, row_number=row_number)
            if record.name:
                store._rows.append(record)
        return store

    def _append(self, record: MemberRecord) -> MemberRecord:
        stored = MemberRecord(**{**record.__dict__, "row_number": len(self._rows) + 2})
        self._rows.append(stored)
        return stored

    def read_records(self) -> list[MemberRecord]:
        return [MemberRecord(**r.__dict__) for r in self._rows]

    def apply_update(self, payload: dict[str, Any], merged: MemberRecord) -> None:
        self.updates.append(dict(payload))
        key = normalize_name(merged.name)
        for i, row in enumerate(self._rows):
            if row.name_key == key:
                self._rows[i] = MemberRecord(**{**merged.__dict__, "row_number": row.row_number})
                return
        self._append(merged)

    def to_rows(self) -> list[list[Any]]:
        """Sheet-shaped rows, header first."""
        return [list(LEDGER_HEADER_ROW)] + [r.to_row() for r in self._rows]


class DryRunLedgerStore(LedgerStore):
    """Copy of a live ledger that is read on first use and never written back.

    Nothing is fetched until a record is needed, so a submission rejected by
    the local checks never touches the network.
    """

    def __init__(self, source: Optional[LedgerStore] = None):
        self.source = source
        self._snapshot: Optional[InMemoryLedgerStore] = None

    @property
    def snapshot(self) -> InMemoryLedgerStore:
        if self._snapshot is None:
            if self.source is None:
                logger.warning("Ledger reads not configured; dry run starts from an empty ledger")
                self._snapshot = InMemoryLedgerStore()
            else:
                self._snapshot = InMemoryLedgerStore(self.source.read_records())
        return self._snapshot

    def read_records(self) -> list[MemberRecord]:
        return self.snapshot.read_records()

    def apply_update(self, payload: dict[str, Any], merged: MemberRecord) -> None:
        self.snapshot.apply_update(payload, merged)
