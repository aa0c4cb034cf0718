"""
Member ledger repository.

Owns lookup-by-name and the upsert flow: find the member's row, merge the
submission with the policy engine, and hand the store both the additive
payload and the merged record.

Usage:
    repo = MemberLedgerRepository(SheetsLedgerClient.from_settings(settings))
    members = repo.fetch_all()
    updated = repo.upsert_by_name(submission)
"""

import logging
from typing import Optional

from ..models.member import MemberRecord
from ..models.submission import HoursSubmission, normalize_name
from ..policy.hours_engine import HoursPolicyEngine
from .store import LedgerStore

logger = logging.getLogger(__name__)


class MemberLedgerRepository:
    """Reads and updates member rows through a LedgerStore."""

    def __init__(self, store: LedgerStore, engine: Optional[HoursPolicyEngine] = None):
        self.store = store
        self.engine = engine or HoursPolicyEngine()

    def fetch_all(self) -> list[MemberRecord]:
        """All members, with totals recomputed from their counters.

        An empty ledger returns []. Store errors propagate.
        """
        return [self.engine.reconcile_total(r) for r in self.store.read_records()]

    def find_by_name(self, name: str, records: Optional[list[MemberRecord]] = None) -> Optional[MemberRecord]:
        """Case-insensitive exact match on the whitespace-trimmed name."""
        key = normalize_name(name)
        if not key:
            return None
        for record in records if records is not None else self.fetch_all():
            if record.name_key == key:
                return record
        return None

    def upsert_by_name(self, submission: HoursSubmission) -> MemberRecord:
        """Add a submission to the member's row, creating it if needed.

        Returns:
            The merged record this update should produce. The remote store
            performs its own merge; callers wanting the authoritative row
            re-read it with find_by_name.

        Raises:
            ConfigurationError, LedgerUnavailableError, LedgerWriteError from the store
        """
        existing = self.find_by_name(submission.name)
        merged = self.engine.merge(existing, submission)
        payload = self.engine.ledger_payload(submission)

        self.store.apply_update(payload, merged)
        logger.info(
            f"Ledger updated for {submission.name}: "
            f"{'existing row ' + str(existing.row_number) if existing else 'new row'}, total={merged.total_hours:g}"
        )
        return merged
