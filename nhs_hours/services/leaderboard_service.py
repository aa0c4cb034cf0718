"""
Leaderboard service: ranked member standings and chapter-wide stats.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from ..constants import MEDALS
from ..ledger.repository import MemberLedgerRepository
from ..models.member import MemberRecord
from ..policy.hours_engine import HoursPolicyEngine, ProgressReport

logger = logging.getLogger(__name__)


@dataclass
class LeaderboardEntry:
    rank: int
    record: MemberRecord
    progress: ProgressReport
    medal: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "medal": self.medal,
            **self.record.to_dict(),
            "progress": self.progress.to_dict(),
        }


@dataclass
class LeaderboardStats:
    """Chapter-wide figures, computed over all members regardless of filters."""

    member_count: int = 0
    inducted_count: int = 0
    total_hours: float = 0.0

    @property
    def average_hours(self) -> str:
        """One decimal place, "0.0" for an empty ledger."""
        if self.member_count == 0:
            return "0.0"
        return f"{self.total_hours / self.member_count:.1f}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "member_count": self.member_count,
            "inducted_count": self.inducted_count,
            "total_hours": self.total_hours,
            "average_hours": self.average_hours,
        }


@dataclass
class Leaderboard:
    entries: list[LeaderboardEntry] = field(default_factory=list)
    stats: LeaderboardStats = field(default_factory=LeaderboardStats)

    def to_dict(self) -> dict[str, Any]:
        return {"stats": self.stats.to_dict(), "entries": [e.to_dict() for e in self.entries]}


class LeaderboardService:
    """Builds the leaderboard from the ledger."""

    def __init__(self, repository: MemberLedgerRepository, engine: Optional[HoursPolicyEngine] = None):
        self.repository = repository
        self.engine = engine or repository.engine

    def build(
        self,
        search: str = "",
        grade: Optional[str] = None,
        inducted: Optional[bool] = None,
        records: Optional[list[MemberRecord]] = None,
    ) -> Leaderboard:
        """Filter, rank, and summarize members.

        Args:
            search: Case-insensitive substring of the member name
            grade: Exact grade (case-insensitive), None for all
            inducted: True/False to filter by induction status, None for all
            records: Pre-fetched rows (fetched from the ledger when omitted)
        """
        members = records if records is not None else self.repository.fetch_all()
        stats = self.compute_stats(members)

        needle = search.strip().lower()
        filtered = [
            m
            for m in members
            if needle in m.name.lower()
            and (not grade or m.grade.lower() == grade.strip().lower())
            and (inducted is None or m.inducted == inducted)
        ]
        # sorted() is stable: ties keep ledger order
        ranked = sorted(filtered, key=lambda m: m.total_hours, reverse=True)

        entries = []
        for index, record in enumerate(ranked):
            medal = MEDALS[index] if index < len(MEDALS) and record.total_hours > 0 else None
            entries.append(
                LeaderboardEntry(rank=index + 1, record=record, progress=self.engine.progress(record), medal=medal)
            )
        logger.debug(f"Leaderboard: {len(entries)} of {len(members)} members after filters")
        return Leaderboard(entries=entries, stats=stats)

    @staticmethod
    def compute_stats(members: list[MemberRecord]) -> LeaderboardStats:
        return LeaderboardStats(
            member_count=len(members),
            inducted_count=sum(1 for m in members if m.inducted),
            total_hours=sum(m.total_hours for m in members),
        )
