"""
Member record: one ledger row with cumulative hour counters.
"""

from dataclasses import dataclass
from typing import Any, Optional

from .submission import normalize_name, parse_yes_no


def parse_hours(value: Any) -> float:
    """Parse an hours cell; blanks and junk count as zero."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return 0.0


@dataclass
class MemberRecord:
    """Ledger row for one member.

    The name is the natural key (no stable identifier exists). total_hours
    is derived from the counters by the policy engine; the stored copy is
    not trusted.
    """

    name: str
    grade: str = ""
    inducted: bool = False
    summer_hours: float = 0.0
    chapter_hours: float = 0.0
    other_hours: float = 0.0
    total_hours: float = 0.0
    row_number: Optional[int] = None  # 1-based sheet row, header is row 1

    @property
    def member_id(self) -> str:
        return f"member-{self.row_number}" if self.row_number else f"member-{self.name_key}"

    @property
    def name_key(self) -> str:
        return normalize_name(self.name)

    @classmethod
    def from_row(cls, row: list[Any], row_number: Optional[int] = None) -> "MemberRecord":
        """Parse a positional sheet row: Name | Grade | Inducted | Summer | Chapter | Other | Total."""
        cells = list(row) + [""] * (7 - len(row))
        try:
            inducted = parse_yes_no(cells[2])
        except ValueError:
            inducted = False
        return cls(
            name=str(cells[0] or "").strip(),
            grade=str(cells[1] or "").strip(),
            inducted=inducted,
            summer_hours=parse_hours(cells[3]),
            chapter_hours=parse_hours(cells[4]),
            other_hours=parse_hours(cells[5]),
            total_hours=parse_hours(cells[6]),
            row_number=row_number,
        )

    def to_row(self) -> list[Any]:
        """Positional sheet row, inducted written as Yes/No."""
        return [
            self.name,
            self.grade,
            "Yes" if self.inducted else "No",
            self.summer_hours,
            self.chapter_hours,
            self.other_hours,
            self.total_hours,
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.member_id,
            "name": self.name,
            "grade": self.grade,
            "inducted": self.inducted,
            "summer_hours": self.summer_hours,
            "chapter_hours": self.chapter_hours,
            "other_hours": self.other_hours,
            "total_hours": self.total_hours,
        }
