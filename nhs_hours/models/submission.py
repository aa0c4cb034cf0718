"""
Pydantic model for an hours submission.

A submission is the transient request a member sends: who they are and how
many hours of each category they are adding. It is never stored on its own;
the policy engine merges it into the member's ledger row.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import SubmissionValidationError


class Grade(str, Enum):
    """Academic year of a member."""

    FRESHMAN = "Freshman"
    SOPHOMORE = "Sophomore"
    JUNIOR = "Junior"
    SENIOR = "Senior"

    @classmethod
    def parse(cls, value: Any) -> "Grade":
        """Parse a grade label, case-insensitively, also accepting 9-12 / 9th-12th."""
        if isinstance(value, Grade):
            return value
        text = str(value or "").strip().lower()
        aliases = {
            "9": cls.FRESHMAN,
            "9th": cls.FRESHMAN,
            "10": cls.SOPHOMORE,
            "10th": cls.SOPHOMORE,
            "11": cls.JUNIOR,
            "11th": cls.JUNIOR,
            "12": cls.SENIOR,
            "12th": cls.SENIOR,
        }
        if text in aliases:
            return aliases[text]
        for grade in cls:
            if grade.value.lower() == text:
                return grade
        raise ValueError(f"Unknown grade '{value}'. Choose Freshman, Sophomore, Junior, or Senior")


def parse_yes_no(value: Any) -> bool:
    """Parse the induction flag as stored in the ledger ("Yes"/"No") or as a bool."""
    if isinstance(value, bool):
        return value
    text = str(value or "").strip().lower()
    if text in ("yes", "y", "true", "1"):
        return True
    if text in ("no", "n", "false", "0", ""):
        return False
    raise ValueError(f"Inducted must be yes or no, got '{value}'")


class HoursSubmission(BaseModel):
    """
    Hours being added in one submission.

    Category amounts are deltas, not running totals.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, max_length=120)
    grade: Grade
    summer_hours: float = Field(0.0, ge=0)
    chapter_hours: float = Field(0.0, ge=0)
    other_hours: float = Field(0.0, ge=0)
    inducted: bool = False

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v: Any) -> Any:
        # Collapse internal whitespace so "Jane  Doe" and "Jane Doe" match
        if isinstance(v, str):
            return " ".join(v.split())
        return v

    @field_validator("grade", mode="before")
    @classmethod
    def _parse_grade(cls, v: Any) -> Grade:
        return Grade.parse(v)

    @field_validator("inducted", mode="before")
    @classmethod
    def _parse_inducted(cls, v: Any) -> bool:
        return parse_yes_no(v)

    @field_validator("summer_hours", "chapter_hours", "other_hours", mode="before")
    @classmethod
    def _blank_is_zero(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return 0.0
        return v

    @property
    def name_key(self) -> str:
        """Case-insensitive lookup key for ledger matching."""
        return normalize_name(self.name)

    @classmethod
    def from_form(cls, data: dict[str, Any]) -> "HoursSubmission":
        """Build a submission from raw form input.

        Raises:
            SubmissionValidationError: naming the first offending field
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0]
            field = str(first["loc"][0]) if first.get("loc") else "submission"
            message = first.get("msg", "Invalid value")
            # pydantic prefixes errors raised inside validators
            message = message.removeprefix("Value error, ")
            raise SubmissionValidationError(field, message) from e


def normalize_name(name: str) -> str:
    """Key for matching a member row: trimmed and lowercased, inner spacing kept.

    The ledger script compares lowercased names, so "Jane  Doe" and "Jane Doe"
    are different rows there and must be here too.
    """
    return (name or "").strip().lower()
