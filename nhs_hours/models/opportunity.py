"""
Pydantic model for a volunteer opportunity listing.
"""

import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ImpactLevel(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def parse(cls, value) -> "ImpactLevel":
        if isinstance(value, ImpactLevel):
            return value
        text = str(value or "").strip().lower()
        for level in cls:
            if level.value.lower() == text:
                return level
        raise ValueError(f"Impact level must be High, Medium, or Low, got '{value}'")


class VolunteerOpportunity(BaseModel):
    """
    A service opportunity shown to members.

    New postings start unapproved; only approved entries are listed.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=3, max_length=200)
    location: str = Field(..., min_length=1)
    date: datetime.date
    description: str = ""
    time: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    is_chapter_sponsored: bool = False
    impact_level: ImpactLevel = ImpactLevel.MEDIUM
    hours_estimate: Optional[str] = None
    organizer: str = ""
    contact_email: Optional[str] = None
    signup_url: Optional[str] = None
    is_approved: bool = False

    @field_validator("title", "location", "description", "organizer", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("impact_level", mode="before")
    @classmethod
    def _parse_impact(cls, v):
        return ImpactLevel.parse(v)

    @field_validator("contact_email")
    @classmethod
    def _check_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError(f"Invalid contact email: {v}")
        return v

    @property
    def moderation_text(self) -> str:
        """Free text screened before a posting is accepted."""
        return " ".join(part for part in (self.title, self.description, self.organizer) if part)

    @property
    def duplicate_key(self) -> tuple[str, str, datetime.date]:
        return (self.title.casefold(), self.location.casefold(), self.date)
