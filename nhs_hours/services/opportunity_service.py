"""
Opportunity service: volunteer listings backed by a YAML file.

Only approved listings are shown. New postings are screened by the content
moderation judge, checked for duplicates (same title, location, and date),
and stored unapproved until an officer flips is_approved.
"""

import datetime
import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from ..config import get_opportunities_path
from ..errors import SubmissionValidationError
from ..judges.content_judge import ContentModerationJudge
from ..models.opportunity import ImpactLevel, VolunteerOpportunity

logger = logging.getLogger(__name__)


def read_raw_listings(path: Path) -> list[Any]:
    """Listing entries exactly as stored, valid or not."""
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    items = raw.get("opportunities", []) if isinstance(raw, dict) else raw
    return list(items or [])


def load_opportunities(path: Path) -> list[VolunteerOpportunity]:
    """Load listings from YAML. Invalid entries are skipped with a warning."""
    opportunities = []
    for index, item in enumerate(read_raw_listings(path)):
        try:
            opportunities.append(VolunteerOpportunity.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping invalid opportunity #{index + 1} in {path}: {e.errors()[0].get('msg')}")
    return opportunities


class OpportunityService:
    """Lists approved opportunities and accepts new postings."""

    def __init__(
        self,
        path: Optional[Path] = None,
        moderation_judge: Optional[ContentModerationJudge] = None,
    ):
        self.path = Path(path) if path else get_opportunities_path()
        self.moderation_judge = moderation_judge or ContentModerationJudge(use_llm=False)
        self._opportunities: Optional[list[VolunteerOpportunity]] = None

    @property
    def opportunities(self) -> list[VolunteerOpportunity]:
        if self._opportunities is None:
            if self.path.exists():
                self._opportunities = load_opportunities(self.path)
            else:
                logger.warning(f"Opportunities file not found at {self.path}, starting empty")
                self._opportunities = []
        return self._opportunities

    def list_approved(
        self,
        chapter_sponsored: Optional[bool] = None,
        impact: Optional[str] = None,
        upcoming_from: Optional[datetime.date] = None,
    ) -> list[VolunteerOpportunity]:
        """Approved listings sorted by date, optionally filtered."""
        impact_level = ImpactLevel.parse(impact) if impact else None
        results = [
            o
            for o in self.opportunities
            if o.is_approved
            and (chapter_sponsored is None or o.is_chapter_sponsored == chapter_sponsored)
            and (impact_level is None or o.impact_level == impact_level)
            and (upcoming_from is None or o.date >= upcoming_from)
        ]
        return sorted(results, key=lambda o: o.date)

    def propose(self, data: dict[str, Any]) -> VolunteerOpportunity:
        """Validate, screen, and store a new posting (unapproved).

        Raises:
            SubmissionValidationError: invalid field, inappropriate content, or duplicate
        """
        try:
            opportunity = VolunteerOpportunity.model_validate({**data, "is_approved": False})
        except ValidationError as e:
            first = e.errors()[0]
            field = str(first["loc"][0]) if first.get("loc") else "opportunity"
            raise SubmissionValidationError(field, first.get("msg", "Invalid value").removeprefix("Value error, ")) from e

        verdict = self.moderation_judge.validate(opportunity.moderation_text)
        if not verdict.is_valid:
            logger.info(f"Opportunity '{opportunity.title}' rejected by moderation: {verdict.reason}")
            raise SubmissionValidationError(
                "description", "Content appears inappropriate. Please review your submission."
            )

        if any(o.duplicate_key == opportunity.duplicate_key for o in self.opportunities):
            raise SubmissionValidationError(
                "title", "A similar opportunity already exists for this date and location."
            )

        self.opportunities.append(opportunity)
        self.append(opportunity)
        logger.info(f"Opportunity '{opportunity.title}' stored for officer approval")
        return opportunity

    def append(self, opportunity: VolunteerOpportunity) -> None:
        """Add one listing to the YAML file.

        Existing entries are written back as stored, including ones that fail
        validation, so an officer can still fix them by hand.
        """
        items = read_raw_listings(self.path) if self.path.exists() else []
        items.append(opportunity.model_dump(mode="json", exclude_none=True))
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.safe_dump({"opportunities": items}, f, sort_keys=False, allow_unicode=True)
