"""Hours Aggregation & Policy Engine.

Turns a verified HoursSubmission into an additive ledger update and
computes display-ready progress against the chapter milestones.

Effective total = min(summer, summer_cap) + chapter + other

Summer hours above the cap are stored but never counted. Merges are
additive: a member who submits {summer: 2, chapter: 3} twice ends up with
{summer: 4, chapter: 6}.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional

from ..errors import SubmissionValidationError
from ..judges.schemas.verdict import Severity, ValidationIssue
from ..models.member import MemberRecord
from ..models.submission import HoursSubmission
from .policy_registry import HoursPolicy, get_hours_policy

logger = logging.getLogger(__name__)

HOUR_FIELDS = ("summer_hours", "chapter_hours", "other_hours")


@dataclass
class ProgressReport:
    """Member standing against the chapter milestones."""

    effective_total: float
    percent_complete: float  # 0-100, capped
    midyear_met: bool
    complete: bool
    hours_remaining: float
    chapter_shortfall: float
    counted_summer: float
    uncounted_summer: float
    tier: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "effective_total": self.effective_total,
            "percent_complete": self.percent_complete,
            "midyear_met": self.midyear_met,
            "complete": self.complete,
            "hours_remaining": self.hours_remaining,
            "chapter_shortfall": self.chapter_shortfall,
            "counted_summer": self.counted_summer,
            "uncounted_summer": self.uncounted_summer,
            "tier": self.tier,
        }


class HoursPolicyEngine:
    """Applies the hours policy to submissions and ledger rows."""

    def __init__(self, policy: Optional[HoursPolicy] = None):
        self.policy = policy or get_hours_policy()

    def effective_total(self, summer: float, chapter: float, other: float) -> float:
        """Capped total: summer counts only up to the cap."""
        return min(summer, self.policy.summer_cap) + chapter + other

    def record_total(self, record: MemberRecord) -> float:
        return self.effective_total(record.summer_hours, record.chapter_hours, record.other_hours)

    def submission_total(self, submission: HoursSubmission) -> float:
        return self.effective_total(submission.summer_hours, submission.chapter_hours, submission.other_hours)

    def validate_submission(self, submission: HoursSubmission) -> None:
        """Check hour amounts against the policy before anything is sent.

        Raises:
            SubmissionValidationError: naming the offending field
        """
        step = self.policy.hour_increment
        for field_name in HOUR_FIELDS:
            value = getattr(submission, field_name)
            if value < 0 or not math.isfinite(value):
                raise SubmissionValidationError(field_name, "Hours must be a non-negative number")
            units = value / step
            if not math.isclose(units, round(units), abs_tol=1e-9):
                raise SubmissionValidationError(field_name, f"Hours must be in {step:g}-hour increments")

        if all(getattr(submission, f) == 0 for f in HOUR_FIELDS):
            raise SubmissionValidationError("hours", "Enter hours for at least one category")

    def merge(self, existing: Optional[MemberRecord], submission: HoursSubmission) -> MemberRecord:
        """Add a submission to a member's stored counters.

        A brand-new member starts from zero. Identity fields (name, grade,
        inducted) follow the latest submission; the total is recomputed.
        """
        base = existing or MemberRecord(name=submission.name)
        merged = MemberRecord(
            name=submission.name,
            grade=submission.grade.value,
            inducted=submission.inducted,
            summer_hours=base.summer_hours + submission.summer_hours,
            chapter_hours=base.chapter_hours + submission.chapter_hours,
            other_hours=base.other_hours + submission.other_hours,
            row_number=base.row_number,
        )
        merged.total_hours = self.record_total(merged)
        logger.debug(
            f"Merged hours for {submission.name}: summer={merged.summer_hours} chapter={merged.chapter_hours} "
            f"other={merged.other_hours} total={merged.total_hours} new_member={existing is None}"
        )
        return merged

    def reconcile_total(self, record: MemberRecord) -> MemberRecord:
        """Replace a stored total that disagrees with its counters."""
        expected = self.record_total(record)
        if not math.isclose(record.total_hours, expected, abs_tol=1e-9):
            logger.warning(
                f"Stored total for {record.name} is {record.total_hours}, counters give {expected}; using {expected}"
            )
            record.total_hours = expected
        return record

    def ledger_payload(self, submission: HoursSubmission) -> dict[str, Any]:
        """Wire payload for the additive ledger endpoint.

        Hour fields are this submission's deltas; the endpoint adds them to
        the stored row.
        """
        return {
            "name": submission.name,
            "grade": submission.grade.value,
            "inducted": "Yes" if submission.inducted else "No",
            "summerHours": submission.summer_hours,
            "chapterHours": submission.chapter_hours,
            "otherHours": submission.other_hours,
            "totalHours": self.submission_total(submission),
        }

    def guidance(self, record: MemberRecord) -> list[ValidationIssue]:
        """Non-blocking guidance for a member's cumulative hours."""
        issues: list[ValidationIssue] = []
        policy = self.policy

        shortfall = max(policy.chapter_minimum - record.chapter_hours, 0)
        if shortfall > 0:
            issues.append(
                ValidationIssue(
                    severity=Severity.WARNING,
                    field="chapter_hours",
                    message=(
                        f"{policy.chapter_minimum:g} of your hours must be chapter-sponsored; "
                        f"you need {shortfall:g} more"
                    ),
                    details={"chapter_hours": record.chapter_hours, "chapter_minimum": policy.chapter_minimum},
                )
            )

        uncounted = max(record.summer_hours - policy.summer_cap, 0)
        if uncounted > 0:
            issues.append(
                ValidationIssue(
                    severity=Severity.INFO,
                    field="summer_hours",
                    message=(
                        f"Only {policy.summer_cap:g} summer hours count toward your total; "
                        f"{uncounted:g} are recorded but not counted"
                    ),
                    details={"summer_hours": record.summer_hours, "summer_cap": policy.summer_cap},
                )
            )
        return issues

    def progress(self, record: MemberRecord) -> ProgressReport:
        """Standing against the mid-year checkpoint and the annual milestone."""
        policy = self.policy
        total = self.record_total(record)
        if policy.total_required > 0:
            percent = min(total / policy.total_required * 100, 100.0)
        else:
            percent = 100.0
        counted_summer = min(record.summer_hours, policy.summer_cap)
        return ProgressReport(
            effective_total=total,
            percent_complete=round(percent, 1),
            midyear_met=total >= policy.midyear_required,
            complete=total >= policy.total_required,
            hours_remaining=max(policy.total_required - total, 0),
            chapter_shortfall=max(policy.chapter_minimum - record.chapter_hours, 0),
            counted_summer=counted_summer,
            uncounted_summer=record.summer_hours - counted_summer,
            tier=policy.tier_for(total),
        )
