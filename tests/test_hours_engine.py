"""Tests for the hours aggregation and policy engine.

Effective total = min(summer, 8) + chapter + other, merges are additive.
"""

import pytest

from nhs_hours.errors import SubmissionValidationError
from nhs_hours.judges.schemas.verdict import Severity
from nhs_hours.models.member import MemberRecord
from nhs_hours.models.submission import HoursSubmission
from nhs_hours.policy.hours_engine import HoursPolicyEngine
from nhs_hours.policy.policy_registry import HoursPolicy

# ─── Helpers ──────────────────────────────────────────────────────────────────


def _submission(**overrides) -> HoursSubmission:
    """Build a submission with sensible defaults, override any field."""
    defaults = dict(name="Jane Doe", grade="Junior", summer_hours=0, chapter_hours=0, other_hours=0, inducted="Yes")
    defaults.update(overrides)
    return HoursSubmission(**defaults)


@pytest.fixture
def engine(policy):
    return HoursPolicyEngine(policy)


# ─── effective_total ─────────────────────────────────────────────────────────


class TestEffectiveTotal:
    """min(summer, cap) + chapter + other."""

    def test_all_zero(self, engine):
        """No hours → zero total."""
        assert engine.effective_total(0, 0, 0) == 0

    def test_summer_under_cap(self, engine):
        """Summer below the cap counts in full."""
        assert engine.effective_total(5, 4, 0) == 9

    def test_summer_over_cap(self, engine):
        """Summer above 8 only contributes 8."""
        assert engine.effective_total(10, 2, 0) == 10

    def test_half_hour_steps(self, engine):
        """0.5-hour values add exactly."""
        assert engine.effective_total(7.5, 0.5, 1.5) == pytest.approx(9.5)

    def test_summer_exactly_at_cap(self, engine):
        """Summer equal to the cap counts in full."""
        assert engine.effective_total(8, 0, 0) == 8

    def test_custom_cap(self):
        """Cap comes from the policy, not a literal."""
        engine = HoursPolicyEngine(HoursPolicy(summer_cap=4))
        assert engine.effective_total(10, 1, 1) == 6


# ─── merge ──────────────────────────────────────────────────────────────────


class TestMerge:
    """Additive merge of a submission into a member row."""

    def test_new_member_starts_from_zero(self, engine):
        """Alex Kim (Sophomore) submits summer=10, chapter=2 → stored summer 10, total 10."""
        sub = _submission(name="Alex Kim", grade="Sophomore", summer_hours=10, chapter_hours=2, inducted="No")
        merged = engine.merge(None, sub)
        assert merged.name == "Alex Kim"
        assert merged.grade == "Sophomore"
        assert merged.summer_hours == 10
        assert merged.chapter_hours == 2
        assert merged.other_hours == 0
        assert merged.total_hours == 10

    def test_existing_member_adds(self, engine):
        """Existing {5,4,0} + {5,2,1} → {10,6,1}, total 15."""
        existing = MemberRecord(
            name="Jane Doe", grade="Junior", summer_hours=5, chapter_hours=4, other_hours=0, total_hours=9, row_number=3
        )
        merged = engine.merge(existing, _submission(summer_hours=5, chapter_hours=2, other_hours=1))
        assert (merged.summer_hours, merged.chapter_hours, merged.other_hours) == (10, 6, 1)
        assert merged.total_hours == 15
        assert merged.row_number == 3

    def test_same_submission_twice_accumulates(self, engine):
        """{summer 2, chapter 3} twice → {summer 4, chapter 6}."""
        sub = _submission(summer_hours=2, chapter_hours=3)
        first = engine.merge(None, sub)
        second = engine.merge(first, sub)
        assert second.summer_hours == 4
        assert second.chapter_hours == 6
        assert second.total_hours == 10

    def test_identity_follows_submission(self, engine):
        """Grade and induction status come from the latest submission."""
        existing = MemberRecord(name="jane doe", grade="Sophomore", inducted=False, chapter_hours=1)
        merged = engine.merge(existing, _submission(grade="Junior", inducted="Yes", chapter_hours=1))
        assert merged.name == "Jane Doe"
        assert merged.grade == "Junior"
        assert merged.inducted is True

    def test_stale_stored_total_is_ignored(self, engine):
        """Total is recomputed from counters, not added to the stored value."""
        existing = MemberRecord(name="Jane Doe", summer_hours=2, total_hours=99)
        merged = engine.merge(existing, _submission(chapter_hours=1))
        assert merged.total_hours == 3


# ─── validate_submission ──────────────────────────────────────────────────────


class TestValidateSubmission:
    """Hour amounts checked before anything is sent."""

    def test_valid_half_hours(self, engine):
        """1.5 chapter hours is a valid increment."""
        engine.validate_submission(_submission(chapter_hours=1.5))

    def test_quarter_hour_rejected(self, engine):
        """0.25 is not a multiple of 0.5 → field named."""
        with pytest.raises(SubmissionValidationError) as exc_info:
            engine.validate_submission(_submission(summer_hours=0.25))
        assert exc_info.value.field == "summer_hours"
        assert "0.5" in exc_info.value.message

    def test_all_zero_rejected(self, engine):
        """A submission must add hours to at least one category."""
        with pytest.raises(SubmissionValidationError) as exc_info:
            engine.validate_submission(_submission())
        assert exc_info.value.field == "hours"


# ─── guidance / progress ──────────────────────────────────────────────────────


class TestGuidance:
    """Chapter minimum and summer cap notes."""

    def test_chapter_shortfall_is_warning(self, engine):
        """2 chapter hours → warning that 4 more are needed."""
        issues = engine.guidance(MemberRecord(name="A", chapter_hours=2))
        chapter = [i for i in issues if i.field == "chapter_hours"]
        assert len(chapter) == 1
        assert chapter[0].severity == Severity.WARNING
        assert "4" in chapter[0].message

    def test_summer_over_cap_is_info(self, engine):
        """10 summer hours → info that 2 are not counted."""
        issues = engine.guidance(MemberRecord(name="A", summer_hours=10, chapter_hours=6))
        assert len(issues) == 1
        assert issues[0].severity == Severity.INFO
        assert issues[0].field == "summer_hours"

    def test_no_guidance_when_on_policy(self, engine):
        """Chapter minimum met and summer within cap → nothing to say."""
        assert engine.guidance(MemberRecord(name="A", summer_hours=8, chapter_hours=6)) == []


class TestProgress:
    """Standing against the 10-hour checkpoint and 30-hour milestone."""

    def test_halfway(self, engine):
        """15 effective hours → 50%, mid-year met, 15 remaining."""
        report = engine.progress(MemberRecord(name="A", summer_hours=10, chapter_hours=6, other_hours=1))
        assert report.effective_total == 15
        assert report.percent_complete == 50.0
        assert report.midyear_met is True
        assert report.complete is False
        assert report.hours_remaining == 15
        assert report.counted_summer == 8
        assert report.uncounted_summer == 2
        assert report.tier == "midyear"

    def test_capped_at_100(self, engine):
        """45 hours → 100%, complete."""
        report = engine.progress(MemberRecord(name="A", chapter_hours=45))
        assert report.percent_complete == 100.0
        assert report.complete is True
        assert report.hours_remaining == 0
        assert report.tier == "complete"

    def test_zero_hours(self, engine):
        """Empty record → behind, 0%."""
        report = engine.progress(MemberRecord(name="A"))
        assert report.percent_complete == 0
        assert report.tier == "behind"
        assert report.chapter_shortfall == 6


# ─── ledger payload / reconcile ──────────────────────────────────────────────


class TestLedgerPayload:
    """Wire payload for the additive endpoint."""

    def test_payload_carries_deltas(self, engine):
        """Hour fields are this submission's amounts, total is capped."""
        payload = engine.ledger_payload(_submission(summer_hours=10, chapter_hours=2, inducted="No"))
        assert payload == {
            "name": "Jane Doe",
            "grade": "Junior",
            "inducted": "No",
            "summerHours": 10,
            "chapterHours": 2,
            "otherHours": 0,
            "totalHours": 10,
        }


class TestReconcileTotal:
    """Stored totals that disagree with the counters are replaced."""

    def test_drift_replaced(self, engine):
        record = MemberRecord(name="A", summer_hours=12, chapter_hours=1, total_hours=13)
        assert engine.reconcile_total(record).total_hours == 9

    def test_consistent_total_kept(self, engine):
        record = MemberRecord(name="A", summer_hours=3, chapter_hours=1, total_hours=4)
        assert engine.reconcile_total(record).total_hours == 4
