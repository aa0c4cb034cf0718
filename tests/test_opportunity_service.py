"""Tests for volunteer opportunity listing and posting."""

import datetime

import pytest
import yaml

from nhs_hours.config import CONFIG_DIR
from nhs_hours.errors import SubmissionValidationError
from nhs_hours.services.opportunity_service import OpportunityService, load_opportunities

LISTINGS = {
    "opportunities": [
        {
            "title": "Park Cleanup",
            "location": "Riverside Park",
            "date": "2026-10-24",
            "is_chapter_sponsored": True,
            "impact_level": "Medium",
            "is_approved": True,
        },
        {
            "title": "Food Bank Sorting",
            "location": "Regional Food Bank",
            "date": "2026-10-03",
            "is_chapter_sponsored": True,
            "impact_level": "High",
            "is_approved": True,
        },
        {
            "title": "Library Homework Help",
            "location": "Public Library",
            "date": "2026-11-12",
            "impact_level": "Low",
            "is_approved": True,
        },
        {"title": "Senior Center Visit", "location": "Oak Senior Center", "date": "2026-11-20"},
    ]
}

# ─── Helpers ──────────────────────────────────────────────────────────────────


def _service(tmp_path, listings=LISTINGS) -> OpportunityService:
    path = tmp_path / "opportunities.yaml"
    path.write_text(yaml.safe_dump(listings))
    return OpportunityService(path=path)


def _posting(**overrides) -> dict:
    data = {
        "title": "Animal Shelter Walk",
        "location": "County Animal Shelter",
        "date": "2026-12-05",
        "description": "Walk and socialize shelter dogs waiting for adoption.",
        "organizer": "County Shelter",
        "contact_email": "volunteer@shelter.org",
    }
    data.update(overrides)
    return data


# ─── Listing ──────────────────────────────────────────────────────────────────


class TestListing:
    """Only approved listings, sorted by date."""

    def test_approved_only_sorted(self, tmp_path):
        titles = [o.title for o in _service(tmp_path).list_approved()]
        assert titles == ["Food Bank Sorting", "Park Cleanup", "Library Homework Help"]

    def test_chapter_filter(self, tmp_path):
        external = _service(tmp_path).list_approved(chapter_sponsored=False)
        assert [o.title for o in external] == ["Library Homework Help"]

    def test_impact_filter_case_insensitive(self, tmp_path):
        high = _service(tmp_path).list_approved(impact="high")
        assert [o.title for o in high] == ["Food Bank Sorting"]

    def test_upcoming_filter(self, tmp_path):
        upcoming = _service(tmp_path).list_approved(upcoming_from=datetime.date(2026, 10, 18))
        assert [o.title for o in upcoming] == ["Park Cleanup", "Library Homework Help"]

    def test_missing_file_is_empty(self, tmp_path):
        assert OpportunityService(path=tmp_path / "nope.yaml").list_approved() == []

    def test_invalid_entry_skipped(self, tmp_path):
        listings = {"opportunities": [{"title": "X", "location": "Y", "date": "2026-10-01"}, *LISTINGS["opportunities"]]}
        path = tmp_path / "o.yaml"
        path.write_text(yaml.safe_dump(listings))
        assert len(load_opportunities(path)) == 4

    def test_bundled_listings_load(self):
        opportunities = load_opportunities(CONFIG_DIR / "opportunities.yaml")
        assert any(o.is_approved for o in opportunities)
        assert any(not o.is_approved for o in opportunities)


# ─── Posting ──────────────────────────────────────────────────────────────────


class TestPropose:
    """Validation, moderation, duplicates, and persistence."""

    def test_accepted_posting_saved_unapproved(self, tmp_path):
        service = _service(tmp_path)
        created = service.propose(_posting(is_approved=True))
        assert created.is_approved is False

        reloaded = OpportunityService(path=service.path)
        assert len(reloaded.opportunities) == 5
        assert "Animal Shelter Walk" not in [o.title for o in reloaded.list_approved()]

    def test_inappropriate_content(self, tmp_path):
        with pytest.raises(SubmissionValidationError) as exc:
            _service(tmp_path).propose(_posting(description="Easy money, totally not a scam"))
        assert exc.value.field == "description"
        assert "inappropriate" in exc.value.message

    def test_duplicate(self, tmp_path):
        with pytest.raises(SubmissionValidationError) as exc:
            _service(tmp_path).propose(
                _posting(title="park cleanup", location="RIVERSIDE PARK", date="2026-10-24")
            )
        assert exc.value.field == "title"
        assert "already exists" in exc.value.message

    def test_same_title_other_date_allowed(self, tmp_path):
        created = _service(tmp_path).propose(_posting(title="Park Cleanup", location="Riverside Park"))
        assert created.date == datetime.date(2026, 12, 5)

    def test_invalid_email(self, tmp_path):
        with pytest.raises(SubmissionValidationError) as exc:
            _service(tmp_path).propose(_posting(contact_email="not-an-email"))
        assert exc.value.field == "contact_email"

    def test_missing_title(self, tmp_path):
        with pytest.raises(SubmissionValidationError) as exc:
            _service(tmp_path).propose(_posting(title=""))
        assert exc.value.field == "title"

    def test_rejected_posting_not_saved(self, tmp_path):
        service = _service(tmp_path)
        with pytest.raises(SubmissionValidationError):
            service.propose(_posting(description="Buy illegal fireworks"))
        assert len(yaml.safe_load(service.path.read_text())["opportunities"]) == 4

    def test_posting_keeps_invalid_entries_on_disk(self, tmp_path):
        """A mistyped listing is skipped for display but survives the rewrite."""
        service = _service(tmp_path, {"opportunities": [{"title": "Broken entry"}, *LISTINGS["opportunities"]]})
        assert len(service.opportunities) == 4

        service.propose(_posting(title="Food Drive"))

        stored = yaml.safe_load(service.path.read_text())["opportunities"]
        assert stored[0] == {"title": "Broken entry"}
        assert [item["title"] for item in stored[1:]] == [
            "Park Cleanup",
            "Food Bank Sorting",
            "Library Homework Help",
            "Senior Center Visit",
            "Food Drive",
        ]
