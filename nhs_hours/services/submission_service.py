"""
Submission service: the end-to-end "submit hours with proof" flow.

validate (no network) -> verify proof -> additive ledger update -> re-read standing

Nothing is written to the ledger unless the verification gate passes.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from ..errors import LedgerUnavailableError
from ..judges.orchestrator import ProofVerificationGate
from ..judges.schemas.verdict import ValidationIssue, VerificationVerdict
from ..ledger.repository import MemberLedgerRepository
from ..models.member import MemberRecord
from ..models.proof import ProofArtifact
from ..models.submission import HoursSubmission
from ..policy.hours_engine import HoursPolicyEngine, ProgressReport

logger = logging.getLogger(__name__)


@dataclass
class SubmissionOutcome:
    """Result of one submission attempt.

    Attributes:
        submission: The validated submission
        verdict: Verification gate decision
        record: Member row after the update (None when rejected)
        confirmed: True when record was re-read from the ledger, False when
            it is the locally computed merge
        guidance: Non-blocking policy notes (chapter minimum, summer cap)
        progress: Standing against the milestones (None when rejected)
    """

    submission: HoursSubmission
    verdict: VerificationVerdict
    record: Optional[MemberRecord] = None
    confirmed: bool = False
    guidance: list[ValidationIssue] = field(default_factory=list)
    progress: Optional[ProgressReport] = None

    @property
    def accepted(self) -> bool:
        return self.verdict.is_valid and self.record is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "accepted": self.accepted,
            "submission": self.submission.model_dump(mode="json"),
            "verdict": self.verdict.to_dict(),
            "record": self.record.to_dict() if self.record else None,
            "confirmed": self.confirmed,
            "guidance": [g.to_dict() for g in self.guidance],
            "progress": self.progress.to_dict() if self.progress else None,
        }


class SubmissionService:
    """Runs submissions through the gate, the policy engine, and the ledger."""

    def __init__(
        self,
        gate: ProofVerificationGate,
        repository: MemberLedgerRepository,
        engine: Optional[HoursPolicyEngine] = None,
    ):
        self.gate = gate
        self.repository = repository
        self.engine = engine or repository.engine

    def submit(
        self,
        submission: HoursSubmission,
        artifact: ProofArtifact,
        override_code: Optional[str] = None,
    ) -> SubmissionOutcome:
        """Verify and record one submission.

        Raises:
            SubmissionValidationError: hour amounts fail the policy (before any network call)
            ConfigurationError: ledger writes are not configured
            LedgerUnavailableError / LedgerWriteError: the write failed
        """
        self.engine.validate_submission(submission)

        verdict = self.gate.verify(artifact, override_code=override_code, submitter=submission.name)
        if not verdict.is_valid:
            return SubmissionOutcome(submission=submission, verdict=verdict)

        merged = self.repository.upsert_by_name(submission)

        record, confirmed = merged, False
        try:
            stored = self.repository.find_by_name(submission.name)
        except LedgerUnavailableError as e:
            logger.warning(f"Submission recorded but standing could not be refreshed: {e}")
            stored = None
        if stored is not None:
            record, confirmed = stored, True
            if abs(stored.total_hours - merged.total_hours) > 1e-9:
                logger.warning(
                    f"Ledger total for {submission.name} is {stored.total_hours:g}, "
                    f"expected {merged.total_hours:g}; another update may have landed concurrently"
                )

        return SubmissionOutcome(
            submission=submission,
            verdict=verdict,
            record=record,
            confirmed=confirmed,
            guidance=self.engine.guidance(record),
            progress=self.engine.progress(record),
        )
