"""
Verdict Audit Trail - records verification decisions for officer review.

Each verdict becomes one JSON line. The proof image itself is never written:
only its SHA-256 digest, so a disputed submission can be matched against
the photo the member still has.

This enables:
1. Reviewing why a submission was rejected
2. Spotting override use
3. Detecting repeated reuse of the same photo
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from ..judges.schemas.verdict import VerificationVerdict
    from ..models.proof import ProofArtifact

logger = logging.getLogger(__name__)


@dataclass
class VerdictAuditEntry:
    """A single audit entry for one verification decision."""

    submitter: str
    judge_name: str
    status: str
    reason: str
    image_sha256: str
    description: str
    confidence: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_verdict(
        cls, verdict: "VerificationVerdict", artifact: "ProofArtifact", submitter: str = ""
    ) -> "VerdictAuditEntry":
        return cls(
            submitter=submitter,
            judge_name=verdict.judge_name,
            status=verdict.status.value,
            reason=verdict.reason,
            image_sha256=artifact.sha256,
            description=artifact.description,
            confidence=verdict.confidence.value if verdict.confidence else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "submitter": self.submitter,
            "judge": self.judge_name,
            "status": self.status,
            "reason": self.reason,
            "confidence": self.confidence,
            "image_sha256": self.image_sha256,
            "description": self.description,
        }


class VerdictAuditTrail:
    """Appends verdict entries to a JSONL file and keeps this run's entries.

    Usage:
        trail = VerdictAuditTrail(Path("~/.nhs-hours/verdicts.jsonl"))
        trail.record(verdict, artifact, submitter="Jane Doe")
        trail.get_entries_for_image(artifact.sha256)
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path).expanduser() if path else None
        self._entries: list[VerdictAuditEntry] = []

    def record(
        self, verdict: "VerificationVerdict", artifact: "ProofArtifact", submitter: str = ""
    ) -> VerdictAuditEntry:
        """Record one verdict, appending to the file when a path is configured."""
        entry = VerdictAuditEntry.from_verdict(verdict, artifact, submitter)
        self._entries.append(entry)
        if self.path is not None:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "a") as f:
                    f.write(json.dumps(entry.to_dict()) + "\n")
            except OSError as e:
                # The verdict stands; only the file copy is lost
                logger.error(f"Could not append to audit log {self.path}: {e}")
        return entry

    def get_all_entries(self) -> list[VerdictAuditEntry]:
        return self._entries.copy()

    def get_entries_for_image(self, image_sha256: str) -> list[dict[str, Any]]:
        """All recorded entries (file and this run) for one image digest."""
        if self.path is None or not self.path.exists():
            return [e.to_dict() for e in self._entries if e.image_sha256 == image_sha256]

        matches = []
        with open(self.path) as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError:
                    logger.warning(f"Skipping malformed audit line {line_number} in {self.path}")
                    continue
                if record.get("image_sha256") == image_sha256:
                    matches.append(record)
        return matches
