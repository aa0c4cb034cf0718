"""Heuristic Judge - description-only proof check used without the AI verifier.

Checks for:
1. A description comfortably longer than the input minimum
2. At least one explanatory connective tying the photo to the activity
   ("because", "this shows", "as you can see", ...)

Deterministic and offline. Stricter than the input validation.
Connectives match whole words only: "improves" does not contain "proves".
"""

import logging
import re
from typing import Any, Optional

from ..models.proof import ProofArtifact
from .base_judge import BaseJudge, JudgeType
from .schemas.verdict import Severity, ValidationIssue, VerdictStatus, VerificationVerdict

logger = logging.getLogger(__name__)


class HeuristicJudge(BaseJudge):
    """Judge that accepts proof on the strength of its written justification."""

    @property
    def name(self) -> str:
        return "heuristic"

    @property
    def judge_type(self) -> JudgeType:
        return JudgeType.DETERMINISTIC

    def validate(self, subject: ProofArtifact, context: Optional[dict[str, Any]] = None) -> VerificationVerdict:
        description = subject.description.strip()
        lowered = description.lower()
        issues: list[ValidationIssue] = []
        min_length = self.config.heuristic_min_length

        if len(description) < min_length:
            self.add_issue(
                issues,
                Severity.ERROR,
                "description",
                f"Description is {len(description)} characters; at least {min_length} are needed",
                details={"length": len(description), "required": min_length},
            )

        matched = [c for c in self.config.connectives if re.search(rf"\b{re.escape(c)}\b", lowered)]
        if not matched:
            examples = ", ".join(f'"{c}"' for c in self.config.connectives[:4])
            self.add_issue(
                issues,
                Severity.ERROR,
                "description",
                f"Explain how the photo proves the activity, using a phrase such as {examples}",
            )

        metadata = {"length": len(description), "matched_connectives": matched}
        if issues:
            reason = "; ".join(i.message for i in issues)
            logger.debug(f"Heuristic rejection: {reason}")
            return self.create_verdict(
                VerdictStatus.REJECTED, reason, field="description", issues=issues, metadata=metadata
            )

        return self.create_verdict(
            VerdictStatus.ACCEPTED,
            "Description explains how the photo documents the service activity",
            metadata=metadata,
        )
