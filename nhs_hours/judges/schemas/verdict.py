"""Verdict schemas for proof verification results.

Defines the common result types used by all judges to report whether a
proof artifact is acceptable, plus the issues (errors, warnings, guidance)
attached to a verdict or to an hours submission.
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class Severity(str, Enum):
    """Severity level for validation issues."""

    ERROR = "error"  # Blocks acceptance
    WARNING = "warning"  # Shown as guidance, doesn't block
    INFO = "info"  # Informational


class VerdictStatus(str, Enum):
    """Why a verdict came out the way it did.

    Every status except ACCEPTED and OVERRIDDEN is a rejection.
    """

    ACCEPTED = "accepted"
    OVERRIDDEN = "overridden"  # Officer override code supplied
    REJECTED = "rejected"  # A judge looked at the proof and said no
    INVALID_INPUT = "invalid_input"  # Failed local checks before any network call
    UNPARSEABLE = "unparseable"  # AI response could not be interpreted
    UNAVAILABLE = "unavailable"  # Remote verifier unreachable or errored

    @property
    def is_pass(self) -> bool:
        return self in (VerdictStatus.ACCEPTED, VerdictStatus.OVERRIDDEN)


class Confidence(str, Enum):
    """Confidence tier reported by the AI verifier."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class ValidationIssue:
    """A specific issue found while checking a submission or its proof.

    Attributes:
        severity: How serious the issue is (error, warning, info)
        field: The form field or component where the issue was found
        message: Human-readable description of the issue
        details: Optional structured data about the issue
    """

    severity: Severity
    field: str
    message: str
    details: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "severity": self.severity.value,
            "field": self.field,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


@dataclass
class VerificationVerdict:
    """Result of verifying one proof artifact.

    Attributes:
        status: Outcome category (accepted, rejected, unavailable, ...)
        reason: Human-readable explanation, reusable as on-screen guidance
        judge_name: Name of the judge that produced this verdict
        confidence: Confidence tier from the AI verifier, if any
        field: Offending form field for invalid_input verdicts
        issues: Supporting issues found along the way
        cost_usd: Estimated cost of remote calls for this verdict
        metadata: Additional judge-specific data (labels, matching URLs, model)
    """

    status: VerdictStatus
    reason: str
    judge_name: str
    confidence: Optional[Confidence] = None
    field: Optional[str] = None
    issues: list[ValidationIssue] = dataclasses.field(default_factory=list)
    cost_usd: float = 0.0
    metadata: dict[str, Any] = dataclasses.field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return self.status.is_pass

    @property
    def errors(self) -> list[ValidationIssue]:
        """Get only error-severity issues."""
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        """Get only warning-severity issues."""
        return [i for i in self.issues if i.severity == Severity.WARNING]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "is_valid": self.is_valid,
            "status": self.status.value,
            "reason": self.reason,
            "judge_name": self.judge_name,
            "confidence": self.confidence.value if self.confidence else None,
            "field": self.field,
            "issues": [i.to_dict() for i in self.issues],
            "cost_usd": self.cost_usd,
            "metadata": self.metadata,
        }
