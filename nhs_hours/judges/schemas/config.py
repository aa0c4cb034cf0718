"""Configuration for the proof verification gate.

Two verification policies:
- **remote_ai**: Optional image authenticity pre-check (Vision API), then the
  AI proof judge (Gemini via LiteLLM). Used when a Gemini key is configured.
- **heuristic**: Pure Python description checks, stricter than the input
  minimum. Used when the AI key is missing or the policy is forced.

Defines input limits, thresholds, model selection, and the override code.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ...config import POLICY_HEURISTIC, POLICY_REMOTE_AI, VERIFICATION_POLICIES, Settings
from ...constants import (
    ALLOWED_IMAGE_MIME_TYPES,
    EXPLANATORY_CONNECTIVES,
    HEURISTIC_MIN_DESCRIPTION_LENGTH,
    MAX_IMAGE_BYTES,
    MIN_DESCRIPTION_LENGTH,
    WEB_MATCH_SCORE_THRESHOLD,
)


@dataclass
class VerificationConfig:
    """Configuration for the ProofVerificationGate.

    Attributes:
        policy: "remote_ai" or "heuristic"
        allowed_mime_types: Accepted proof image types
        max_image_bytes: Upper bound on proof image size
        min_description_length: Input check, applied before any network call
        heuristic_min_length: Stricter length bar for the heuristic policy
        explanatory_connectives: Phrases the heuristic policy looks for
        override_code: Officer override code (None disables overrides)
        enable_image_authenticity: Run the Vision API pre-check
        reject_low_confidence: Treat a low-confidence AI acceptance as rejection
        judge_model: Model for the AI proof judge (None uses the task default)
        web_match_threshold: Partial-match page score that counts as "found online"
        audit_log_path: JSONL file for verdict audit records (None disables)
    """

    policy: str = POLICY_REMOTE_AI

    # Input validation
    allowed_mime_types: tuple[str, ...] = ALLOWED_IMAGE_MIME_TYPES
    max_image_bytes: int = MAX_IMAGE_BYTES
    min_description_length: int = MIN_DESCRIPTION_LENGTH

    # Heuristic policy
    heuristic_min_length: int = HEURISTIC_MIN_DESCRIPTION_LENGTH
    explanatory_connectives: tuple[str, ...] = EXPLANATORY_CONNECTIVES

    override_code: Optional[str] = None

    # Remote AI policy
    enable_image_authenticity: bool = False
    reject_low_confidence: bool = True
    judge_model: Optional[str] = None
    web_match_threshold: float = WEB_MATCH_SCORE_THRESHOLD

    audit_log_path: Optional[Path] = None

    # Normalized lowercase copies, filled in __post_init__
    _connectives_lower: tuple[str, ...] = field(default=(), init=False, repr=False)

    def __post_init__(self):
        """Validate thresholds and normalize the connective list."""
        if self.policy not in VERIFICATION_POLICIES:
            raise ValueError(f"Unknown verification policy: {self.policy}. Available: {list(VERIFICATION_POLICIES)}")
        if self.min_description_length < 0:
            raise ValueError("min_description_length must be non-negative")
        if self.heuristic_min_length < self.min_description_length:
            raise ValueError(
                f"heuristic_min_length ({self.heuristic_min_length}) must be at least "
                f"min_description_length ({self.min_description_length})"
            )
        if not 0.0 <= self.web_match_threshold <= 1.0:
            raise ValueError(f"web_match_threshold must be in [0, 1], got {self.web_match_threshold}")
        self._connectives_lower = tuple(c.lower() for c in self.explanatory_connectives)

    @property
    def connectives(self) -> tuple[str, ...]:
        return self._connectives_lower

    @classmethod
    def from_settings(cls, settings: Settings) -> "VerificationConfig":
        """Build the gate configuration from environment settings.

        The AI policy needs a Gemini key; without one the gate degrades to
        the heuristic policy.
        """
        policy = settings.verification_policy
        if policy == POLICY_REMOTE_AI and not settings.ai_configured:
            policy = POLICY_HEURISTIC
        return cls(
            policy=policy,
            override_code=settings.override_code,
            enable_image_authenticity=settings.vision_configured,
            audit_log_path=settings.audit_log_path,
        )
