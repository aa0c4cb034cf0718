"""Proof Verification Gate - decides whether a proof artifact is acceptable.

Handles, in order:
1. Officer override (constant-time code comparison)
2. Input validation with no network calls (image type/size, description length)
3. The configured policy:
   - remote_ai: image authenticity pre-check (if enabled), then the AI proof judge
   - heuristic: description length plus explanatory phrasing
4. Audit of the final verdict

The gate never raises for verification problems and never fails open:
every failure comes back as a rejected verdict with a reason the member
can act on.
"""

from __future__ import annotations

import hmac
import logging
from typing import Optional

from ..config import POLICY_HEURISTIC, POLICY_REMOTE_AI, Settings
from ..llm.llm_client import LLMClient
from ..llm.vision_client import VisionClient
from ..models.proof import ProofArtifact
from ..utils.audit import VerdictAuditTrail
from .heuristic_judge import HeuristicJudge
from .image_authenticity_judge import ImageAuthenticityJudge
from .proof_judge import ProofJudge
from .schemas.config import VerificationConfig
from .schemas.verdict import Severity, ValidationIssue, VerdictStatus, VerificationVerdict

logger = logging.getLogger(__name__)

OVERRIDE_JUDGE_NAME = "override"
INPUT_JUDGE_NAME = "input"


class ProofVerificationGate:
    """Runs the verification pipeline for one proof artifact at a time.

    Usage:
        gate = ProofVerificationGate.from_settings(load_settings())
        verdict = gate.verify(artifact, submitter="Jane Doe")
        if not verdict.is_valid:
            print(verdict.reason)
    """

    def __init__(
        self,
        config: Optional[VerificationConfig] = None,
        proof_judge: Optional[ProofJudge] = None,
        authenticity_judge: Optional[ImageAuthenticityJudge] = None,
        audit_trail: Optional[VerdictAuditTrail] = None,
    ):
        self.config = config or VerificationConfig(policy=POLICY_HEURISTIC)
        self.heuristic_judge = HeuristicJudge(self.config)
        self.proof_judge = proof_judge
        self.authenticity_judge = authenticity_judge
        self.audit_trail = audit_trail or VerdictAuditTrail(self.config.audit_log_path)

        if self.config.policy == POLICY_REMOTE_AI and self.proof_judge is None:
            self.proof_judge = ProofJudge(self.config)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        llm_client: Optional[LLMClient] = None,
        vision_client: Optional[VisionClient] = None,
    ) -> ProofVerificationGate:
        """Build a gate from environment settings, degrading to the heuristic
        policy when the AI key is missing."""
        config = VerificationConfig.from_settings(settings)
        if settings.verification_policy == POLICY_REMOTE_AI and config.policy == POLICY_HEURISTIC:
            logger.warning("GEMINI_API_KEY not configured; proof verification uses the heuristic policy")

        proof_judge = None
        authenticity_judge = None
        if config.policy == POLICY_REMOTE_AI:
            if llm_client is None:
                llm_client = LLMClient(task=ProofJudge.llm_task, api_key=settings.gemini_api_key)
            proof_judge = ProofJudge(config, llm_client=llm_client)
            if config.enable_image_authenticity:
                vision_client = vision_client or VisionClient(settings.vision_api_key)
                authenticity_judge = ImageAuthenticityJudge(config, vision_client)
        return cls(config, proof_judge=proof_judge, authenticity_judge=authenticity_judge)

    @property
    def policy(self) -> str:
        return self.config.policy

    def check_override(self, code: Optional[str]) -> bool:
        """True when the supplied code matches the configured override code."""
        expected = self.config.override_code
        if not code or not expected:
            return False
        return hmac.compare_digest(code.strip().encode(), expected.encode())

    def validate_input(self, artifact: ProofArtifact) -> Optional[VerificationVerdict]:
        """Local checks that run before any network call.

        Returns:
            An INVALID_INPUT verdict naming the field, or None if the input is fine
        """
        config = self.config
        mime_type = (artifact.mime_type or "").lower()

        if mime_type not in config.allowed_mime_types:
            return self._invalid("image", "Please upload a valid image file (JPG, PNG, or WebP)", mime_type=mime_type)
        if artifact.size == 0:
            return self._invalid("image", "The uploaded image is empty")
        if artifact.size > config.max_image_bytes:
            limit_mb = config.max_image_bytes / (1024 * 1024)
            return self._invalid("image", f"Image file size must be less than {limit_mb:g}MB", size=artifact.size)

        description = artifact.description.strip()
        if len(description) < config.min_description_length:
            return self._invalid(
                "description",
                f"Describe your service activity and how the photo proves it "
                f"(at least {config.min_description_length} characters, you wrote {len(description)})",
                length=len(description),
            )
        return None

    def verify(
        self, artifact: ProofArtifact, override_code: Optional[str] = None, submitter: str = ""
    ) -> VerificationVerdict:
        """Verify one proof artifact and record the verdict."""
        verdict = self._evaluate(artifact, override_code)
        logger.info(
            f"Verdict for {submitter or 'anonymous'}: {verdict.status.value} "
            f"(judge={verdict.judge_name}) {verdict.reason}"
        )
        self.audit_trail.record(verdict, artifact, submitter=submitter)
        return verdict

    def _evaluate(self, artifact: ProofArtifact, override_code: Optional[str]) -> VerificationVerdict:
        if override_code:
            if self.check_override(override_code):
                return VerificationVerdict(
                    status=VerdictStatus.OVERRIDDEN,
                    reason="Accepted with officer override code",
                    judge_name=OVERRIDE_JUDGE_NAME,
                )
            logger.warning("Override code supplied but did not match; continuing with normal verification")

        invalid = self.validate_input(artifact)
        if invalid is not None:
            return invalid

        if self.config.policy == POLICY_HEURISTIC or self.proof_judge is None:
            return self.heuristic_judge.validate(artifact)

        cost = 0.0
        metadata: dict = {}
        if self.authenticity_judge is not None:
            authenticity = self.authenticity_judge.validate(artifact)
            if not authenticity.is_valid:
                return authenticity
            cost += authenticity.cost_usd
            metadata["labels"] = authenticity.metadata.get("labels", [])

        verdict = self.proof_judge.validate(artifact)
        verdict.cost_usd += cost
        for key, value in metadata.items():
            verdict.metadata.setdefault(key, value)
        return verdict

    @staticmethod
    def _invalid(field: str, message: str, **details) -> VerificationVerdict:
        return VerificationVerdict(
            status=VerdictStatus.INVALID_INPUT,
            reason=message,
            judge_name=INPUT_JUDGE_NAME,
            field=field,
            issues=[ValidationIssue(severity=Severity.ERROR, field=field, message=message, details=details or None)],
        )
