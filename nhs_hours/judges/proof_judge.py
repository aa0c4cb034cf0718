"""Proof Judge - asks the AI verifier whether the photo supports the description.

Sends the proof image (inline base64) and the rubric prompt to Gemini and
interprets the answer:

1. Strict parse: markdown fences stripped, JSON object validated against
   ProofJudgeResponse.
2. Fallback: regex extraction of "isValid" and "reason" from free text.
3. Neither works: UNPARSEABLE rejection.

A low-confidence answer is a rejection. Any provider failure is an
UNAVAILABLE rejection; this judge never fails open.
"""

import json
import logging
import re
from typing import Any, Optional

from pydantic import ValidationError

from ..errors import UnparseableVerdictError
from ..llm.llm_client import get_prompt_version
from ..models.proof import ProofArtifact
from .base_judge import BaseJudge, JudgeType
from .schemas.proof_response import ProofJudgeResponse
from .schemas.verdict import Confidence, VerdictStatus, VerificationVerdict

logger = logging.getLogger(__name__)

IS_VALID_PATTERN = re.compile(r'"?isvalid"?\s*:\s*(true|false)', re.IGNORECASE)
REASON_PATTERN = re.compile(r'"(?:reason|reasoning)"\s*:\s*"([^"]+)"')
CONFIDENCE_PATTERN = re.compile(r'"confidence"\s*:\s*"(high|medium|low)"', re.IGNORECASE)

DEFAULT_ACCEPT_REASON = "Evidence supports your service description."
DEFAULT_REJECT_REASON = (
    "Your image does not clearly show the service activity you described. Make sure the photo "
    "shows the specific volunteer work you performed and matches your written description."
)
UNAVAILABLE_REASON = (
    "Unable to verify your submission due to a technical error. Make sure your image clearly "
    "shows the service activity you describe and try again."
)
UNPARSEABLE_REASON = "Unable to analyze the image properly. Please try again with a clearer image."
LOW_CONFIDENCE_REASON = "The verifier could not confidently match your photo to your description."


class ProofJudge(BaseJudge):
    """Judge that checks image/description consistency with the AI verifier."""

    @property
    def name(self) -> str:
        return "proof"

    @property
    def judge_type(self) -> JudgeType:
        return JudgeType.REMOTE

    def validate(self, subject: ProofArtifact, context: Optional[dict[str, Any]] = None) -> VerificationVerdict:
        prompt = self.format_prompt({"description": subject.description.strip().replace('"', "'")})
        prompt_hash = self.compute_prompt_hash(prompt)

        try:
            client = self.get_llm_client()
            response = client.generate(
                prompt=prompt,
                temperature=0.1,
                max_tokens=1500,
                json_mode=True,
                images=[(subject.image_bytes, subject.mime_type)],
                prompt_version=get_prompt_version("proof_verification"),
            )
        except Exception as e:
            logger.warning(f"Proof verification call failed: {type(e).__name__}: {e}")
            return self.create_verdict(
                VerdictStatus.UNAVAILABLE,
                UNAVAILABLE_REASON,
                metadata={"error": f"{type(e).__name__}: {str(e)[:200]}", "prompt_hash": prompt_hash},
            )

        metadata: dict[str, Any] = {"model": response.model, "prompt_hash": prompt_hash}
        try:
            parsed = self.parse_response(response.text)
        except UnparseableVerdictError as e:
            logger.warning(f"Unparseable proof verdict: {e}")
            metadata["raw_response"] = e.raw_text[:200]
            return self.create_verdict(
                VerdictStatus.UNPARSEABLE, UNPARSEABLE_REASON, cost_usd=response.cost_usd, metadata=metadata
            )

        if not parsed.is_valid:
            return self.create_verdict(
                VerdictStatus.REJECTED,
                parsed.reason or DEFAULT_REJECT_REASON,
                confidence=parsed.confidence,
                cost_usd=response.cost_usd,
                metadata=metadata,
            )

        if parsed.confidence == Confidence.LOW and self.config.reject_low_confidence:
            reason = f"{LOW_CONFIDENCE_REASON} {parsed.reason}".strip()
            return self.create_verdict(
                VerdictStatus.REJECTED,
                reason,
                confidence=parsed.confidence,
                cost_usd=response.cost_usd,
                metadata=metadata,
            )

        return self.create_verdict(
            VerdictStatus.ACCEPTED,
            parsed.reason or DEFAULT_ACCEPT_REASON,
            confidence=parsed.confidence,
            cost_usd=response.cost_usd,
            metadata=metadata,
        )

    def parse_response(self, text: str) -> ProofJudgeResponse:
        """Interpret the verifier's answer.

        Raises:
            UnparseableVerdictError: if isValid cannot be recovered
        """
        if not text or not text.strip():
            raise UnparseableVerdictError("Empty response from verifier", raw_text=text or "")

        cleaned = self.strip_markdown_json(text)
        candidates = [cleaned]
        embedded = self.extract_json_object(cleaned)
        if embedded and embedded != cleaned:
            candidates.append(embedded)

        for candidate in candidates:
            try:
                data = json.loads(candidate)
            except json.JSONDecodeError:
                continue
            if not isinstance(data, dict):
                continue
            try:
                return ProofJudgeResponse.model_validate(data)
            except ValidationError as e:
                logger.debug(f"Verifier JSON failed schema validation: {e}")

        return self._parse_fallback(text)

    @staticmethod
    def _parse_fallback(text: str) -> ProofJudgeResponse:
        """Regex extraction for malformed JSON."""
        valid_match = IS_VALID_PATTERN.search(text)
        if not valid_match:
            raise UnparseableVerdictError("Response has no isValid field", raw_text=text)

        reason_match = REASON_PATTERN.search(text)
        confidence_match = CONFIDENCE_PATTERN.search(text)
        return ProofJudgeResponse(
            is_valid=valid_match.group(1).lower() == "true",
            reason=reason_match.group(1) if reason_match else "",
            confidence=confidence_match.group(1).lower() if confidence_match else None,
        )
