"""Content Judge - screens free text for new volunteer opportunity postings.

Asks the LLM for a one-word APPROPRIATE / INAPPROPRIATE classification.
Falls back to a keyword deny-list when no client is available or the call
fails, so a provider outage never lets a posting through unchecked.
"""

import logging
import re
from typing import Any, Optional

from ..constants import MODERATION_DENYLIST
from ..llm.llm_client import LLMClient, LLMTask
from .base_judge import BaseJudge, JudgeType
from .schemas.config import VerificationConfig
from .schemas.verdict import VerdictStatus, VerificationVerdict

logger = logging.getLogger(__name__)

LABEL_PATTERN = re.compile(r"\b(INAPPROPRIATE|APPROPRIATE)\b")


class ContentModerationJudge(BaseJudge):
    """Judge that classifies posting text as appropriate or not."""

    llm_task = LLMTask.CONTENT_MODERATION

    def __init__(
        self,
        config: Optional[VerificationConfig] = None,
        llm_client: Optional[LLMClient] = None,
        use_llm: bool = True,
        denylist: tuple[str, ...] = MODERATION_DENYLIST,
    ):
        super().__init__(config or VerificationConfig(), llm_client)
        self.use_llm = use_llm
        self.denylist = denylist

    @property
    def name(self) -> str:
        return "content"

    @property
    def judge_type(self) -> JudgeType:
        return JudgeType.REMOTE if self.use_llm else JudgeType.DETERMINISTIC

    def validate(self, subject: str, context: Optional[dict[str, Any]] = None) -> VerificationVerdict:
        text = subject.strip()
        if not text:
            return self.create_verdict(VerdictStatus.INVALID_INPUT, "Posting text is empty", field="description")

        if self.use_llm:
            try:
                return self._classify_with_llm(text)
            except Exception as e:
                logger.warning(f"Moderation call failed, using deny-list: {type(e).__name__}: {e}")

        return self._classify_with_denylist(text)

    def is_appropriate(self, text: str) -> bool:
        return self.validate(text).is_valid

    def _classify_with_llm(self, text: str) -> VerificationVerdict:
        prompt = self.format_prompt({"text": text.replace('"', "'")})
        response = self.get_llm_client().generate(prompt=prompt, temperature=0.0, max_tokens=10)
        match = LABEL_PATTERN.search(response.text.upper())
        if not match:
            raise ValueError(f"Unexpected moderation answer: {response.text[:50]!r}")

        metadata = {"method": "llm", "model": response.model}
        if match.group(1) == "INAPPROPRIATE":
            return self.create_verdict(
                VerdictStatus.REJECTED,
                "This posting was flagged as inappropriate for a student volunteer board",
                cost_usd=response.cost_usd,
                metadata=metadata,
            )
        return self.create_verdict(
            VerdictStatus.ACCEPTED, "Posting looks appropriate", cost_usd=response.cost_usd, metadata=metadata
        )

    def _classify_with_denylist(self, text: str) -> VerificationVerdict:
        lowered = text.lower()
        hits = [word for word in self.denylist if word in lowered]
        metadata = {"method": "denylist", "matched": hits}
        if hits:
            return self.create_verdict(
                VerdictStatus.REJECTED,
                f"Posting contains disallowed terms: {', '.join(hits)}",
                metadata=metadata,
            )
        return self.create_verdict(VerdictStatus.ACCEPTED, "Posting looks appropriate", metadata=metadata)
