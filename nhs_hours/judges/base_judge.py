"""Judge base class shared by every verification step.

A judge looks at one thing (a proof artifact, or a posting's text) and
returns a VerificationVerdict. Local judges run rules in Python; remote
judges call Gemini or the Vision API, can fail, and cost money. The gate
decides what a remote failure means; judges only report it.
"""

import logging
import re
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from ..llm.llm_client import LLMClient, LLMTask, prompt_fingerprint
from .schemas.config import VerificationConfig
from .schemas.verdict import Confidence, Severity, ValidationIssue, VerdictStatus, VerificationVerdict

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent / "prompts"

FENCED_BLOCK = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)


class JudgeType(Enum):
    DETERMINISTIC = "deterministic"  # Local rules, reproducible, free
    REMOTE = "remote"  # External model or API, may fail, has cost


class BaseJudge(ABC):
    """One verification concern.

    Subclasses provide `name`, `judge_type`, and `validate()`. Judges that
    talk to Gemini set `llm_task` and keep their prompt in
    prompts/{name}_judge.txt.
    """

    llm_task: LLMTask = LLMTask.PROOF_VERIFICATION

    def __init__(self, config: VerificationConfig, llm_client: Optional[LLMClient] = None):
        self.config = config
        self._llm_client = llm_client
        self._prompt_template: Optional[str] = None

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def judge_type(self) -> JudgeType:
        pass

    @abstractmethod
    def validate(self, subject: Any, context: Optional[dict[str, Any]] = None) -> VerificationVerdict:
        """Judge one subject: a ProofArtifact, or plain text for moderation."""
        pass

    # ─── LLM plumbing ────────────────────────────────────────────────────────

    @property
    def prompt_file(self) -> Path:
        return PROMPTS_DIR / f"{self.name}_judge.txt"

    def get_llm_client(self) -> LLMClient:
        """The injected client, or one built lazily for this judge's task."""
        if self._llm_client is None:
            self._llm_client = LLMClient(task=self.llm_task, model=self.config.judge_model)
        return self._llm_client

    def load_prompt_template(self) -> str:
        if self._prompt_template is None:
            if not self.prompt_file.exists():
                logger.warning(f"No prompt template for judge '{self.name}' at {self.prompt_file}")
            self._prompt_template = self.prompt_file.read_text() if self.prompt_file.exists() else ""
        return self._prompt_template

    def format_prompt(self, substitutions: dict[str, Any]) -> str:
        """Fill {placeholders}. Literal JSON braces in the template are left alone."""
        prompt = self.load_prompt_template()
        for key, value in substitutions.items():
            prompt = prompt.replace("{" + key + "}", str(value))
        return prompt

    def compute_prompt_hash(self, prompt: str) -> str:
        return prompt_fingerprint(prompt)

    # ─── Verdict helpers ─────────────────────────────────────────────────────

    def create_verdict(
        self,
        status: VerdictStatus,
        reason: str,
        confidence: Optional[Confidence] = None,
        field: Optional[str] = None,
        issues: Optional[list[ValidationIssue]] = None,
        cost_usd: float = 0.0,
        metadata: Optional[dict[str, Any]] = None,
    ) -> VerificationVerdict:
        return VerificationVerdict(
            status=status,
            reason=reason,
            judge_name=self.name,
            confidence=confidence,
            field=field,
            issues=list(issues or []),
            cost_usd=cost_usd,
            metadata=dict(metadata or {}),
        )

    def add_issue(
        self,
        issues: list[ValidationIssue],
        severity: Severity,
        field: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        issues.append(ValidationIssue(severity=severity, field=field, message=message, details=details))

    # ─── Response cleanup ────────────────────────────────────────────────────

    @staticmethod
    def strip_markdown_json(text: str) -> str:
        """Unwrap a ```json fenced block; Gemini adds one even in JSON mode."""
        fenced = FENCED_BLOCK.search(text)
        return fenced.group(1).strip() if fenced else text.strip()

    @staticmethod
    def extract_json_object(text: str) -> Optional[str]:
        """First balanced {...} in free text, skipping braces inside strings."""
        start = text.find("{")
        if start == -1:
            return None
        depth = 0
        in_string = escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        return None
