"""
Gemini access through LiteLLM for proof verification and moderation.

Each task has a primary model and a short fallback chain. A transient
provider failure (rate limit, overload, timeout) moves on to the next model;
an auth or malformed-request failure stops immediately. Proof photos travel
inline as base64 data URIs next to the text prompt.

Usage:
    from nhs_hours.llm.llm_client import LLMClient, LLMTask

    client = LLMClient(task=LLMTask.PROOF_VERIFICATION, api_key=settings.gemini_api_key)
    response = client.generate(prompt, images=[(image_bytes, "image/png")], json_mode=True)
"""

import base64
import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

import litellm
from litellm import completion, completion_cost

from ..constants import LLM_TIMEOUT_SECONDS

litellm.set_verbose = False
litellm.suppress_debug_info = True

logger = logging.getLogger(__name__)

MODEL_GEMINI_25_FLASH = "gemini-2.5-flash"
MODEL_GEMINI_20_FLASH = "gemini-2.0-flash"
MODEL_GEMINI_25_FLASH_LITE = "gemini-2.5-flash-lite"
MODEL_GEMINI_15_FLASH = "gemini-1.5-flash"


@dataclass(frozen=True)
class ModelSpec:
    """How to reach one Gemini model and what it costs per million tokens."""

    litellm_name: str
    input_price: float
    output_price: float
    provider: str = "google"
    json_mode: bool = True

    def estimate_cost(self, input_tokens: int, output_tokens: int) -> float:
        return (input_tokens * self.input_price + output_tokens * self.output_price) / 1_000_000


MODEL_REGISTRY: Dict[str, ModelSpec] = {
    MODEL_GEMINI_25_FLASH: ModelSpec("gemini/gemini-2.5-flash", 0.30, 2.50),
    MODEL_GEMINI_20_FLASH: ModelSpec("gemini/gemini-2.0-flash", 0.10, 0.40),
    MODEL_GEMINI_25_FLASH_LITE: ModelSpec("gemini/gemini-2.5-flash-lite", 0.10, 0.40),
    MODEL_GEMINI_15_FLASH: ModelSpec("gemini/gemini-1.5-flash", 0.075, 0.30),
}


class LLMTask(Enum):
    PROOF_VERIFICATION = "proof_verification"
    CONTENT_MODERATION = "content_moderation"


# Task -> (primary, fallbacks). Moderation answers one word, so it starts on the lite model.
TASK_MODELS: Dict[LLMTask, Tuple[str, List[str]]] = {
    LLMTask.PROOF_VERIFICATION: (MODEL_GEMINI_25_FLASH, [MODEL_GEMINI_20_FLASH]),
    LLMTask.CONTENT_MODERATION: (MODEL_GEMINI_25_FLASH_LITE, [MODEL_GEMINI_20_FLASH]),
}

# Bump when the matching prompt template in judges/prompts/ changes
PROMPT_VERSIONS: Dict[str, str] = {
    LLMTask.PROOF_VERIFICATION.value: "v2.1.0",
    LLMTask.CONTENT_MODERATION.value: "v1.0.0",
}


def get_prompt_version(task_name: str) -> str:
    return PROMPT_VERSIONS.get(task_name, "v0.0.0")


class FailureKind(Enum):
    """How a provider error affects the fallback chain."""

    PERMANENT = "permanent"  # Bad key or request: every model would fail the same way
    TRANSIENT = "transient"  # Worth another model
    UNKNOWN = "unknown"  # Also tried on the next model, logged louder


_PERMANENT_MARKERS = (
    "authentication",
    "api key",
    "unauthorized",
    "401",
    "403",
    "permission denied",
    "invalid request",
    "invalidrequesterror",
)
_TRANSIENT_MARKERS = (
    "rate limit",
    "quota",
    "too many requests",
    "429",
    "500",
    "502",
    "503",
    "timeout",
    "timed out",
    "connection",
    "overloaded",
    "unavailable",
)


def classify_failure(error: Exception) -> FailureKind:
    text = f"{type(error).__name__} {error}".lower()
    if any(marker in text for marker in _PERMANENT_MARKERS):
        return FailureKind.PERMANENT
    if any(marker in text for marker in _TRANSIENT_MARKERS):
        return FailureKind.TRANSIENT
    return FailureKind.UNKNOWN


ImageInput = Tuple[bytes, str]  # (raw bytes, mime type)


@dataclass
class LLMResponse:
    """Model output plus what the audit trail wants to know about the call."""

    text: str
    model: str
    provider: str
    input_tokens: int = 0
    output_tokens: int = 0
    cost_usd: float = 0.0
    finish_reason: Optional[str] = None
    prompt_version: str = ""
    prompt_hash: str = ""
    timestamp: str = ""
    task: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_audit_record(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "task": self.task,
            "prompt_version": self.prompt_version,
            "prompt_hash": self.prompt_hash,
            "timestamp": self.timestamp,
            "tokens": {"input": self.input_tokens, "output": self.output_tokens},
            "cost_usd": self.cost_usd,
            "finish_reason": self.finish_reason,
        }


def prompt_fingerprint(prompt: str, system_prompt: Optional[str] = None) -> str:
    """Short digest identifying the exact prompt text sent."""
    return hashlib.sha256(f"{system_prompt or ''}|||{prompt}".encode()).hexdigest()[:16]


def build_messages(prompt: str, system_prompt: Optional[str], images: Sequence[ImageInput]) -> List[Dict[str, Any]]:
    """Chat messages for LiteLLM; images become image_url parts after the text."""
    messages: List[Dict[str, Any]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    if not images:
        messages.append({"role": "user", "content": prompt})
        return messages

    parts: List[Dict[str, Any]] = [{"type": "text", "text": prompt}]
    for image_bytes, mime_type in images:
        data_uri = f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode('ascii')}"
        parts.append({"type": "image_url", "image_url": {"url": data_uri}})
    messages.append({"role": "user", "content": parts})
    return messages


class LLMClient:
    """Calls Gemini for one task, walking the fallback chain on transient errors.

    Usage:
        client = LLMClient(task=LLMTask.PROOF_VERIFICATION)
        client = LLMClient(model=MODEL_GEMINI_20_FLASH)  # pinned, no fallback
    """

    def __init__(
        self,
        task: Optional[LLMTask] = None,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: int = LLM_TIMEOUT_SECONDS,
        logger=None,
    ):
        """
        Args:
            task: Selects the primary model and fallbacks
            model: Pin a single model (overrides task)
            api_key: Gemini key; LiteLLM reads GEMINI_API_KEY when omitted
            timeout: Per-call timeout in seconds
            logger: Optional AppLogger for call-level debug lines
        """
        self.task = task
        self.api_key = api_key
        self.timeout = timeout
        self.logger = logger

        if model:
            if model not in MODEL_REGISTRY:
                raise ValueError(f"Unknown model: {model}. Available: {sorted(MODEL_REGISTRY)}")
            self.model_name, self.fallback_models = model, []
        else:
            primary, fallbacks = TASK_MODELS.get(task, (MODEL_GEMINI_25_FLASH, [MODEL_GEMINI_20_FLASH]))
            self.model_name, self.fallback_models = primary, list(fallbacks)

    @property
    def models(self) -> List[str]:
        return [self.model_name] + self.fallback_models

    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
        images: Optional[Sequence[ImageInput]] = None,
        prompt_version: Optional[str] = None,
    ) -> LLMResponse:
        """Run the prompt on the first model that answers.

        Raises:
            The provider error from the last model tried, or immediately on a
            permanent failure. Callers turn this into an `unavailable` verdict.
        """
        messages = build_messages(prompt, system_prompt, images or [])
        fingerprint = prompt_fingerprint(prompt, system_prompt)
        models = self.models

        for position, model_name in enumerate(models):
            try:
                response = self._call(model_name, messages, temperature, max_tokens, json_mode)
            except Exception as e:
                kind = classify_failure(e)
                if kind is FailureKind.PERMANENT or position == len(models) - 1:
                    logger.error(f"{model_name} failed ({kind.value}): {e}")
                    raise
                logger.warning(f"{model_name} failed ({kind.value}): {e}; falling back to {models[position + 1]}")
                continue

            result = self._to_llm_response(model_name, response, len(images or []))
            result.prompt_hash = fingerprint
            result.prompt_version = prompt_version or get_prompt_version(self.task.value if self.task else "")
            if self.logger:
                self.logger.debug(
                    f"LLM call {model_name}",
                    tokens_in=result.input_tokens,
                    tokens_out=result.output_tokens,
                    cost=f"{result.cost_usd:.6f}",
                )
            return result

        raise RuntimeError("No model configured")

    def _call(
        self,
        model_name: str,
        messages: List[Dict[str, Any]],
        temperature: float,
        max_tokens: Optional[int],
        json_mode: bool,
    ) -> Any:
        model_spec = MODEL_REGISTRY[model_name]
        kwargs: Dict[str, Any] = {
            "model": model_spec.litellm_name,
            "messages": messages,
            "temperature": temperature,
            "timeout": self.timeout,
            "drop_params": True,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        if json_mode and model_spec.json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = completion(**kwargs)
        if not response.choices:
            raise RuntimeError(f"{model_name} returned empty choices (response {getattr(response, 'id', '?')})")
        return response

    def _to_llm_response(self, model_name: str, response: Any, image_count: int) -> LLMResponse:
        model_spec = MODEL_REGISTRY[model_name]
        choice = response.choices[0]
        usage = getattr(response, "usage", None)
        input_tokens = (getattr(usage, "prompt_tokens", 0) or 0) if usage else 0
        output_tokens = (getattr(usage, "completion_tokens", 0) or 0) if usage else 0

        try:
            cost = completion_cost(completion_response=response)
        except Exception:
            # LiteLLM has no price for some preview models
            cost = model_spec.estimate_cost(input_tokens, output_tokens)

        return LLMResponse(
            text=choice.message.content or "",
            model=model_name,
            provider=model_spec.provider,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=cost,
            finish_reason=choice.finish_reason,
            timestamp=datetime.now(timezone.utc).isoformat(),
            task=self.task.value if self.task else None,
            metadata={"response_id": getattr(response, "id", None), "image_count": image_count},
        )
