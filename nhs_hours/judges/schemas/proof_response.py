"""Schema for the AI proof judge's JSON response."""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .verdict import Confidence


class ProofJudgeResponse(BaseModel):
    """Structured answer expected from the proof verification prompt.

    The model is asked for camelCase ``isValid``; ``reason`` and
    ``reasoning`` are both accepted for the explanation.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    is_valid: bool = Field(validation_alias=AliasChoices("isValid", "is_valid", "valid"))
    reason: str = Field("", validation_alias=AliasChoices("reason", "reasoning", "explanation"))
    confidence: Optional[Confidence] = None

    @field_validator("confidence", mode="before")
    @classmethod
    def normalize_confidence(cls, v):
        if v is None:
            return None
        text = str(v).strip().lower()
        if not text:
            return None
        if text not in {c.value for c in Confidence}:
            raise ValueError(f"Unknown confidence tier: {v}")
        return text

    @field_validator("reason", mode="before")
    @classmethod
    def coerce_reason(cls, v):
        return "" if v is None else str(v).strip()
