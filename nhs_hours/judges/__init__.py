"""Proof Verification Gate for service-hour submissions.

Two judge categories:

**Deterministic judges**: pure Python, no network calls:
- HeuristicJudge: Description length and explanatory phrasing

**Remote judges**: call an external model or API:
- ImageAuthenticityJudge: Blank / unsafe / found-online images (Vision API)
- ProofJudge: Image matches the described activity (Gemini)
- ContentModerationJudge: Screens opportunity postings (Gemini, deny-list fallback)

Usage:
    from nhs_hours.judges import ProofVerificationGate

    gate = ProofVerificationGate.from_settings(load_settings())
    verdict = gate.verify(artifact, submitter="Jane Doe")
"""

from .base_judge import JudgeType
from .content_judge import ContentModerationJudge
from .heuristic_judge import HeuristicJudge
from .image_authenticity_judge import ImageAuthenticityJudge
from .orchestrator import ProofVerificationGate
from .proof_judge import ProofJudge
from .schemas.config import VerificationConfig
from .schemas.verdict import Confidence, Severity, ValidationIssue, VerdictStatus, VerificationVerdict

__all__ = [
    "Confidence",
    "ContentModerationJudge",
    "HeuristicJudge",
    "ImageAuthenticityJudge",
    "JudgeType",
    "ProofJudge",
    "ProofVerificationGate",
    "Severity",
    "ValidationIssue",
    "VerdictStatus",
    "VerificationConfig",
    "VerificationVerdict",
]
