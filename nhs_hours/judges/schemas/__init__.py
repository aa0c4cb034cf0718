from .config import VerificationConfig
from .proof_response import ProofJudgeResponse
from .verdict import Confidence, Severity, ValidationIssue, VerdictStatus, VerificationVerdict

__all__ = [
    "Confidence",
    "ProofJudgeResponse",
    "Severity",
    "ValidationIssue",
    "VerdictStatus",
    "VerificationConfig",
    "VerificationVerdict",
]
