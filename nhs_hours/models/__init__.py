"""Ledger rows and transient request objects: hours submissions, proof artifacts, opportunities."""

from .member import MemberRecord
from .opportunity import ImpactLevel, VolunteerOpportunity
from .proof import ProofArtifact
from .submission import Grade, HoursSubmission

__all__ = ["Grade", "HoursSubmission", "ImpactLevel", "MemberRecord", "ProofArtifact", "VolunteerOpportunity"]
