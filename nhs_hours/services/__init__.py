"""Orchestration of the submission flow, leaderboard, and opportunity listings."""

from .leaderboard_service import Leaderboard, LeaderboardEntry, LeaderboardService, LeaderboardStats
from .opportunity_service import OpportunityService, load_opportunities
from .submission_service import SubmissionOutcome, SubmissionService

__all__ = [
    "Leaderboard",
    "LeaderboardEntry",
    "LeaderboardService",
    "LeaderboardStats",
    "OpportunityService",
    "SubmissionOutcome",
    "SubmissionService",
    "load_opportunities",
]
