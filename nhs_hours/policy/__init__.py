"""Hours policy: configurable caps and milestones, and the aggregation engine.

Usage:
    from nhs_hours.policy import HoursPolicyEngine

    engine = HoursPolicyEngine()
    merged = engine.merge(existing_record, submission)
"""

from .hours_engine import HoursPolicyEngine, ProgressReport
from .policy_registry import HoursPolicy, clear_cache, get_form_url, get_hours_policy, load_hours_policy

__all__ = [
    "HoursPolicy",
    "HoursPolicyEngine",
    "ProgressReport",
    "clear_cache",
    "get_form_url",
    "get_hours_policy",
    "load_hours_policy",
]
