"""Policy Registry: chapter hours policy constants.

Loads caps, minimums, milestones, progress tiers and official form links
from config/hours_policy.yaml. Falls back to the built-in defaults when the
file is missing.

Usage:
    from nhs_hours.policy.policy_registry import get_hours_policy

    policy = get_hours_policy()
    policy.summer_cap  # 8
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from ..config import get_policy_path

logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_TIERS = {
    "complete": 30,
    "on_track": 20,
    "midyear": 10,
    "started": 5,
    "behind": 0,
}


@dataclass(frozen=True)
class HoursPolicy:
    """Chapter-year hours policy.

    Attributes:
        summer_cap: Max summer hours counted toward the total
        chapter_minimum: Chapter-sponsored hours expected among the total
        total_required: Annual milestone
        midyear_required: First-semester checkpoint (progress display only)
        hour_increment: Smallest unit hours may be submitted in
        progress_tiers: Tier name -> minimum effective total
        form_urls: Grade -> official recordation form URL
    """

    summer_cap: float = 8
    chapter_minimum: float = 6
    total_required: float = 30
    midyear_required: float = 10
    hour_increment: float = 0.5
    progress_tiers: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_PROGRESS_TIERS))
    form_urls: dict[str, str] = field(default_factory=dict)

    def tier_for(self, total: float) -> str:
        """Highest progress tier whose threshold the total reaches."""
        for name, threshold in sorted(self.progress_tiers.items(), key=lambda kv: kv[1], reverse=True):
            if total >= threshold:
                return name
        return "behind"


# Module-level cache
_policy_cache: Optional[HoursPolicy] = None


NUMERIC_KEYS = ("summer_cap", "chapter_minimum", "total_required", "midyear_required", "hour_increment")


def _coerce_numbers(raw: dict) -> dict:
    """Numeric policy values as floats; quoted numbers in the YAML are accepted."""
    values = {}
    for key in NUMERIC_KEYS:
        if raw.get(key) is None:
            continue
        try:
            values[key] = float(raw[key])
        except (TypeError, ValueError):
            raise ValueError(f"Hours policy {key} must be a number, got {raw[key]!r}") from None
    return values


def _validate_policy(raw: dict) -> None:
    """Validate that numeric policy values are sane."""
    for key in ("summer_cap", "chapter_minimum", "total_required", "midyear_required"):
        value = raw.get(key)
        if value is not None and value < 0:
            raise ValueError(f"Hours policy {key} must be non-negative, got {value}")
    increment = raw.get("hour_increment")
    if increment is not None and increment <= 0:
        raise ValueError(f"Hours policy hour_increment must be positive, got {increment}")
    total = raw.get("total_required")
    midyear = raw.get("midyear_required")
    if total is not None and midyear is not None and midyear > total:
        raise ValueError(f"Hours policy midyear_required ({midyear}) exceeds total_required ({total})")


def load_hours_policy(path: Path) -> HoursPolicy:
    """Load an HoursPolicy from a YAML file, filling unspecified keys with defaults."""
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    numbers = _coerce_numbers(raw)
    _validate_policy(numbers)
    defaults = HoursPolicy()
    return HoursPolicy(
        summer_cap=numbers.get("summer_cap", defaults.summer_cap),
        chapter_minimum=numbers.get("chapter_minimum", defaults.chapter_minimum),
        total_required=numbers.get("total_required", defaults.total_required),
        midyear_required=numbers.get("midyear_required", defaults.midyear_required),
        hour_increment=numbers.get("hour_increment", defaults.hour_increment),
        progress_tiers=raw.get("progress_tiers") or dict(DEFAULT_PROGRESS_TIERS),
        form_urls=raw.get("form_urls") or {},
    )


def get_hours_policy() -> HoursPolicy:
    """Load and cache the hours policy."""
    global _policy_cache
    if _policy_cache is not None:
        return _policy_cache

    config_path = get_policy_path()
    if not config_path.exists():
        logger.warning(f"Hours policy config not found at {config_path}, using defaults")
        _policy_cache = HoursPolicy()
        return _policy_cache

    _policy_cache = load_hours_policy(config_path)
    logger.info(
        f"Loaded hours policy: cap={_policy_cache.summer_cap:g} chapter_min={_policy_cache.chapter_minimum:g} "
        f"required={_policy_cache.total_required:g}"
    )
    return _policy_cache


def get_form_url(grade: str) -> Optional[str]:
    """Official recordation form for a grade, matched case-insensitively."""
    for key, url in get_hours_policy().form_urls.items():
        if key.lower() == str(grade).strip().lower():
            return url
    return None


def clear_cache():
    """Clear the policy cache (useful for testing)."""
    global _policy_cache
    _policy_cache = None
