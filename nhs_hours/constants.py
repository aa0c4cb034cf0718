"""
Global constants for the service-hours system.

Centralizes limits and wire-format values. Hours policy numbers (caps,
minimums, milestones) are NOT here: they live in config/hours_policy.yaml
and are loaded by nhs_hours.policy.policy_registry.
"""

# Proof image limits
ALLOWED_IMAGE_MIME_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")
MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5MB

# Description limits
MIN_DESCRIPTION_LENGTH = 40  # Checked before any network call
HEURISTIC_MIN_DESCRIPTION_LENGTH = 80  # Stricter bar when the AI verifier is unavailable

# Phrases that tie the photo to the claimed activity (heuristic policy)
EXPLANATORY_CONNECTIVES = (
    "because",
    "this shows",
    "this photo shows",
    "the photo shows",
    "the image shows",
    "this picture shows",
    "as shown",
    "which shows",
    "which demonstrates",
    "this demonstrates",
    "proves",
    "as you can see",
    "you can see",
    "in this photo",
    "in the photo",
    "pictured",
)

# Image authenticity (Vision API)
WEB_MATCH_SCORE_THRESHOLD = 0.8  # Partial-match pages above this score count as "found online"
UNSAFE_LIKELIHOODS = ("LIKELY", "VERY_LIKELY")
SAFE_SEARCH_CATEGORIES = ("adult", "violence", "racy")
VISION_MAX_RESULTS = 10

# Ledger sheet layout: Name | Grade | Inducted | Summer Hours | Chapter Hours | Other Hours | Total Hours
LEDGER_RANGE_COLUMNS = "A:G"
DEFAULT_SHEET_NAME = "Sheet1"
LEDGER_HEADER_ROW = ["Name", "Grade", "Inducted", "Summer Hours", "Chapter Hours", "Other Hours", "Total Hours"]

# Network and Timeouts
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30
LLM_TIMEOUT_SECONDS = 120

# Content moderation fallback (used when the LLM is unavailable)
MODERATION_DENYLIST = ("spam", "scam", "fake", "illegal", "drugs", "alcohol")

# Leaderboard
MEDALS = ("gold", "silver", "bronze")
