"""
Central configuration for credentials, endpoints, and data paths.

All values come from environment variables (the CLI loads a .env file
first). Local files (audit trail, logs) are stored in ~/.nhs-hours/.

Environment variables:
  - GEMINI_API_KEY: AI proof verification and content moderation
  - GOOGLE_VISION_API_KEY: Image authenticity pre-check (optional)
  - GOOGLE_SHEETS_API_KEY, NHS_SPREADSHEET_ID, NHS_SHEET_NAME: Ledger reads
  - NHS_APPS_SCRIPT_URL: Ledger writes
  - NHS_OVERRIDE_CODE: Officer override code
  - NHS_VERIFICATION_POLICY: "remote_ai" (default) or "heuristic"
  - NHS_POLICY_PATH, NHS_OPPORTUNITIES_PATH: YAML overrides
  - NHS_DATA_DIR, NHS_AUDIT_LOG: Local paths
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .constants import DEFAULT_SHEET_NAME

# Repository-level config directory (hours_policy.yaml, opportunities.yaml)
CONFIG_DIR = Path(__file__).parent.parent / "config"

POLICY_REMOTE_AI = "remote_ai"
POLICY_HEURISTIC = "heuristic"
VERIFICATION_POLICIES = (POLICY_REMOTE_AI, POLICY_HEURISTIC)


def get_env(name: str) -> Optional[str]:
    """Read an environment variable, treating blanks and "your_..." placeholders as unset."""
    value = os.environ.get(name)
    if value is None:
        return None
    value = value.strip()
    if not value or value.startswith("your_"):
        return None
    return value


def get_data_dir() -> Path:
    """
    Get the local data directory path for logs and the audit trail.

    Uses NHS_DATA_DIR environment variable if set, otherwise defaults
    to ~/.nhs-hours/
    """
    env_path = get_env("NHS_DATA_DIR")
    if env_path:
        return Path(env_path).expanduser().resolve()
    return Path.home() / ".nhs-hours"


def get_log_dir() -> Path:
    """Get the log file directory."""
    return get_data_dir() / "logs"


def get_policy_path() -> Path:
    """Get the hours policy YAML path."""
    env_path = get_env("NHS_POLICY_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return CONFIG_DIR / "hours_policy.yaml"


def get_opportunities_path() -> Path:
    """Get the volunteer opportunities YAML path."""
    env_path = get_env("NHS_OPPORTUNITIES_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return CONFIG_DIR / "opportunities.yaml"


@dataclass
class Settings:
    """Credentials and endpoints for the external collaborators.

    Attributes:
        gemini_api_key: Key for the generative AI verifier
        vision_api_key: Key for reverse-image / safe-search checks
        sheets_api_key: Key for reading the ledger spreadsheet
        spreadsheet_id: Ledger spreadsheet ID
        sheet_name: Ledger tab name
        apps_script_url: Deployed web app that performs ledger writes
        override_code: Officer override code (None disables overrides)
        verification_policy: "remote_ai" or "heuristic"
        audit_log_path: JSONL file for verdict audit records (None disables)
    """

    gemini_api_key: Optional[str] = None
    vision_api_key: Optional[str] = None
    sheets_api_key: Optional[str] = None
    spreadsheet_id: Optional[str] = None
    sheet_name: str = DEFAULT_SHEET_NAME
    apps_script_url: Optional[str] = None
    override_code: Optional[str] = None
    verification_policy: str = POLICY_REMOTE_AI
    audit_log_path: Optional[Path] = None

    def __post_init__(self):
        if self.verification_policy not in VERIFICATION_POLICIES:
            raise ValueError(
                f"Unknown verification policy: {self.verification_policy}. Available: {list(VERIFICATION_POLICIES)}"
            )

    @property
    def ai_configured(self) -> bool:
        return self.gemini_api_key is not None

    @property
    def vision_configured(self) -> bool:
        return self.vision_api_key is not None

    @property
    def ledger_read_configured(self) -> bool:
        return self.sheets_api_key is not None and self.spreadsheet_id is not None

    @property
    def ledger_write_configured(self) -> bool:
        return self.apps_script_url is not None and "YOUR_SCRIPT_ID_HERE" not in self.apps_script_url


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    audit_log = get_env("NHS_AUDIT_LOG")
    return Settings(
        gemini_api_key=get_env("GEMINI_API_KEY") or get_env("GOOGLE_API_KEY"),
        vision_api_key=get_env("GOOGLE_VISION_API_KEY"),
        sheets_api_key=get_env("GOOGLE_SHEETS_API_KEY"),
        spreadsheet_id=get_env("NHS_SPREADSHEET_ID"),
        sheet_name=get_env("NHS_SHEET_NAME") or DEFAULT_SHEET_NAME,
        apps_script_url=get_env("NHS_APPS_SCRIPT_URL"),
        override_code=get_env("NHS_OVERRIDE_CODE"),
        verification_policy=(get_env("NHS_VERIFICATION_POLICY") or POLICY_REMOTE_AI).lower(),
        audit_log_path=Path(audit_log).expanduser() if audit_log else None,
    )
