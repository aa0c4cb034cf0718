"""Shared fixtures for nhs_hours tests.

No test touches the network: LLM, Vision, and Sheets calls go through
injected mocks.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add repo root to path so tests can import nhs_hours without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from nhs_hours.llm.llm_client import LLMResponse  # noqa: E402
from nhs_hours.models.proof import ProofArtifact  # noqa: E402
from nhs_hours.policy.policy_registry import HoursPolicy, clear_cache  # noqa: E402

ENV_VARS = [
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "GOOGLE_VISION_API_KEY",
    "GOOGLE_SHEETS_API_KEY",
    "NHS_SPREADSHEET_ID",
    "NHS_SHEET_NAME",
    "NHS_APPS_SCRIPT_URL",
    "NHS_OVERRIDE_CODE",
    "NHS_VERIFICATION_POLICY",
    "NHS_POLICY_PATH",
    "NHS_OPPORTUNITIES_PATH",
    "NHS_AUDIT_LOG",
]

# Smallest valid PNG signature plus padding; content is never decoded
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

GOOD_DESCRIPTION = (
    "I sorted canned food donations at the county food bank for three hours on Saturday; "
    "this photo shows me at the sorting table wearing the volunteer vest."
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Strip credentials from the environment and point data files at tmp."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("NHS_DATA_DIR", str(tmp_path / "data"))
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def policy():
    return HoursPolicy()


@pytest.fixture
def make_artifact():
    """Factory for proof artifacts with a valid image and description by default."""

    def _make(description: str = GOOD_DESCRIPTION, image_bytes: bytes = PNG_BYTES, mime_type: str = "image/png"):
        return ProofArtifact(image_bytes=image_bytes, mime_type=mime_type, description=description, filename="proof.png")

    return _make


@pytest.fixture
def llm_response():
    """Factory for LLMResponse objects as returned by LLMClient.generate."""

    def _make(text: str, cost: float = 0.001):
        return LLMResponse(text=text, model="gemini-2.5-flash", provider="google", cost_usd=cost)

    return _make


@pytest.fixture
def mock_llm(llm_response):
    """LLMClient stand-in; set .generate.return_value or .side_effect per test."""
    client = MagicMock()
    client.generate.return_value = llm_response('{"isValid": true, "reason": "Shows food bank sorting", "confidence": "high"}')
    return client
