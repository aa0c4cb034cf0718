"""Tests for the proof verification gate: ordering, degradation, fail-closed."""

import json
from unittest.mock import MagicMock

from nhs_hours.config import Settings
from nhs_hours.judges.image_authenticity_judge import ImageAuthenticityJudge
from nhs_hours.judges.orchestrator import ProofVerificationGate
from nhs_hours.judges.proof_judge import ProofJudge
from nhs_hours.judges.schemas.config import VerificationConfig
from nhs_hours.judges.schemas.verdict import VerdictStatus
from nhs_hours.llm.vision_client import VisionAnnotation

OVERRIDE = "officer-2026"

# ─── Helpers ──────────────────────────────────────────────────────────────────


def _ai_gate(mock_llm, vision_client=None, **config) -> ProofVerificationGate:
    cfg = VerificationConfig(policy="remote_ai", override_code=OVERRIDE, **config)
    authenticity = ImageAuthenticityJudge(cfg, vision_client) if vision_client else None
    return ProofVerificationGate(cfg, proof_judge=ProofJudge(cfg, llm_client=mock_llm), authenticity_judge=authenticity)


def _heuristic_gate(**config) -> ProofVerificationGate:
    return ProofVerificationGate(VerificationConfig(policy="heuristic", override_code=OVERRIDE, **config))


# ─── Override ─────────────────────────────────────────────────────────────────


class TestOverride:
    """The officer code wins regardless of image or description."""

    def test_override_accepts_anything(self, mock_llm, make_artifact):
        gate = _ai_gate(mock_llm)
        verdict = gate.verify(make_artifact(description="", image_bytes=b"", mime_type="text/plain"), override_code=OVERRIDE)
        assert verdict.status == VerdictStatus.OVERRIDDEN
        assert verdict.is_valid
        mock_llm.generate.assert_not_called()

    def test_override_with_surrounding_whitespace(self, make_artifact):
        verdict = _heuristic_gate().verify(make_artifact(description="short"), override_code=f"  {OVERRIDE} ")
        assert verdict.status == VerdictStatus.OVERRIDDEN

    def test_wrong_code_continues_normally(self, mock_llm, make_artifact):
        verdict = _ai_gate(mock_llm).verify(make_artifact(), override_code="guess")
        assert verdict.status == VerdictStatus.ACCEPTED
        assert verdict.judge_name == "proof"
        mock_llm.generate.assert_called_once()

    def test_no_configured_code_never_overrides(self, make_artifact):
        gate = ProofVerificationGate(VerificationConfig(policy="heuristic"))
        verdict = gate.verify(make_artifact(description="short"), override_code="anything")
        assert verdict.status == VerdictStatus.INVALID_INPUT


# ─── Input validation ─────────────────────────────────────────────────────────


class TestInputValidation:
    """Local checks run before any network call."""

    def test_short_description_no_network(self, mock_llm, make_artifact):
        gate = _ai_gate(mock_llm)
        verdict = gate.verify(make_artifact(description="Helped at food bank."))
        assert verdict.status == VerdictStatus.INVALID_INPUT
        assert verdict.field == "description"
        assert "40" in verdict.reason
        mock_llm.generate.assert_not_called()

    def test_whitespace_does_not_count(self, mock_llm, make_artifact):
        verdict = _ai_gate(mock_llm).verify(make_artifact(description="x" * 10 + " " * 50))
        assert verdict.field == "description"

    def test_unsupported_mime(self, mock_llm, make_artifact):
        verdict = _ai_gate(mock_llm).verify(make_artifact(mime_type="image/gif"))
        assert verdict.status == VerdictStatus.INVALID_INPUT
        assert verdict.field == "image"
        mock_llm.generate.assert_not_called()

    def test_jpg_alias_accepted(self, mock_llm, make_artifact):
        assert _ai_gate(mock_llm).validate_input(make_artifact(mime_type="image/jpg")) is None

    def test_oversized_image(self, mock_llm, make_artifact):
        big = b"\xff" * (5 * 1024 * 1024 + 1)
        verdict = _ai_gate(mock_llm).verify(make_artifact(image_bytes=big, mime_type="image/jpeg"))
        assert verdict.field == "image"
        assert "5MB" in verdict.reason

    def test_empty_image(self, mock_llm, make_artifact):
        verdict = _ai_gate(mock_llm).verify(make_artifact(image_bytes=b""))
        assert verdict.field == "image"


# ─── Policies ─────────────────────────────────────────────────────────────────


class TestPolicies:
    """remote_ai vs heuristic, and degradation between them."""

    def test_heuristic_policy(self, make_artifact):
        verdict = _heuristic_gate().verify(make_artifact())
        assert verdict.status == VerdictStatus.ACCEPTED
        assert verdict.judge_name == "heuristic"

    def test_missing_ai_key_degrades_to_heuristic(self):
        gate = ProofVerificationGate.from_settings(Settings(verification_policy="remote_ai"))
        assert gate.policy == "heuristic"
        assert gate.proof_judge is None

    def test_ai_key_selects_remote(self, mock_llm):
        gate = ProofVerificationGate.from_settings(Settings(gemini_api_key="k"), llm_client=mock_llm)
        assert gate.policy == "remote_ai"
        assert gate.authenticity_judge is None

    def test_vision_key_enables_precheck(self, mock_llm):
        settings = Settings(gemini_api_key="k", vision_api_key="v")
        gate = ProofVerificationGate.from_settings(settings, llm_client=mock_llm, vision_client=MagicMock())
        assert gate.authenticity_judge is not None

    def test_forced_heuristic_ignores_key(self):
        gate = ProofVerificationGate.from_settings(Settings(gemini_api_key="k", verification_policy="heuristic"))
        assert gate.policy == "heuristic"

    def test_ai_failure_fails_closed(self, mock_llm, make_artifact):
        mock_llm.generate.side_effect = ConnectionError("connection reset")
        verdict = _ai_gate(mock_llm).verify(make_artifact())
        assert verdict.status == VerdictStatus.UNAVAILABLE
        assert not verdict.is_valid

    def test_authenticity_rejection_skips_ai(self, mock_llm, make_artifact):
        vision = MagicMock()
        vision.annotate.return_value = VisionAnnotation(labels=[])
        verdict = _ai_gate(mock_llm, vision_client=vision).verify(make_artifact())
        assert verdict.judge_name == "image_authenticity"
        assert not verdict.is_valid
        mock_llm.generate.assert_not_called()

    def test_authenticity_pass_then_ai(self, mock_llm, make_artifact):
        vision = MagicMock()
        vision.annotate.return_value = VisionAnnotation(labels=["Volunteer"])
        verdict = _ai_gate(mock_llm, vision_client=vision).verify(make_artifact())
        assert verdict.status == VerdictStatus.ACCEPTED
        assert verdict.metadata["labels"] == ["Volunteer"]


# ─── Audit ────────────────────────────────────────────────────────────────────


class TestAudit:
    """Verdicts are appended to the JSONL trail with the image digest only."""

    def test_audit_line_written(self, tmp_path, make_artifact):
        path = tmp_path / "audit" / "verdicts.jsonl"
        gate = _heuristic_gate(audit_log_path=path)
        artifact = make_artifact()
        gate.verify(artifact, submitter="Jane Doe")
        gate.verify(make_artifact(description="too short"), submitter="Jane Doe")

        lines = path.read_text().splitlines()
        assert len(lines) == 2
        first = json.loads(lines[0])
        assert first["submitter"] == "Jane Doe"
        assert first["status"] == "accepted"
        assert first["image_sha256"] == artifact.sha256
        assert artifact.to_base64() not in lines[0]
        assert json.loads(lines[1])["status"] == "invalid_input"

    def test_no_path_keeps_entries_in_memory(self, make_artifact):
        gate = _heuristic_gate()
        artifact = make_artifact()
        gate.verify(artifact)
        assert len(gate.audit_trail.get_entries_for_image(artifact.sha256)) == 1

    def test_unwritable_audit_log_does_not_lose_verdict(self, tmp_path, make_artifact):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        gate = _heuristic_gate(audit_log_path=blocker / "audit" / "verdicts.jsonl")

        verdict = gate.verify(make_artifact(), submitter="Jane Doe")

        assert verdict.status == VerdictStatus.ACCEPTED
        assert len(gate.audit_trail.get_all_entries()) == 1
