"""Image Authenticity Judge - rejects blank, unsafe, or downloaded images.

Runs before the AI proof judge when a Vision API key is configured. Checks,
in order:
1. Labels detected at all (no labels means a blank or invalid image)
2. Safe-search: adult / violence / racy rated LIKELY or VERY_LIKELY
3. Reverse image search: any full matching image online, or a page with a
   matching image scored above the web match threshold
"""

import logging
from typing import Any, Optional

from ..constants import SAFE_SEARCH_CATEGORIES, UNSAFE_LIKELIHOODS
from ..errors import VisionUnavailableError
from ..llm.vision_client import VisionAnnotation, VisionClient
from ..models.proof import ProofArtifact
from .base_judge import BaseJudge, JudgeType
from .schemas.config import VerificationConfig
from .schemas.verdict import Severity, ValidationIssue, VerdictStatus, VerificationVerdict

logger = logging.getLogger(__name__)

MAX_REPORTED_URLS = 3


class ImageAuthenticityJudge(BaseJudge):
    """Judge that screens proof images with the Vision API."""

    def __init__(self, config: VerificationConfig, vision_client: VisionClient):
        super().__init__(config)
        self.vision_client = vision_client

    @property
    def name(self) -> str:
        return "image_authenticity"

    @property
    def judge_type(self) -> JudgeType:
        return JudgeType.REMOTE

    def validate(self, subject: ProofArtifact, context: Optional[dict[str, Any]] = None) -> VerificationVerdict:
        try:
            annotation = self.vision_client.annotate(subject.image_bytes)
        except VisionUnavailableError as e:
            logger.warning(f"Image authenticity check unavailable: {e}")
            return self.create_verdict(
                VerdictStatus.UNAVAILABLE,
                "Unable to verify the image right now. Please try again or contact an officer.",
                field="image",
                metadata={"error": str(e)[:200]},
            )
        return self.evaluate(annotation)

    def evaluate(self, annotation: VisionAnnotation) -> VerificationVerdict:
        """Apply the authenticity rules to an annotation."""
        issues: list[ValidationIssue] = []
        metadata: dict[str, Any] = {"labels": annotation.labels}

        if not annotation.labels:
            return self.create_verdict(
                VerdictStatus.REJECTED, "Image appears to be blank or invalid", field="image", metadata=metadata
            )

        unsafe = [
            category
            for category in SAFE_SEARCH_CATEGORIES
            if annotation.safe_search.get(category) in UNSAFE_LIKELIHOODS
        ]
        if unsafe:
            self.add_issue(
                issues,
                Severity.ERROR,
                "image",
                "Safe-search flagged the image",
                details={c: annotation.safe_search[c] for c in unsafe},
            )
            return self.create_verdict(
                VerdictStatus.REJECTED, "Image content is inappropriate", field="image", issues=issues, metadata=metadata
            )

        matching_urls = [m.url for m in annotation.full_matching_images]
        matching_urls += [
            m.url
            for m in annotation.pages_with_matching_images
            if m.score is not None and m.score > self.config.web_match_threshold
        ]
        if matching_urls:
            metadata["matching_urls"] = matching_urls[:MAX_REPORTED_URLS]
            return self.create_verdict(
                VerdictStatus.REJECTED,
                "This image was found online. Please upload an original photo.",
                field="image",
                metadata=metadata,
            )

        return self.create_verdict(VerdictStatus.ACCEPTED, "Image appears to be an original photo", metadata=metadata)
