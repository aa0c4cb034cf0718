"""
Google Cloud Vision client for the image authenticity pre-check.

One images:annotate call per proof image requesting label detection,
web detection (reverse image search) and safe-search classification.

Usage:
    from nhs_hours.llm.vision_client import VisionClient

    client = VisionClient(api_key)
    annotation = client.annotate(image_bytes)
    annotation.labels  # ["Volunteer", "Food bank", ...]
"""

import base64
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import requests

from ..constants import DEFAULT_REQUEST_TIMEOUT_SECONDS, VISION_MAX_RESULTS
from ..errors import VisionUnavailableError

logger = logging.getLogger(__name__)

VISION_API_URL = "https://vision.googleapis.com/v1/images:annotate"


@dataclass
class WebMatch:
    """A page or image the reverse search tied to the upload."""

    url: str
    score: Optional[float] = None


@dataclass
class VisionAnnotation:
    """The parts of an annotate response the authenticity judge reads."""

    labels: list[str] = field(default_factory=list)
    full_matching_images: list[WebMatch] = field(default_factory=list)
    pages_with_matching_images: list[WebMatch] = field(default_factory=list)
    safe_search: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_response(cls, result: dict[str, Any]) -> "VisionAnnotation":
        """Parse one entry of the annotate `responses` array."""
        web = result.get("webDetection") or {}
        safe = result.get("safeSearchAnnotation") or {}
        return cls(
            labels=[a.get("description", "") for a in result.get("labelAnnotations") or [] if a.get("description")],
            full_matching_images=[
                WebMatch(url=img.get("url", ""), score=img.get("score")) for img in web.get("fullMatchingImages") or []
            ],
            pages_with_matching_images=[
                WebMatch(url=page.get("url", ""), score=page.get("score"))
                for page in web.get("pagesWithMatchingImages") or []
            ],
            safe_search={k: str(v) for k, v in safe.items() if isinstance(v, str)},
        )


class VisionClient:
    """Thin requests wrapper around the Vision annotate endpoint."""

    def __init__(
        self,
        api_key: str,
        timeout: int = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _build_request(self, image_bytes: bytes) -> dict[str, Any]:
        return {
            "requests": [
                {
                    "image": {"content": base64.b64encode(image_bytes).decode("ascii")},
                    "features": [
                        {"type": "LABEL_DETECTION", "maxResults": VISION_MAX_RESULTS},
                        {"type": "WEB_DETECTION", "maxResults": VISION_MAX_RESULTS},
                        {"type": "SAFE_SEARCH_DETECTION"},
                    ],
                }
            ]
        }

    def annotate(self, image_bytes: bytes) -> VisionAnnotation:
        """Annotate one image.

        Raises:
            VisionUnavailableError: on network failure, HTTP error, or an
                error entry in the response
        """
        try:
            response = self.session.post(
                VISION_API_URL,
                params={"key": self.api_key},
                json=self._build_request(image_bytes),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise VisionUnavailableError(f"Vision API request failed: {e}") from e

        if not response.ok:
            message = f"HTTP {response.status_code}"
            try:
                message = response.json().get("error", {}).get("message") or message
            except ValueError:
                pass
            raise VisionUnavailableError(f"Vision API error: {message}")

        try:
            data = response.json()
        except ValueError as e:
            raise VisionUnavailableError("Vision API returned a non-JSON body") from e

        responses = data.get("responses") or []
        if not responses:
            raise VisionUnavailableError("Vision API returned no annotation")
        result = responses[0]
        if result.get("error"):
            raise VisionUnavailableError(f"Vision API error: {result['error'].get('message', 'unknown error')}")

        annotation = VisionAnnotation.from_response(result)
        logger.debug(
            f"Vision annotation: {len(annotation.labels)} labels, "
            f"{len(annotation.full_matching_images)} full matches, "
            f"{len(annotation.pages_with_matching_images)} matching pages"
        )
        return annotation
