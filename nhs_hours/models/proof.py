"""
Proof artifact: the uploaded image plus the member's written justification.

Exists only for the duration of one verification attempt.
"""

import base64
import hashlib
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# Older interpreters ship without a .webp mapping
mimetypes.add_type("image/webp", ".webp")


@dataclass(frozen=True)
class ProofArtifact:
    """Image bytes, mime type, and free-text description offered as evidence."""

    image_bytes: bytes = field(repr=False)
    mime_type: str
    description: str
    filename: Optional[str] = None

    @classmethod
    def from_path(cls, path: Path, description: str) -> "ProofArtifact":
        """Load an image from disk, guessing the mime type from its extension."""
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            image_bytes=path.read_bytes(),
            mime_type=mime_type or "application/octet-stream",
            description=description,
            filename=path.name,
        )

    @property
    def size(self) -> int:
        return len(self.image_bytes)

    @property
    def sha256(self) -> str:
        """Digest used in the audit trail in place of the image itself."""
        return hashlib.sha256(self.image_bytes).hexdigest()

    def to_base64(self) -> str:
        return base64.b64encode(self.image_bytes).decode("ascii")
