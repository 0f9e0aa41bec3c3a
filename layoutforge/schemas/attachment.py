"""Image attachments sent alongside a generation request."""

from __future__ import annotations

import base64
import binascii
import uuid
from dataclasses import dataclass, field

from layoutforge.core.exceptions import InputError

SUPPORTED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}


def fit_within(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """Scale dimensions down to fit the bounding box, keeping the aspect ratio.

    Landscape images are bounded by width and portrait/square ones by height;
    images already inside the box are returned unchanged.
    """
    if width <= 0 or height <= 0:
        raise InputError("Attachment dimensions must be positive")
    if width > height:
        if width > max_width:
            return max_width, round(height * max_width / width)
        return width, height
    if height > max_height:
        return round(width * max_height / height), max_height
    return width, height


@dataclass(slots=True)
class Attachment:
    """A client-downscaled image. Only lives for the duration of one request."""

    data: bytes | None
    mime_type: str
    width: int
    height: int
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def from_base64(
        cls,
        encoded: str,
        *,
        mime_type: str,
        width: int,
        height: int,
    ) -> "Attachment":
        """Decode a base64 payload (a ``data:`` URL prefix is tolerated)."""
        if mime_type not in SUPPORTED_IMAGE_TYPES:
            raise InputError(f"Unsupported attachment type: {mime_type}")
        payload = encoded.split(",", 1)[1] if encoded.startswith("data:") else encoded
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InputError("Attachment is not valid base64") from exc
        if not data:
            raise InputError("Attachment is empty")
        return cls(data=data, mime_type=mime_type, width=width, height=height)

    @property
    def released(self) -> bool:
        return self.data is None

    def release(self) -> None:
        """Drop the byte buffer once the request no longer needs it."""
        self.data = None
