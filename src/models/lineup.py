"""Lineup poster image and OCR extraction models.

These models represent the first stage of a run:
    1. A user uploads a lineup poster  → LineupImage
    2. OCR reads the image             → OCRResult (with line-level TextRegions)

The OCR text then goes through the text normalizer
(src/utils/text_normalizer.py) to become candidate artist names.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class LineupImage(BaseModel):
    """An uploaded lineup poster.

    Serialized form carries metadata only; the raw bytes live in a private
    attribute so API payloads stay small.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    filename: str
    # Validated at upload (image/jpeg, image/png, image/webp).
    content_type: str
    file_size: int
    # SHA-256 hex digest of the raw bytes.
    image_hash: str
    upload_timestamp: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )
    _image_data: bytes | None = PrivateAttr(default=None)

    @property
    def image_data(self) -> bytes | None:
        """Return the raw image bytes (excluded from serialization)."""
        return self._image_data


class TextRegion(BaseModel):
    """One line of text detected on the poster, with its bounding box."""

    model_config = ConfigDict(frozen=True)

    text: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    # Top-left origin, pixel units.
    x: int
    y: int
    width: int
    height: int


class OCRResult(BaseModel):
    """The result of OCR processing on a lineup image.

    Produced by src/services/ocr_service.py, which tries providers in
    priority order and returns the first result meeting the configured
    minimum confidence.
    """

    model_config = ConfigDict(frozen=True)

    raw_text: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    provider_used: str
    processing_time: float
    bounding_boxes: list[TextRegion] = Field(default_factory=list)
