"""Abstract base class for OCR service providers.

Defines the contract for any OCR engine used to read a lineup poster.
The shipped implementation wraps Tesseract; swapping in a hosted OCR API
requires only a new concrete class, no call-site changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.lineup import LineupImage, OCRResult


# Concrete implementations live in src/providers/ocr/.  The OCR service
# (src/services/ocr_service.py) tries providers in the configured order.
class IOCRProvider(ABC):
    """Contract for OCR services that extract text from poster images."""

    @abstractmethod
    async def extract_text(self, image: LineupImage) -> OCRResult:
        """Run OCR on *image* and return the extraction result.

        Parameters
        ----------
        image:
            The poster to process.  ``image.image_data`` contains the raw
            bytes; ``image.content_type`` indicates the format.

        Returns
        -------
        OCRResult
            Raw text in reading order, line-level regions, overall
            confidence and processing time.

        Raises
        ------
        src.utils.errors.OCRExtractionError
            If the OCR engine fails or finds no usable text.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for this provider, e.g. ``"tesseract"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the engine is installed and usable.

        Implementations should check binaries or credentials without
        performing a full OCR pass.
        """
