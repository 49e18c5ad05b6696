"""Tesseract OCR provider for lineup poster text extraction.

Wraps pytesseract with multi-pass preprocessing.  Each pass yields
line-level regions (words grouped by Tesseract's block/paragraph/line
numbers); the passes are merged with fuzzy line deduplication and the
merged text is corrected for common glyph misreads.
"""

from __future__ import annotations

import asyncio
import time
from collections import defaultdict

import pytesseract
from PIL import Image

from src.interfaces.ocr_provider import IOCRProvider
from src.models.lineup import LineupImage, OCRResult, TextRegion
from src.utils.errors import OCRExtractionError
from src.utils.image_preprocessor import ImagePreprocessor
from src.utils.logging import get_logger
from src.utils.ocr_helpers import merge_passes
from src.utils.text_normalizer import correct_ocr_errors

# Page segmentation mode 6: a single uniform block of text.  Lineup rows
# are laid out as centred blocks, which PSM 6 keeps together as lines.
_TESSERACT_CONFIG = "--psm 6"


class TesseractOCRProvider(IOCRProvider):
    """OCR provider backed by Tesseract via pytesseract."""

    def __init__(self, preprocessor: ImagePreprocessor) -> None:
        self._preprocessor = preprocessor
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # IOCRProvider interface
    # ------------------------------------------------------------------

    async def extract_text(self, image: LineupImage) -> OCRResult:
        """Extract text from a poster using every preprocessing pass.

        Tesseract is CPU-bound, so the passes run in a worker thread to keep
        the event loop (and every other run's resolver) responsive.
        """
        image_bytes = image.image_data
        if image_bytes is None:
            raise OCRExtractionError(
                "No image data provided",
                provider_name=self.get_provider_name(),
            )

        start = time.perf_counter()
        try:
            result = await asyncio.to_thread(self._extract_sync, image_bytes)
        except OCRExtractionError:
            raise
        except Exception as exc:
            self._logger.error(
                "ocr_extraction_failed",
                provider=self.get_provider_name(),
                error=str(exc),
                processing_time=round(time.perf_counter() - start, 3),
            )
            raise OCRExtractionError(
                f"Tesseract OCR failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        elapsed = time.perf_counter() - start
        self._logger.info(
            "ocr_extraction_complete",
            provider=self.get_provider_name(),
            confidence=round(result.confidence, 4),
            num_lines=len(result.bounding_boxes),
            processing_time=round(elapsed, 3),
        )
        return result.model_copy(update={"processing_time": elapsed})

    def get_provider_name(self) -> str:
        return "tesseract"

    def is_available(self) -> bool:
        """Check that the Tesseract binary can be found."""
        try:
            pytesseract.get_tesseract_version()
        except (pytesseract.TesseractNotFoundError, OSError):
            return False
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _extract_sync(self, image_bytes: bytes) -> OCRResult:
        original = self._preprocessor.load(image_bytes)
        passes: list[list[TextRegion]] = []
        for pass_name, pass_image in self._preprocessor.build_passes(original):
            self._logger.debug("running_ocr_pass", pass_name=pass_name)
            passes.append(self._read_lines(pass_image))

        merged = merge_passes(passes)
        if merged is None:
            raise OCRExtractionError(
                "All OCR passes returned no usable text",
                provider_name=self.get_provider_name(),
            )

        return OCRResult(
            raw_text=correct_ocr_errors(merged.raw_text),
            confidence=merged.confidence,
            provider_used=self.get_provider_name(),
            processing_time=0.0,
            bounding_boxes=merged.regions,
        )

    def _read_lines(self, image: Image.Image) -> list[TextRegion]:
        """Run Tesseract once and group its word boxes into line regions."""
        data = pytesseract.image_to_data(
            image, output_type=pytesseract.Output.DICT, config=_TESSERACT_CONFIG
        )

        lines: dict[tuple[int, int, int], list[int]] = defaultdict(list)
        for i, word in enumerate(data["text"]):
            # conf == -1 marks structural rows without a word.
            if word.strip() and float(data["conf"][i]) > 0:
                key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
                lines[key].append(i)

        regions: list[TextRegion] = []
        for indices in lines.values():
            left = min(data["left"][i] for i in indices)
            top = min(data["top"][i] for i in indices)
            right = max(data["left"][i] + data["width"][i] for i in indices)
            bottom = max(data["top"][i] + data["height"][i] for i in indices)
            confidence = sum(float(data["conf"][i]) for i in indices) / len(indices) / 100.0
            regions.append(
                TextRegion(
                    text=" ".join(data["text"][i].strip() for i in indices),
                    confidence=min(1.0, confidence),
                    x=left,
                    y=top,
                    width=right - left,
                    height=bottom - top,
                )
            )
        return regions
