"""OCR orchestration service with a multi-provider fallback chain.

Providers are tried in the order supplied at construction.  The chain
short-circuits on the first result that meets the confidence threshold
and otherwise keeps the best sub-threshold result, so the caller always
gets *something* unless every provider hard-fails.

For the upload flow, :meth:`OCRService.extract_lineup_text` turns a total
failure into an empty string: an unreadable poster yields zero candidates
and a completed (empty) run rather than an error response.
"""

from __future__ import annotations

from src.interfaces.ocr_provider import IOCRProvider
from src.models.lineup import LineupImage, OCRResult
from src.utils.errors import OCRExtractionError
from src.utils.logging import get_logger

_DEFAULT_CONFIDENCE_THRESHOLD = 0.6


class OCRService:
    """Orchestrates OCR extraction across multiple providers."""

    def __init__(
        self,
        providers: list[IOCRProvider],
        min_confidence: float = _DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> None:
        self._providers = providers
        self._min_confidence = min_confidence
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def extract_text(self, image: LineupImage) -> OCRResult:
        """Run OCR on *image* using the provider fallback chain.

        Parameters
        ----------
        image:
            The lineup poster to process.

        Returns
        -------
        OCRResult
            The best extraction result obtained from any provider.

        Raises
        ------
        OCRExtractionError
            If every provider either is unavailable or raises.
        """
        best_result: OCRResult | None = None

        for provider in self._providers:
            name = provider.get_provider_name()
            if not provider.is_available():
                self._logger.warning("ocr_provider_unavailable", provider=name)
                continue

            try:
                self._logger.info("ocr_provider_attempting", provider=name)
                result = await provider.extract_text(image)
            except Exception as exc:
                # One provider failing is non-fatal; the chain moves on.
                self._logger.warning("ocr_provider_failed", provider=name, error=str(exc))
                continue

            if result.confidence >= self._min_confidence:
                self._logger.info(
                    "ocr_provider_accepted",
                    provider=name,
                    confidence=round(result.confidence, 4),
                )
                return result

            if best_result is None or result.confidence > best_result.confidence:
                best_result = result
                self._logger.info(
                    "ocr_provider_below_threshold",
                    provider=name,
                    confidence=round(result.confidence, 4),
                )

        if best_result is not None:
            self._logger.info(
                "ocr_returning_best_fallback",
                provider=best_result.provider_used,
                confidence=round(best_result.confidence, 4),
            )
            return best_result

        raise OCRExtractionError("All OCR providers failed")

    async def extract_lineup_text(self, image: LineupImage) -> str:
        """Return the poster's raw text, or ``""`` when OCR fails entirely."""
        try:
            result = await self.extract_text(image)
        except OCRExtractionError as exc:
            self._logger.warning("ocr_no_text", image_id=image.id, error=str(exc))
            return ""
        return result.raw_text

    def get_available_providers(self) -> list[str]:
        """Return the names of providers that are currently available."""
        return [p.get_provider_name() for p in self._providers if p.is_available()]
