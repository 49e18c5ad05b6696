"""OCR provider implementations for lineup poster text extraction.

TesseractOCRProvider runs several preprocessing passes (standard,
inverted, Otsu, saturation) and merges the lines it reads from each.
"""

from src.providers.ocr.tesseract_provider import TesseractOCRProvider

__all__ = ["TesseractOCRProvider"]
