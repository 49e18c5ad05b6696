"""Unit tests for the Tesseract OCR provider adapter."""

from __future__ import annotations

import hashlib
from unittest.mock import MagicMock, patch

import pytest
import pytesseract
from PIL import Image

from src.models.lineup import LineupImage
from src.providers.ocr.tesseract_provider import TesseractOCRProvider
from src.utils.errors import OCRExtractionError
from src.utils.image_preprocessor import ImagePreprocessor


def _make_lineup_image(png_bytes: bytes | None) -> LineupImage:
    """Create a LineupImage, attaching raw bytes the way the upload route does."""
    data = png_bytes or b""
    lineup = LineupImage(
        filename="lineup.png",
        content_type="image/png",
        file_size=len(data),
        image_hash=hashlib.sha256(data).hexdigest(),
    )
    if png_bytes is not None:
        lineup.__pydantic_private__["_image_data"] = png_bytes
    return lineup


def _tesseract_data(rows: list[tuple[str, float, int, int, int]]) -> dict[str, list]:
    """Build an ``image_to_data`` dict from (text, conf, block, line, top) rows."""
    data: dict[str, list] = {
        key: [] for key in ("text", "conf", "block_num", "par_num", "line_num",
                            "left", "top", "width", "height")
    }
    for index, (text, conf, block, line, top) in enumerate(rows):
        data["text"].append(text)
        data["conf"].append(conf)
        data["block_num"].append(block)
        data["par_num"].append(1)
        data["line_num"].append(line)
        data["left"].append(10 + index * 50)
        data["top"].append(top)
        data["width"].append(40)
        data["height"].append(20)
    return data


_LINEUP_DATA = _tesseract_data(
    [
        ("", -1, 1, 0, 0),
        ("BICEP", 90, 1, 1, 10),
        ("-", 80, 1, 1, 10),
        ("FOUR", 90, 1, 1, 10),
        ("TET", 90, 1, 1, 10),
        ("ROSE", 95, 2, 1, 60),
        ("smudge", 0, 3, 1, 90),
    ]
)


@pytest.fixture
def mock_preprocessor() -> MagicMock:
    preprocessor = MagicMock(spec=ImagePreprocessor)
    preprocessor.load.return_value = Image.new("RGB", (40, 30), (255, 255, 255))
    pass_image = Image.new("RGB", (40, 30), (255, 255, 255))
    preprocessor.build_passes.return_value = [
        ("standard", pass_image),
        ("inverted", pass_image),
    ]
    return preprocessor


class TestTesseractOCRProvider:
    def test_get_provider_name(self) -> None:
        provider = TesseractOCRProvider(ImagePreprocessor())
        assert provider.get_provider_name() == "tesseract"

    @pytest.mark.asyncio
    async def test_extract_text_groups_words_into_lines(
        self, mock_preprocessor: MagicMock, png_bytes: bytes
    ) -> None:
        with patch.object(pytesseract, "image_to_data", return_value=_LINEUP_DATA) as mock_data:
            provider = TesseractOCRProvider(mock_preprocessor)
            result = await provider.extract_text(_make_lineup_image(png_bytes))

        assert result.raw_text == "BICEP - FOUR TET\nROSE"
        assert result.provider_used == "tesseract"
        assert result.confidence == pytest.approx((0.875 + 0.95) / 2)
        assert len(result.bounding_boxes) == 2
        assert result.bounding_boxes[0].width == 190
        # One Tesseract call per preprocessing pass.
        assert mock_data.call_count == 2
        mock_preprocessor.load.assert_called_once_with(png_bytes)

    @pytest.mark.asyncio
    async def test_misreads_are_corrected(
        self, mock_preprocessor: MagicMock, png_bytes: bytes
    ) -> None:
        data = _tesseract_data([("DIPL0", 90, 1, 1, 10)])
        with patch.object(pytesseract, "image_to_data", return_value=data):
            result = await TesseractOCRProvider(mock_preprocessor).extract_text(
                _make_lineup_image(png_bytes)
            )
        assert result.raw_text == "DIPLO"

    @pytest.mark.asyncio
    async def test_no_text_raises(self, mock_preprocessor: MagicMock, png_bytes: bytes) -> None:
        data = _tesseract_data([("", -1, 1, 0, 0)])
        with patch.object(pytesseract, "image_to_data", return_value=data):
            provider = TesseractOCRProvider(mock_preprocessor)
            with pytest.raises(OCRExtractionError, match="no usable text"):
                await provider.extract_text(_make_lineup_image(png_bytes))

    @pytest.mark.asyncio
    async def test_missing_image_data_raises(self, mock_preprocessor: MagicMock) -> None:
        provider = TesseractOCRProvider(mock_preprocessor)
        with pytest.raises(OCRExtractionError, match="No image data"):
            await provider.extract_text(_make_lineup_image(None))
        mock_preprocessor.load.assert_not_called()

    @pytest.mark.asyncio
    async def test_engine_failure_is_wrapped(
        self, mock_preprocessor: MagicMock, png_bytes: bytes
    ) -> None:
        with patch.object(
            pytesseract, "image_to_data", side_effect=RuntimeError("tesseract crashed")
        ):
            provider = TesseractOCRProvider(mock_preprocessor)
            with pytest.raises(OCRExtractionError) as exc_info:
                await provider.extract_text(_make_lineup_image(png_bytes))

        assert exc_info.value.provider_name == "tesseract"
        assert "tesseract crashed" in str(exc_info.value)

    def test_is_available_true(self) -> None:
        with patch.object(pytesseract, "get_tesseract_version", return_value="5.3.0"):
            assert TesseractOCRProvider(ImagePreprocessor()).is_available() is True

    def test_is_available_false(self) -> None:
        with patch.object(
            pytesseract,
            "get_tesseract_version",
            side_effect=pytesseract.TesseractNotFoundError(),
        ):
            assert TesseractOCRProvider(ImagePreprocessor()).is_available() is False
