"""Image preprocessing for OCR on festival lineup posters.

Lineup posters pack dozens of names into tiered rows of very different
type sizes, often set in white or coloured lettering over photography.
A single binarization loses either the headliners or the small print, so
the Tesseract provider reads several variants of the same poster and
merges the lines (see ``ocr_helpers.merge_passes``):

    "standard"   : contrast boost + adaptive threshold + deskew
    "inverted"   : the standard pass inverted (light-on-dark lettering)
    "otsu"       : global Otsu threshold (flat, two-tone posters)
    "saturation" : HSV saturation mask (coloured lettering on dark art)
"""

import io

import cv2
import numpy as np
from PIL import Image, ImageEnhance, ImageOps

PASS_NAMES = ("standard", "inverted", "otsu", "saturation")


class ImagePreprocessor:
    """Builds OCR-ready variants of a lineup poster."""

    def __init__(self, max_dim: int = 2400, min_dim: int = 1400) -> None:
        # Small print on dense lineup posters needs extra upscaling.
        self._max_dim = max_dim
        self._min_dim = min_dim

    def load(self, image_bytes: bytes) -> Image.Image:
        """Decode raw upload bytes into an RGB image."""
        return Image.open(io.BytesIO(image_bytes)).convert("RGB")

    def build_passes(self, original: Image.Image) -> list[tuple[str, Image.Image]]:
        """Return ``(pass_name, image)`` pairs in ``PASS_NAMES`` order.

        The skew angle is measured once on the standard pass and applied to
        the thresholded variants, so line geometry agrees across passes.
        """
        resized = self.resize_for_ocr(original)
        gray = np.array(self.enhance_contrast(resized).convert("L"))

        adaptive = self.binarize_adaptive(gray)
        angle = self.detect_skew_angle(adaptive)
        standard = self.rotate(Image.fromarray(adaptive), angle)
        inverted = ImageOps.invert(standard)
        otsu = self.rotate(Image.fromarray(self.binarize_otsu(gray)), angle)
        saturation = Image.fromarray(self.binarize_otsu(self.saturation_channel(resized)))

        return [
            ("standard", standard.convert("RGB")),
            ("inverted", inverted.convert("RGB")),
            ("otsu", otsu.convert("RGB")),
            ("saturation", saturation.convert("RGB")),
        ]

    def resize_for_ocr(self, image: Image.Image) -> Image.Image:
        """Scale so the largest side lies between ``min_dim`` and ``max_dim``.

        Args:
            image: Input PIL Image.

        Returns:
            The resized image, or *image* itself when already in range.
        """
        width, height = image.size
        largest = max(width, height)
        if largest < self._min_dim:
            scale = self._min_dim / largest
        elif largest > self._max_dim:
            scale = self._max_dim / largest
        else:
            return image
        return image.resize((int(width * scale), int(height * scale)), Image.LANCZOS)

    @staticmethod
    def enhance_contrast(image: Image.Image) -> Image.Image:
        image = ImageEnhance.Contrast(image).enhance(2.0)
        return ImageEnhance.Sharpness(image).enhance(1.5)

    @staticmethod
    def binarize_adaptive(gray: np.ndarray) -> np.ndarray:
        """Adaptive Gaussian threshold; copes with gradients behind the text."""
        return cv2.adaptiveThreshold(
            gray,
            255,
            cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
            cv2.THRESH_BINARY,
            blockSize=15,
            C=4,
        )

    @staticmethod
    def binarize_otsu(gray: np.ndarray) -> np.ndarray:
        _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        return binary

    @staticmethod
    def saturation_channel(image: Image.Image) -> np.ndarray:
        """Return the HSV saturation channel; coloured lettering is bright in it."""
        hsv = cv2.cvtColor(np.array(image.convert("RGB")), cv2.COLOR_RGB2HSV)
        return np.ascontiguousarray(hsv[:, :, 1])

    @staticmethod
    def detect_skew_angle(binary: np.ndarray) -> float | None:
        """Estimate page skew from the dominant near-horizontal Hough lines.

        Args:
            binary: A thresholded grayscale image.

        Returns:
            The median angle in degrees, or ``None`` when the poster is
            already level (under 0.5 degrees) or the estimate is implausible
            (over 15 degrees, usually diagonal artwork).
        """
        edges = cv2.Canny(binary, 50, 150, apertureSize=3)
        lines = cv2.HoughLinesP(
            edges, 1, np.pi / 180, threshold=100, minLineLength=80, maxLineGap=10
        )
        if lines is None:
            return None

        angles = [
            float(np.degrees(np.arctan2(y2 - y1, x2 - x1)))
            for x1, y1, x2, y2 in (line[0] for line in lines)
        ]
        angles = [a for a in angles if abs(a) < 45]
        if not angles:
            return None

        median = float(np.median(angles))
        if abs(median) < 0.5 or abs(median) > 15:
            return None
        return median

    @staticmethod
    def rotate(image: Image.Image, angle: float | None) -> Image.Image:
        if angle is None:
            return image
        return image.rotate(angle, resample=Image.BICUBIC, expand=True, fillcolor=255)
