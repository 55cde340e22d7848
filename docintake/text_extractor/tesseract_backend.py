"""
Tesseract OCR Backend.

OCR through pytesseract. Produces words with bounding boxes and per-word
confidences, grouped into lines in reading order.

Requirements:
    - Tesseract OCR installed on the system, with the ``pol`` and ``eng``
      traineddata files
    - pytesseract Python package
"""

import time
from typing import List, Dict, Tuple

import pytesseract
from PIL import Image

from config import get_config
from docintake.utils.logger import get_logger
from docintake.utils.exceptions import OCREngineNotAvailableError, OCRError
from .ocr_result import OCRResult, OCRWord, OCRLine

logger = get_logger(__name__)


class TesseractBackend:
    """
    Tesseract OCR backend.

    Attributes:
        language: Tesseract language code, "pol+eng" for bilingual documents
        psm: Page Segmentation Mode (1-13)
        oem: OCR Engine Mode (0-3)
        min_word_confidence: Words below this confidence are dropped

    Example:
        >>> backend = TesseractBackend()
        >>> result = backend.extract(image)
        >>> print(result.text)
    """

    def __init__(self) -> None:
        self.language = get_config("ocr.language", "pol+eng")
        self.psm = get_config("ocr.psm", 3)
        self.oem = get_config("ocr.oem", 3)
        self.min_word_confidence = float(get_config("ocr.min_word_confidence", 0))

        tesseract_cmd = get_config("ocr.tesseract_cmd")
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

        self.version = self._check_dependencies()

        logger.debug(
            f"TesseractBackend initialized (lang={self.language}, "
            f"psm={self.psm}, oem={self.oem})"
        )

    def _check_dependencies(self) -> str:
        """
        Check that the Tesseract binary is reachable.

        Raises:
            OCREngineNotAvailableError: If Tesseract is not installed.
        """
        try:
            version = str(pytesseract.get_tesseract_version())
        except (pytesseract.TesseractNotFoundError, OSError) as e:
            raise OCREngineNotAvailableError(
                "tesseract", f"not installed or not in PATH: {e}"
            ) from e

        logger.info(f"Tesseract version: {version}")
        return version

    def _build_config(self) -> str:
        return f"--psm {self.psm} --oem {self.oem}"

    def extract(self, image: Image.Image, page: int = 1) -> OCRResult:
        """
        Run OCR on an image.

        Args:
            image: PIL Image to process.
            page: Page number recorded on the result.

        Returns:
            OCRResult containing words, lines and bounding boxes.

        Raises:
            OCRError: If Tesseract fails on the image.
        """
        start_time = time.time()

        if image.mode != 'RGB':
            image = image.convert('RGB')

        config = self._build_config()
        logger.debug(f"Running Tesseract OCR (config: {config})")

        try:
            data = pytesseract.image_to_data(
                image,
                lang=self.language,
                config=config,
                output_type=pytesseract.Output.DICT
            )
        except pytesseract.TesseractError as e:
            logger.error(f"OCR processing failed: {e}")
            raise OCRError(str(e)) from e

        words, line_keys = self._parse_tesseract_output(data)
        lines = self._group_into_lines(words, line_keys)
        processing_time = time.time() - start_time

        result = OCRResult(
            words=words,
            lines=lines,
            page=page,
            image_width=image.width,
            image_height=image.height,
            language=self.language,
            engine="tesseract",
            processing_time=processing_time
        )

        logger.info(
            f"OCR completed: {result.word_count} words, "
            f"{result.line_count} lines, "
            f"avg confidence: {result.average_confidence:.1f}% "
            f"({processing_time:.2f}s)"
        )
        return result

    def _parse_tesseract_output(
        self,
        data: Dict[str, List]
    ) -> Tuple[List[OCRWord], List[Tuple[int, int, int]]]:
        """
        Turn image_to_data output into words plus their (block, par, line) keys.
        """
        words = []
        keys = []

        for i, text in enumerate(data['text']):
            if not text or not text.strip():
                continue

            x, y = data['left'][i], data['top'][i]
            w, h = data['width'][i], data['height'][i]
            if w <= 0 or h <= 0:
                continue

            # Tesseract reports -1 for non-word elements
            conf = max(float(data['conf'][i]), 0.0)
            if conf < self.min_word_confidence:
                continue

            words.append(OCRWord(
                text=text.strip(),
                bbox=(x, y, x + w, y + h),
                confidence=conf,
                word_index=len(words)
            ))
            keys.append((data['block_num'][i], data['par_num'][i], data['line_num'][i]))

        return words, keys

    def _group_into_lines(
        self,
        words: List[OCRWord],
        keys: List[Tuple[int, int, int]]
    ) -> List[OCRLine]:
        """
        Group words by Tesseract's (block, paragraph, line) numbering.

        line_num restarts in every paragraph, so it alone would merge
        unrelated lines.
        """
        groups: Dict[Tuple[int, int, int], List[OCRWord]] = {}
        for word, key in zip(words, keys):
            groups.setdefault(key, []).append(word)

        lines = []
        for line_index, key in enumerate(sorted(groups)):
            line_words = sorted(groups[key], key=lambda w: w.x1)
            for word in line_words:
                word.line_index = line_index

            line = OCRLine(words=line_words, line_index=line_index)
            line.compute_bbox()
            lines.append(line)

        return lines
