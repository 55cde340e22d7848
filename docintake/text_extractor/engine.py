"""
Text Extractor Module.

Unified entry point turning document bytes into plain text.

Usage:
    from docintake.text_extractor import TextExtractor

    extractor = TextExtractor()
    extracted = extractor.extract_text(pdf_bytes, "pdf")

    print(extracted.text)
    print(extracted.source)      # text_layer | ocr | none
    print(extracted.degraded)    # True when nothing could be read
"""

from dataclasses import dataclass
from typing import Optional, Union

from docintake.utils.logger import get_logger
from docintake.utils.exceptions import RasterizationError
from .media import MediaType
from .ocr_result import OCRResult
from .pdf_processor import PDFProcessor
from .image_processor import ImageProcessor
from .tesseract_backend import TesseractBackend

logger = get_logger(__name__)


SOURCE_TEXT_LAYER = "text_layer"
SOURCE_OCR = "ocr"
SOURCE_NONE = "none"


@dataclass
class ExtractedText:
    """
    Text obtained from one document.

    Attributes:
        text: Plain UTF-8 text, empty when degraded
        source: "text_layer", "ocr" or "none"
        ocr_result: Word boxes when the text came from OCR
        ocr_confidence: Mean OCR word confidence scaled to 0..1
        degraded: True when extraction fell back to no text
        diagnostic: Why the extraction degraded
    """
    text: str
    source: str
    ocr_result: Optional[OCRResult] = None
    ocr_confidence: Optional[float] = None
    degraded: bool = False
    diagnostic: Optional[str] = None

    @classmethod
    def degraded_result(cls, diagnostic: str) -> 'ExtractedText':
        return cls(text="", source=SOURCE_NONE, degraded=True, diagnostic=diagnostic)


class TextExtractor:
    """
    Dispatches documents to the PDF or image path and runs OCR.

    The OCR backend is created on first use, so a pipeline whose documents
    all carry a PDF text layer never needs Tesseract installed. Tests and
    alternative engines can pass any object with an
    ``extract(image, page=1) -> OCRResult`` method.

    Example:
        >>> extractor = TextExtractor()
        >>> extracted = extractor.extract_text(data, MediaType.PNG)
    """

    def __init__(
        self,
        ocr_backend=None,
        pdf_processor: Optional[PDFProcessor] = None,
        image_processor: Optional[ImageProcessor] = None
    ) -> None:
        self._ocr_backend = ocr_backend
        self.pdf_processor = pdf_processor or PDFProcessor()
        self.image_processor = image_processor or ImageProcessor()

    @property
    def ocr_backend(self):
        if self._ocr_backend is None:
            self._ocr_backend = TesseractBackend()
        return self._ocr_backend

    def extract_text(self, data: bytes, media_type: Union[str, MediaType]) -> ExtractedText:
        """
        Produce the text of a document.

        Args:
            data: Raw document bytes.
            media_type: pdf, jpeg or png (aliases and MIME strings accepted).

        Returns:
            ExtractedText. PDFs that cannot be rasterized yield a degraded
            result with empty text and a diagnostic instead of an error.

        Raises:
            UnsupportedMediaTypeError: For any other media type.
            OCRError: If the OCR engine is missing or fails.
        """
        media = MediaType.parse(media_type)

        if media is MediaType.PDF:
            return self._extract_pdf(data)
        return self._run_ocr(self.image_processor.load(data))

    def _extract_pdf(self, data: bytes) -> ExtractedText:
        text = self.pdf_processor.extract_text_layer(data)
        if text is not None:
            return ExtractedText(text=text, source=SOURCE_TEXT_LAYER)

        try:
            image = self.pdf_processor.rasterize_first_page(data)
        except RasterizationError as e:
            logger.warning(f"PDF rasterization failed, returning empty text: {e}")
            return ExtractedText.degraded_result(f"PDF could not be rasterized: {e.details.get('reason')}")

        return self._run_ocr(self.image_processor.prepare(image))

    def _run_ocr(self, image) -> ExtractedText:
        result = self.ocr_backend.extract(image, page=1)

        if result.is_empty():
            logger.warning("OCR found no text on the page")
            return ExtractedText(
                text="",
                source=SOURCE_OCR,
                ocr_result=result,
                ocr_confidence=0.0,
                degraded=True,
                diagnostic="OCR found no text on the page"
            )

        return ExtractedText(
            text=result.text,
            source=SOURCE_OCR,
            ocr_result=result,
            ocr_confidence=round(result.average_confidence / 100.0, 4)
        )
