"""
PDF Processor Module.

Turns PDF bytes into something the OCR stage can read:
    - the native text layer of the first page (pdfplumber), when present
    - otherwise the first page rasterized at a fixed DPI (pdf2image/poppler)
"""

import io
from typing import Optional

import pdfplumber
from pdf2image import convert_from_bytes
from pdf2image.exceptions import (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFPopplerTimeoutError,
    PDFSyntaxError,
)
from PIL import Image

from config import get_config
from docintake.utils.logger import get_logger
from docintake.utils.exceptions import RasterizationError

logger = get_logger(__name__)


class PDFProcessor:
    """
    Processor for PDF documents. Only the first page is ever read.

    Attributes:
        dpi: Resolution for PDF to image conversion
        use_text_layer: Whether to try the embedded text before OCR
        min_text_length: Minimum text-layer length considered usable

    Example:
        >>> processor = PDFProcessor()
        >>> text = processor.extract_text_layer(pdf_bytes)
        >>> if text is None:
        ...     image = processor.rasterize_first_page(pdf_bytes)
    """

    def __init__(self) -> None:
        self.dpi = get_config("pdf.dpi", 300)
        self.use_text_layer = get_config("pdf.use_text_layer", True)
        self.min_text_length = get_config("pdf.min_text_length", 50)
        self.poppler_path = get_config("pdf.poppler_path")

        logger.debug(
            f"PDFProcessor initialized (DPI={self.dpi}, "
            f"use_text_layer={self.use_text_layer})"
        )

    def extract_text_layer(self, data: bytes) -> Optional[str]:
        """
        Read the embedded text of the first page.

        Args:
            data: Raw PDF bytes.

        Returns:
            The page text, or None when the PDF looks scanned (less than
            min_text_length characters), the text layer is disabled, or
            pdfplumber cannot parse the file.
        """
        if not self.use_text_layer:
            return None

        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                if not pdf.pages:
                    return None
                text = pdf.pages[0].extract_text() or ""
        except Exception as e:
            # Unparseable here may still rasterize; let pdf2image decide
            logger.debug(f"Could not read PDF text layer: {e}")
            return None

        if len(text.strip()) < self.min_text_length:
            logger.debug("PDF appears to be scanned (minimal text found)")
            return None

        logger.debug(f"Using PDF text layer ({len(text)} chars)")
        return text

    def rasterize_first_page(self, data: bytes) -> Image.Image:
        """
        Render the first page as an RGB image at the configured DPI.

        Args:
            data: Raw PDF bytes.

        Returns:
            PIL Image of page 1.

        Raises:
            RasterizationError: If the PDF is corrupt or poppler is missing.
        """
        logger.debug(f"Rasterizing first PDF page at {self.dpi} DPI")

        try:
            images = convert_from_bytes(
                data,
                dpi=self.dpi,
                first_page=1,
                last_page=1,
                fmt='png',
                poppler_path=self.poppler_path
            )
        except (PDFInfoNotInstalledError, PDFPageCountError,
                PDFPopplerTimeoutError, PDFSyntaxError, OSError) as e:
            logger.error(f"pdf2image conversion failed: {e}")
            raise RasterizationError(str(e)) from e

        if not images:
            raise RasterizationError("PDF has no pages")

        image = images[0]
        if image.mode != 'RGB':
            image = image.convert('RGB')
        return image
