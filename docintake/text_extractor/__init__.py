"""
Text Extractor Module.

Turns document bytes into plain text:
    - PDF: native text layer, or first page rasterized at 300 DPI + OCR
    - JPEG/PNG: Tesseract OCR with the pol+eng language model
"""

from .media import Document, DocumentClass, MediaType, infer_document_class
from .ocr_result import OCRResult, OCRWord, OCRLine
from .engine import TextExtractor, ExtractedText

__all__ = [
    'Document',
    'DocumentClass',
    'MediaType',
    'infer_document_class',
    'OCRResult',
    'OCRWord',
    'OCRLine',
    'TextExtractor',
    'ExtractedText'
]
