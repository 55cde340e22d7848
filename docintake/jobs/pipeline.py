"""
Extraction Pipeline Module.

One synchronous pass over a document:

    Text Extractor -> Field Extractor -> Confidence Scorer

The pipeline holds no per-document state, so a single instance is shared
by every worker thread.
"""

import time
from dataclasses import replace
from typing import Dict, List, Optional

from config import get_config
from docintake.confidence import ConfidenceScorer
from docintake.field_extractor import RecognizedField, extract_fields
from docintake.field_extractor.label_matcher import LabelMatch
from docintake.field_extractor.records import BoundingBox
from docintake.text_extractor import Document, DocumentClass, ExtractedText, TextExtractor
from docintake.text_extractor.ocr_result import enclosing_bbox
from docintake.utils.logger import get_logger
from .cache import ResultCache
from .models import ExtractionResult, ResultMeta

logger = get_logger(__name__)


class ExtractionPipeline:
    """
    Runs the three extraction stages for one document.

    Attributes:
        text_extractor: Produces text from bytes
        scorer: Computes the overall confidence
        cache: Optional on-disk result cache (cache.enabled / cache.directory)

    Example:
        >>> pipeline = ExtractionPipeline()
        >>> result = pipeline.run(Document.create(data, "pdf", "invoice"))
        >>> result.confidence
        0.6667
    """

    def __init__(
        self,
        text_extractor: Optional[TextExtractor] = None,
        scorer: Optional[ConfidenceScorer] = None,
        cache: Optional[ResultCache] = None
    ) -> None:
        self.text_extractor = text_extractor or TextExtractor()
        self.scorer = scorer or ConfidenceScorer()
        if cache is None and get_config("cache.enabled", False):
            cache = ResultCache(get_config("cache.directory", ".cache/docintake"))
        self.cache = cache

    def run(self, document: Document) -> ExtractionResult:
        """
        Extract text, fields and confidence from a document.

        With a result cache configured, a document seen before (same bytes,
        same class) is answered from the cache without running OCR.

        Raises:
            ExtractionError: If OCR fails. Unreadable PDFs do not raise;
                they produce a zero-confidence result with a diagnostic.
        """
        if self.cache is not None:
            cached = self.cache.get(document)
            if cached is not None:
                logger.info(f"Serving {document.filename or 'upload'} from the result cache")
                return replace(
                    cached,
                    source_description=f"{document.description} via cache",
                    meta=replace(cached.meta, cached=True) if cached.meta else ResultMeta("cache", cached=True)
                )

        start_time = time.perf_counter()
        extracted = self.text_extractor.extract_text(document.data, document.media_type)
        text_done = time.perf_counter()

        extraction = extract_fields(extracted.text, document.document_class)

        confidence = self.scorer.score(
            extraction.record,
            extraction.recognized_count,
            extraction.expected_count,
            extraction.validations,
            degraded=extracted.degraded
        )

        fields = self._attach_positions(extraction.recognized, extraction.matches, extracted)
        parsed_done = time.perf_counter()

        is_invoice = document.document_class == DocumentClass.INVOICE
        result = ExtractionResult(
            source_description=f"{document.description} via {extracted.source}",
            confidence=confidence,
            raw_text=extracted.text,
            fields=fields,
            validations=extraction.validations,
            invoice=extraction.record if is_invoice else None,
            expense=None if is_invoice else extraction.record,
            diagnostic=extracted.diagnostic,
            meta=ResultMeta(
                text_source=extracted.source,
                ocr_ms=round((text_done - start_time) * 1000, 1),
                parsed_ms=round((parsed_done - text_done) * 1000, 1),
                ocr_confidence=extracted.ocr_confidence
            )
        )

        # Degraded text may come from a missing poppler install; retry next time
        if self.cache is not None and not extracted.degraded:
            self.cache.put(document, result)

        logger.info(
            f"Extracted {extraction.recognized_count}/{extraction.expected_count} "
            f"{document.document_class.value} fields from {document.filename or 'upload'} "
            f"(confidence {confidence:.2f}, {parsed_done - start_time:.2f}s)"
        )
        return result

    @staticmethod
    def _attach_positions(
        fields: List[RecognizedField],
        matches: Dict[str, LabelMatch],
        extracted: ExtractedText
    ) -> List[RecognizedField]:
        """Fill page, box and OCR confidence for values found among the OCR words."""
        ocr = extracted.ocr_result
        if ocr is None:
            return fields

        # Derived values (category, inline VAT rate) have no printed position
        printed = {match.raw for match in matches.values()}

        for f in fields:
            if f.value not in printed:
                continue
            words = ocr.find_words(f.value)
            if not words:
                continue
            f.page = ocr.page
            f.bounding_box = BoundingBox.from_corners(*enclosing_bbox(words))
            f.confidence = round(sum(w.confidence for w in words) / len(words) / 100.0, 4)

        return fields
