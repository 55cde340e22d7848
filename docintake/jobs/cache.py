"""
Result Cache Module.

Stores finished extraction results on disk, keyed by the SHA-256 of the
document bytes and the document class, so re-submitting the same file
skips OCR.

Layout:
    <directory>/<sha256>.<document class>.json

Usage:
    cache = ResultCache(".cache/docintake")

    result = cache.get(document)
    if result is None:
        result = pipeline_run(document)
        cache.put(document, result)
"""

import hashlib
import json
import os
import threading
from pathlib import Path
from typing import Optional, Union

from docintake.text_extractor import Document
from docintake.utils.helpers import ensure_directory
from docintake.utils.logger import get_logger
from .models import ExtractionResult

logger = get_logger(__name__)


class ResultCache:
    """
    Directory of JSON-serialized ExtractionResults.

    A corrupt or unreadable entry counts as a miss; a failed write is
    logged and the result is still returned to the caller.

    Attributes:
        directory: Where cache entries live
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)

    @staticmethod
    def key(document: Document) -> str:
        digest = hashlib.sha256(document.data).hexdigest()
        return f"{digest}.{document.document_class.value}"

    def path_for(self, document: Document) -> Path:
        return self.directory / f"{self.key(document)}.json"

    def get(self, document: Document) -> Optional[ExtractionResult]:
        """Cached result for a document, or None."""
        path = self.path_for(document)
        if not path.exists():
            return None

        try:
            data = json.loads(path.read_text(encoding='utf-8'))
            result = ExtractionResult.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable cache entry {path.name}: {e}")
            return None

        logger.debug(f"Cache hit for {document!r}")
        return result

    def put(self, document: Document, result: ExtractionResult) -> None:
        """Store a result. Concurrent writers of the same key are harmless."""
        path = self.path_for(document)
        tmp_path = path.with_name(f"{path.name}.{os.getpid()}.{threading.get_ident()}.tmp")

        try:
            ensure_directory(self.directory)
            tmp_path.write_text(
                json.dumps(result.to_dict(), ensure_ascii=False, indent=2),
                encoding='utf-8'
            )
            tmp_path.replace(path)
        except OSError as e:
            logger.warning(f"Failed to cache result for {document!r}: {e}")
