"""
Confidence Scorer Module.

A single scalar in [0, 1] describing how much of a document was understood:
the share of expected fields that were recognized, optionally reduced for
every failed validation.
"""

from typing import Iterable, Optional

from config import get_config
from docintake.utils.logger import get_logger

logger = get_logger(__name__)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class ConfidenceScorer:
    """
    Derives the overall confidence of an extraction.

    Attributes:
        validation_penalty: Subtracted once per failed validation

    Example:
        >>> scorer = ConfidenceScorer(validation_penalty=0.0)
        >>> scorer.score(record, recognized_count=6, expected_count=9)
        0.6667
    """

    def __init__(self, validation_penalty: Optional[float] = None) -> None:
        if validation_penalty is None:
            validation_penalty = get_config("confidence.validation_penalty", 0.0)
        self.validation_penalty = float(validation_penalty)

    def score(
        self,
        record,
        recognized_count: int,
        expected_count: int,
        validations: Iterable = (),
        degraded: bool = False
    ) -> float:
        """
        Score an extraction.

        Args:
            record: The parsed record (kept for scorers that weigh fields).
            recognized_count: Fields with a value.
            expected_count: Fields the document class defines.
            validations: Validation results; failures cost validation_penalty.
            degraded: True when the text could not be read at all.

        Returns:
            Confidence rounded to 4 decimals. Zero whenever nothing was
            recognized or the text is degraded.
        """
        if degraded or recognized_count <= 0 or expected_count <= 0:
            return 0.0

        confidence = clamp(recognized_count / expected_count)

        failed = sum(1 for v in validations if not v.ok)
        if failed and self.validation_penalty:
            confidence = clamp(confidence - failed * self.validation_penalty)
            logger.debug(f"{failed} failed validation(s), confidence reduced to {confidence:.4f}")

        return round(confidence, 4)
