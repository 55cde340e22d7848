"""
OCR Result Data Classes.

Standardized containers for OCR output: words with pixel bounding boxes,
grouped into lines, for one rasterized page.

Classes:
    OCRWord: Individual word with bounding box
    OCRLine: Line of text containing multiple words
    OCRResult: Complete OCR output for one page
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass
class OCRWord:
    """
    A single word recognized by OCR.

    Attributes:
        text: The recognized text content
        bbox: Bounding box as (x1, y1, x2, y2) in pixels
        confidence: OCR confidence score (0-100)
        word_index: Index of word on the page
        line_index: Index of the line this word belongs to

    Example:
        >>> word = OCRWord(text="Faktura", bbox=(100, 50, 200, 80), confidence=95.5)
        >>> word.width
        100
    """
    text: str
    bbox: Tuple[int, int, int, int]
    confidence: float = 0.0
    word_index: int = 0
    line_index: int = 0

    @property
    def x1(self) -> int:
        return self.bbox[0]

    @property
    def y1(self) -> int:
        return self.bbox[1]

    @property
    def x2(self) -> int:
        return self.bbox[2]

    @property
    def y2(self) -> int:
        return self.bbox[3]

    @property
    def width(self) -> int:
        return self.x2 - self.x1

    @property
    def height(self) -> int:
        return self.y2 - self.y1

    def __repr__(self) -> str:
        return f"OCRWord('{self.text}', bbox={self.bbox}, conf={self.confidence:.1f})"


@dataclass
class OCRLine:
    """
    A line of text made of OCR words, ordered left to right.

    Example:
        >>> line = OCRLine(words=[word1, word2])
        >>> line.text
        'Nr faktury: FV/2024/001'
    """
    words: List[OCRWord] = field(default_factory=list)
    bbox: Optional[Tuple[int, int, int, int]] = None
    line_index: int = 0

    @property
    def text(self) -> str:
        return ' '.join(word.text for word in self.words)

    @property
    def average_confidence(self) -> float:
        if not self.words:
            return 0.0
        return sum(w.confidence for w in self.words) / len(self.words)

    def compute_bbox(self) -> Tuple[int, int, int, int]:
        """Compute and store the box enclosing every word of the line."""
        self.bbox = enclosing_bbox(self.words)
        return self.bbox


def enclosing_bbox(words: List[OCRWord]) -> Tuple[int, int, int, int]:
    """Smallest (x1, y1, x2, y2) box containing all given words."""
    if not words:
        return (0, 0, 0, 0)
    return (
        min(w.x1 for w in words),
        min(w.y1 for w in words),
        max(w.x2 for w in words),
        max(w.y2 for w in words),
    )


@dataclass
class OCRResult:
    """
    Complete OCR result for a single page.

    Attributes:
        words: All words with bounding boxes
        lines: Words grouped into text lines
        page: 1-based page number the image came from
        image_width: Width of the source image in pixels
        image_height: Height of the source image in pixels
        language: OCR language used
        engine: OCR engine name
        processing_time: Time taken for OCR in seconds

    Example:
        >>> result = backend.extract(image)
        >>> print(f"Found {result.word_count} words")
    """
    words: List[OCRWord] = field(default_factory=list)
    lines: List[OCRLine] = field(default_factory=list)
    page: int = 1
    image_width: int = 0
    image_height: int = 0
    language: str = "pol+eng"
    engine: str = "unknown"
    processing_time: float = 0.0

    @property
    def text(self) -> str:
        """All text, one OCR line per output line."""
        if self.lines:
            return '\n'.join(line.text for line in self.lines)
        return ' '.join(word.text for word in self.words)

    @property
    def word_count(self) -> int:
        return len(self.words)

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def average_confidence(self) -> float:
        """Mean word confidence on the 0-100 scale."""
        if not self.words:
            return 0.0
        return sum(w.confidence for w in self.words) / len(self.words)

    def find_words(self, value: str) -> List[OCRWord]:
        """
        Locate the run of words on a single line that spells out a value.

        The value is compared token by token (case-insensitive) against each
        line; the first line containing the full token sequence wins.

        Args:
            value: Text as it appears in the extracted field.

        Returns:
            The matching words, or an empty list when the value cannot be
            located (e.g. it spans lines or OCR split it differently).
        """
        tokens = [t.lower() for t in value.split()]
        if not tokens:
            return []

        for line in self.lines:
            texts = [w.text.lower() for w in line.words]
            for start in range(len(texts) - len(tokens) + 1):
                if texts[start:start + len(tokens)] == tokens:
                    return line.words[start:start + len(tokens)]
        return []

    def is_empty(self) -> bool:
        return len(self.words) == 0

    def __repr__(self) -> str:
        return (
            f"OCRResult(words={self.word_count}, lines={self.line_count}, "
            f"confidence={self.average_confidence:.1f}%)"
        )
