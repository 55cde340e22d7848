"""
Label Matcher Module.

Finds the value printed after a label. For each synonym three layouts are
tried, in order, case-insensitively:

    1. ``label : value``
    2. ``label value``
    3. ``label - value``

The value runs to the end of the line. A label only matches at the start of
a word, so "nr" does not fire inside "konr".
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Iterable, Optional, Pattern, Tuple

from docintake.utils.logger import get_logger

logger = get_logger(__name__)


_LAYOUTS = (
    r'{label}\s*:\s*([^\n\r]+)',
    r'{label}\s+([^\n\r]+)',
    r'{label}\s*-\s*([^\n\r]+)',
)


@dataclass(frozen=True)
class LabelMatch:
    """
    A label value found in the text.

    Attributes:
        synonym: The synonym that matched
        raw: The trimmed text after the label
        value: raw after conversion (amount, NIP digits, ...)
        start: Offset of raw in the text
    """
    synonym: str
    raw: str
    value: object
    start: int


@lru_cache(maxsize=None)
def _patterns_for(label: str) -> Tuple[Pattern, ...]:
    escaped = r'(?<!\w)' + re.escape(label)
    return tuple(
        re.compile(layout.format(label=escaped), re.IGNORECASE)
        for layout in _LAYOUTS
    )


def value_after_label(text: str, label: str) -> Optional[Tuple[str, int]]:
    """
    Return the first value printed after a single label.

    The first layout that matches anywhere in the text wins.

    Returns:
        (trimmed value, offset of the value) or None.

    Example:
        >>> value_after_label("Netto: 300,00", "netto")
        ('300,00', 7)
    """
    for pattern in _patterns_for(label):
        match = pattern.search(text)
        if match:
            raw = match.group(1)
            value = raw.strip()
            if value:
                return value, match.start(1) + (len(raw) - len(raw.lstrip()))
    return None


def find_label_value(
    text: str,
    labels: Iterable[str],
    converter: Callable[[str], Optional[object]] = lambda v: v
) -> Optional[LabelMatch]:
    """
    Resolve a field from an ordered list of label synonyms.

    Each synonym's value goes through the converter; a converter returning
    None rejects the value and the next synonym is tried.

    Args:
        text: Document text.
        labels: Synonyms in priority order.
        converter: Turns raw text into the field value, or None to reject.

    Returns:
        The winning LabelMatch, or None when no synonym produces a value.

    Example:
        >>> match = find_label_value("NIP: 526-025-02-74", ["nip"], clean_tax_id)
        >>> match.value
        '5260250274'
    """
    if not text:
        return None

    for label in labels:
        found = value_after_label(text, label)
        if found is None:
            continue

        raw, start = found
        value = converter(raw)
        if value is None:
            logger.debug(f"Rejected value {raw!r} for label {label!r}")
            continue

        return LabelMatch(synonym=label, raw=raw, value=value, start=start)

    return None
