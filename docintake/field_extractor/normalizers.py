"""
Value Normalizers Module.

Conversion of raw label values into typed values:
    - Polish-locale amounts ("1 234,56 zł" -> 1234.56)
    - NIP tax identifiers (exactly 10 digits)
    - Polish dates to ISO format
    - VAT rate codes

All functions return None for unusable input instead of raising.
"""

import math
import re
from datetime import date
from typing import Optional

from dateutil import parser as date_parser

from docintake.utils.logger import get_logger

logger = get_logger(__name__)


_AMOUNT_JUNK = re.compile(r'[^\d,.\-]')
_FLOAT_PREFIX = re.compile(r'-?(?:\d+(?:\.\d*)?|\.\d+)')

NIP_LENGTH = 10
NIP_WEIGHTS = (6, 5, 7, 2, 3, 4, 5, 6, 7)

_DAY_FIRST = re.compile(r'(\d{1,2})[./\-](\d{1,2})[./\-](\d{4})')
_YEAR_FIRST = re.compile(r'(\d{4})[./\-](\d{1,2})[./\-](\d{1,2})')

VAT_RATE_CODES = ('zw', 'np', 'oo')
_VAT_PERCENT = re.compile(r'^(\d{1,2})(?:[.,]0+)?\s*%?$')


def parse_amount(value: Optional[str]) -> Optional[float]:
    """
    Parse a Polish-locale amount.

    Every character other than digits, comma, dot and minus is dropped, the
    first comma becomes the decimal point, and the longest leading numeric
    prefix is read as a float.

    Args:
        value: Raw text such as "1 234,56 zł".

    Returns:
        The amount, or None when no number can be read.

    Example:
        >>> parse_amount("1 234,56 zł")
        1234.56
        >>> parse_amount("1234.56")
        1234.56
        >>> parse_amount("abc") is None
        True
    """
    if not value:
        return None

    cleaned = _AMOUNT_JUNK.sub('', value).replace(',', '.', 1)
    match = _FLOAT_PREFIX.match(cleaned)
    if match is None:
        return None

    amount = float(match.group(0))
    if math.isnan(amount) or math.isinf(amount):
        return None
    return amount


def clean_tax_id(value: Optional[str]) -> Optional[str]:
    """
    Reduce a NIP to its digits, accepting exactly 10 of them.

    Example:
        >>> clean_tax_id("123-456-78-90")
        '1234567890'
        >>> clean_tax_id("123-456-78-9") is None
        True
    """
    if not value:
        return None

    digits = re.sub(r'\D', '', value)
    if len(digits) != NIP_LENGTH:
        return None
    return digits


def is_valid_nip(nip: Optional[str]) -> bool:
    """
    Verify the NIP checksum.

    The first nine digits are weighted 6,5,7,2,3,4,5,6,7; the sum modulo 11
    must equal the tenth digit. A remainder of 10 is never valid.

    Example:
        >>> is_valid_nip("5260250274")
        True
        >>> is_valid_nip("1234567890")
        False
    """
    digits = clean_tax_id(nip)
    if digits is None:
        return False

    checksum = sum(int(d) * w for d, w in zip(digits, NIP_WEIGHTS)) % 11
    return checksum != 10 and checksum == int(digits[9])


def normalize_polish_date(value: Optional[str]) -> Optional[str]:
    """
    Convert a Polish-style date to ISO "YYYY-MM-DD".

    Recognizes dd.mm.yyyy (also with - or /) and yyyy-mm-dd anywhere in the
    string, then falls back to dateutil with day-first ordering.

    Example:
        >>> normalize_polish_date("15.01.2024")
        '2024-01-15'
        >>> normalize_polish_date("2024-01-15 r.")
        '2024-01-15'
        >>> normalize_polish_date("31.02.2024") is None
        True
    """
    if not value:
        return None

    match = _DAY_FIRST.search(value)
    if match:
        day, month, year = match.groups()
        return _iso_or_none(year, month, day)

    match = _YEAR_FIRST.search(value)
    if match:
        year, month, day = match.groups()
        return _iso_or_none(year, month, day)

    try:
        return date_parser.parse(value, dayfirst=True).date().isoformat()
    except (ValueError, OverflowError):
        logger.debug(f"Could not parse date: {value!r}")
        return None


def _iso_or_none(year: str, month: str, day: str) -> Optional[str]:
    try:
        return date(int(year), int(month), int(day)).isoformat()
    except ValueError:
        return None


def normalize_vat_rate(value: Optional[str]) -> Optional[str]:
    """
    Normalize a VAT rate to a bare percentage or a Polish rate code.

    Example:
        >>> normalize_vat_rate("23 %")
        '23'
        >>> normalize_vat_rate("ZW")
        'zw'
        >>> normalize_vat_rate("standard") is None
        True
    """
    if not value:
        return None

    cleaned = value.strip().lower()
    if cleaned in VAT_RATE_CODES:
        return cleaned

    match = _VAT_PERCENT.match(cleaned)
    if match:
        return str(int(match.group(1)))
    return None


def bounded_text(min_length: int, max_length: int):
    """
    Build a converter accepting text whose length is strictly between bounds.

    Example:
        >>> accept = bounded_text(2, 100)
        >>> accept("Jan Kowalski")
        'Jan Kowalski'
        >>> accept("AB") is None
        True
    """
    def convert(value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        text = value.strip()
        if min_length < len(text) < max_length:
            return text
        return None

    return convert


def non_empty(value: Optional[str]) -> Optional[str]:
    """Return the stripped value, or None if nothing is left."""
    if value is None:
        return None
    return value.strip() or None


def printed_date(value: Optional[str]) -> Optional[str]:
    """
    Accept a value only if it reads as a date, keeping the printed text.

    Example:
        >>> printed_date("14.01.2024")
        '14.01.2024'
        >>> printed_date("towarów zwolniona") is None
        True
    """
    text = non_empty(value)
    if text is None or normalize_polish_date(text) is None:
        return None
    return text
