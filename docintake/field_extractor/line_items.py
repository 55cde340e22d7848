"""
Line Item Detection Module.

Finds the positions table of an invoice in plain text. The table starts
after a header line naming an ordinal column (Lp / No.) and a name column
(Nazwa / Name / Towar / Opis), and ends at the summary line (Razem, Suma,
Total, Podsumowanie).

Row layout understood:
    [ordinal] name quantity [unit] [net price] [vat rate] [gross]

Positions can then be summed per VAT rate (summarize_by_vat).
"""

import re
from typing import Dict, List, Optional

from docintake.utils.logger import get_logger
from .normalizers import normalize_vat_rate, parse_amount
from .records import LineItem, VatBreakdown

logger = get_logger(__name__)


_ORDINAL_COLUMN = re.compile(r'(?<!\w)(?:lp\b|l\.\s?p\.|no\.)', re.IGNORECASE)
_NAME_COLUMN = re.compile(r'(?<!\w)(?:nazwa|name|towar|opis|description)', re.IGNORECASE)
_TABLE_END = re.compile(r'^\s*(?:razem|suma|total|podsumowanie)\b', re.IGNORECASE)

_ROW_ORDINAL = re.compile(r'^\s*\d{1,3}\s*[.)]?\s+')
_SPLIT_PERCENT = re.compile(r'(\d{1,2})\s+%')
_NUMBER = re.compile(r'^-?\d+(?:[.,]\d+)?$')
_VAT_TOKEN = re.compile(r'^(?:\d{1,2}%|zw|np|oo)$', re.IGNORECASE)
_CURRENCY_TOKENS = {'zł', 'zl', 'pln', 'eur', 'usd'}


def find_table_start(lines: List[str]) -> Optional[int]:
    """Index of the first row after the table header, or None."""
    for index, line in enumerate(lines):
        if _ORDINAL_COLUMN.search(line) and _NAME_COLUMN.search(line):
            return index + 1
    return None


def parse_row(line: str) -> Optional[LineItem]:
    """
    Parse one table row.

    Example:
        >>> parse_row("1. Usługa programistyczna 10 h 150,00 23% 1845,00")
        LineItem(name='Usługa programistyczna', quantity=10.0, unit='h',
                 net_price=150.0, vat_rate='23', line_gross=1845.0)

    Returns:
        LineItem, or None when the row has no name or no number.
    """
    body = _SPLIT_PERCENT.sub(r'\1%', _ROW_ORDINAL.sub('', line, count=1))
    tokens = body.split()

    name_tokens = []
    numbers = []
    unit = None
    vat_rate = None

    for token in tokens:
        if numbers and _VAT_TOKEN.match(token):
            vat_rate = normalize_vat_rate(token)
        elif _NUMBER.match(token):
            numbers.append(parse_amount(token))
        elif not numbers:
            name_tokens.append(token)
        elif token.lower().rstrip('.') in _CURRENCY_TOKENS:
            continue
        elif unit is None and len(numbers) == 1:
            unit = token

    name = ' '.join(name_tokens).strip(' -:;,')
    if not name or not numbers:
        return None

    item = LineItem(name=name, unit=unit, vat_rate=vat_rate)

    if len(numbers) == 1:
        item.line_gross = numbers[0]
    elif len(numbers) == 2:
        item.quantity, item.line_gross = numbers
    else:
        item.quantity, item.net_price = numbers[0], numbers[1]
        item.line_gross = numbers[-1]

    return item


def detect_line_items(text: str) -> List[LineItem]:
    """
    Extract invoice positions from text.

    Without a recognizable header no positions are reported; guessing rows
    from arbitrary lines produces too many false positives on totals.

    Args:
        text: Document text.

    Returns:
        Parsed positions in document order (possibly empty).
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    start = find_table_start(lines)
    if start is None:
        return []

    items = []
    for line in lines[start:]:
        if _TABLE_END.match(line):
            break
        item = parse_row(line)
        if item is not None:
            items.append(item)

    logger.debug(f"Detected {len(items)} line item(s)")
    return items


def _line_net(item: LineItem) -> Optional[float]:
    if item.quantity is not None and item.net_price is not None:
        return item.quantity * item.net_price
    if item.vat_rate is not None and item.vat_rate.isdigit():
        return item.line_gross / (1 + int(item.vat_rate) / 100.0)
    # zw / np / oo: exempt, the gross is all net
    return item.line_gross


def summarize_by_vat(items: List[LineItem]) -> List[VatBreakdown]:
    """
    Sum positions per VAT rate, in order of first appearance.

    Positions without a rate or a gross value are left out. The net of a
    position is quantity x net price when both are printed, otherwise it is
    derived from the gross and the rate.

    Example:
        >>> summarize_by_vat(detect_line_items(text))
        [VatBreakdown(rate='23', net=2000.0, vat=460.0, gross=2460.0)]
    """
    totals: Dict[str, List[float]] = {}
    for item in items:
        if item.vat_rate is None or item.line_gross is None:
            continue
        net = _line_net(item)
        bucket = totals.setdefault(item.vat_rate, [0.0, 0.0])
        bucket[0] += net
        bucket[1] += item.line_gross

    return [
        VatBreakdown(rate=rate, net=round(net, 2), vat=round(gross - net, 2), gross=round(gross, 2))
        for rate, (net, gross) in totals.items()
    ]
