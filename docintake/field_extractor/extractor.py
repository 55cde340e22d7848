"""
Field Extractor Module.

Label-driven extraction of invoice and expense fields from plain text.
Both entry points are pure and total: they never raise, and a field that
cannot be found is simply left as None.

Usage:
    from docintake.field_extractor import extract_invoice_fields

    record = extract_invoice_fields(text)
    print(record.invoice_number, record.total_gross)
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Union

from docintake.utils.logger import get_logger
from . import labels
from .label_matcher import LabelMatch, find_label_value
from .line_items import detect_line_items, summarize_by_vat
from .normalizers import (
    bounded_text,
    clean_tax_id,
    non_empty,
    normalize_vat_rate,
    parse_amount,
    printed_date,
)
from .records import (
    ParsedExpenseRecord,
    ParsedInvoiceRecord,
    RecognizedField,
    Validation,
)
from .validators import validate_expense, validate_invoice

logger = get_logger(__name__)


@dataclass(frozen=True)
class FieldRule:
    """
    How to find one record attribute.

    Attributes:
        name: Record attribute to fill
        labels: Synonyms in priority order
        converter: Raw text -> value, or None to reject and try the next synonym
    """
    name: str
    labels: Sequence[str]
    converter: Callable[[str], Optional[object]] = non_empty


def party_name(value: Optional[str]) -> Optional[str]:
    """Name of a party; rejects a NIP that follows the label instead."""
    name = bounded_text(2, 100)(value)
    if name is None or name.lower().startswith(('nip', 'tax id')):
        return None
    return name


INVOICE_RULES = (
    FieldRule('invoice_number', labels.INVOICE_NUMBER_LABELS),
    FieldRule('issue_date', labels.ISSUE_DATE_LABELS),
    FieldRule('due_date', labels.DUE_DATE_LABELS),
    FieldRule('total_net', labels.NET_LABELS, parse_amount),
    FieldRule('total_vat', labels.VAT_LABELS, parse_amount),
    FieldRule('total_gross', labels.GROSS_LABELS, parse_amount),
    FieldRule('buyer_nip', labels.NIP_LABELS, clean_tax_id),
    FieldRule('seller_nip', labels.SELLER_NIP_LABELS, clean_tax_id),
    FieldRule('buyer_name', labels.BUYER_NAME_LABELS, bounded_text(2, 100)),
    FieldRule('buyer_address', labels.BUYER_ADDRESS_LABELS, bounded_text(5, 200)),
    FieldRule('seller_name', labels.SELLER_NAME_LABELS, party_name),
    FieldRule('seller_address', labels.SELLER_ADDRESS_LABELS, bounded_text(5, 200)),
    FieldRule('sale_date', labels.SALE_DATE_LABELS, printed_date),
)

EXPENSE_RULES = (
    FieldRule('document_number', labels.DOCUMENT_NUMBER_LABELS),
    FieldRule('date', labels.EXPENSE_DATE_LABELS),
    FieldRule('gross_amount', labels.EXPENSE_GROSS_LABELS, parse_amount),
    FieldRule('net_amount', labels.NET_LABELS, parse_amount),
    FieldRule('vat_amount', labels.EXPENSE_VAT_LABELS, parse_amount),
    FieldRule('contractor_name', labels.CONTRACTOR_LABELS, bounded_text(2, 100)),
    FieldRule('contractor_nip', labels.NIP_LABELS, clean_tax_id),
    FieldRule('description', labels.DESCRIPTION_LABELS, bounded_text(3, 200)),
)


_CURRENCY_PATTERNS = (
    ('PLN', re.compile(r'(?<!\w)(?:zł|pln)(?!\w)', re.IGNORECASE)),
    ('EUR', re.compile(r'(?<!\w)(?:eur|€)(?!\w)', re.IGNORECASE)),
    ('USD', re.compile(r'(?<!\w)usd(?!\w)|\$', re.IGNORECASE)),
)

_SECTION_MAX_LINES = 5
_LABELLED_LINE = re.compile(r'^[^\d:]{1,40}:')
_NIP_WORD = re.compile(r'(?<!\w)nip(?!\w)', re.IGNORECASE)

_VAT_RATE_INLINE = re.compile(r'(?<!\w)(?:vat|ptu)\b[^\n\d%]{0,10}?(\d{1,2})\s*%', re.IGNORECASE)


@dataclass
class FieldExtraction:
    """
    Everything the field extractor learned from one text.

    Attributes:
        record: The typed invoice or expense record
        recognized: Audit trail of matched labels, in rule order
        validations: Consistency checks on the record
        matches: Winning label match per record attribute
    """
    record: Union[ParsedInvoiceRecord, ParsedExpenseRecord]
    recognized: List[RecognizedField] = field(default_factory=list)
    validations: List[Validation] = field(default_factory=list)
    matches: Dict[str, LabelMatch] = field(default_factory=dict)

    @property
    def recognized_count(self) -> int:
        return self.record.recognized_count

    @property
    def expected_count(self) -> int:
        return self.record.expected_count


def _apply_rules(text: str, rules: Sequence[FieldRule]) -> Dict[str, LabelMatch]:
    matches = {}
    for rule in rules:
        match = find_label_value(text, rule.labels, rule.converter)
        if match is not None:
            logger.debug(f"{rule.name}: {match.value!r} (label {match.synonym!r})")
            matches[rule.name] = match
    return matches


def _recognized(record, matches: Dict[str, LabelMatch]) -> List[RecognizedField]:
    return [
        RecognizedField(label=record.JSON_KEYS[name], value=match.raw)
        for name, match in matches.items()
    ]


def detect_currency(text: str) -> Optional[str]:
    """
    Currency named in the text, checked PLN first.

    Example:
        >>> detect_currency("Do zapłaty: 369,00 zł")
        'PLN'
    """
    for code, pattern in _CURRENCY_PATTERNS:
        if pattern.search(text):
            return code
    return None


def infer_category(text: str) -> Optional[str]:
    """
    Expense category from keywords; the first category in table order wins.

    Keywords of up to four letters must match a whole word.

    Example:
        >>> infer_category("STACJA PALIW ORLEN")
        'paliwo'
        >>> infer_category("Zakupy różne") is None
        True
    """
    lowered = text.lower()
    for category, keywords in labels.CATEGORY_KEYWORDS:
        for keyword in keywords:
            if len(keyword) <= labels.WHOLE_WORD_MAX_LENGTH:
                if re.search(r'(?<!\w)' + re.escape(keyword) + r'(?!\w)', lowered):
                    return category
            elif keyword in lowered:
                return category
    return None


def extract_vat_rate(text: str) -> Optional[str]:
    """
    VAT rate printed next to VAT/PTU, or given by a rate label.

    Example:
        >>> extract_vat_rate("PTU A 23% 4,60")
        '23'
    """
    match = _VAT_RATE_INLINE.search(text)
    if match:
        return normalize_vat_rate(match.group(1))

    labelled = find_label_value(text, labels.VAT_RATE_LABELS, normalize_vat_rate)
    return labelled.value if labelled else None


def seller_section_address(text: str, name_match: LabelMatch) -> Optional[LabelMatch]:
    """
    Address printed on the lines under the seller name.

    Collects up to five lines after the seller line, stopping at a blank
    line, a labelled line ("Nabywca: ...") or a NIP.

    Example:
        >>> text = "Sprzedawca: ACME Sp. z o.o.\\nul. Prosta 1\\n00-950 Warszawa\\n\\n"
        >>> seller_section_address(text, find_label_value(text, ["sprzedawca"])).value
        'ul. Prosta 1, 00-950 Warszawa'
    """
    line_end = text.find('\n', name_match.start)
    if line_end < 0:
        return None

    offset = line_end + 1
    lines = []
    for line in text[offset:].split('\n')[:_SECTION_MAX_LINES]:
        stripped = line.strip()
        if not stripped or _LABELLED_LINE.match(stripped) or _NIP_WORD.search(stripped):
            break
        lines.append(stripped)

    address = bounded_text(5, 200)(', '.join(lines))
    if address is None:
        return None
    return LabelMatch(synonym=name_match.synonym, raw=address, value=address, start=offset)


def _extract_invoice(text: str) -> FieldExtraction:
    text = text or ""
    matches = _apply_rules(text, INVOICE_RULES)

    if 'seller_name' in matches and 'seller_address' not in matches:
        section = seller_section_address(text, matches['seller_name'])
        if section is not None:
            matches['seller_address'] = section

    record = ParsedInvoiceRecord(**{name: m.value for name, m in matches.items()})
    record.items = detect_line_items(text)
    record.vat_breakdown = summarize_by_vat(record.items)
    # A currency sign alone does not make a document recognized
    if not record.is_empty():
        record.currency = detect_currency(text)

    return FieldExtraction(
        record=record,
        recognized=_recognized(record, matches),
        validations=validate_invoice(record),
        matches=matches
    )


def _extract_expense(text: str) -> FieldExtraction:
    text = text or ""
    matches = _apply_rules(text, EXPENSE_RULES)

    record = ParsedExpenseRecord(**{name: m.value for name, m in matches.items()})
    recognized = _recognized(record, matches)

    record.category = infer_category(text)
    if record.category is not None:
        recognized.append(RecognizedField(label='category', value=record.category))

    record.vat_rate = extract_vat_rate(text)
    if record.vat_rate is not None:
        recognized.append(RecognizedField(label='vatRate', value=record.vat_rate))

    return FieldExtraction(
        record=record,
        recognized=recognized,
        validations=validate_expense(record),
        matches=matches
    )


def extract_invoice_fields(text: str) -> ParsedInvoiceRecord:
    """
    Extract invoice fields from text.

    Example:
        >>> record = extract_invoice_fields("Nr faktury: FV/2024/001\\nBrutto: 369,00")
        >>> record.invoice_number, record.total_gross
        ('FV/2024/001', 369.0)
    """
    return _extract_invoice(text).record


def extract_expense_fields(text: str) -> ParsedExpenseRecord:
    """Extract receipt/expense fields from text."""
    return _extract_expense(text).record


def extract_fields(text: str, document_class: str) -> FieldExtraction:
    """
    Full extraction (record, audit trail, validations) for a document class.

    Args:
        text: Document text.
        document_class: "invoice" or "expense".
    """
    if document_class == 'expense':
        return _extract_expense(text)
    return _extract_invoice(text)
