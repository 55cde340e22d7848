"""
Field Extractor Module.

Heuristic, label-driven extraction of Polish invoice and expense fields:
    - ordered label synonym tables
    - Polish amount/NIP/date/VAT-rate normalization
    - line item table detection
    - consistency validations
"""

from .records import (
    BoundingBox,
    LineItem,
    ParsedExpenseRecord,
    ParsedInvoiceRecord,
    RecognizedField,
    Validation,
    VatBreakdown,
)
from .extractor import (
    FieldExtraction,
    extract_expense_fields,
    extract_fields,
    extract_invoice_fields,
)

__all__ = [
    'BoundingBox',
    'LineItem',
    'ParsedExpenseRecord',
    'ParsedInvoiceRecord',
    'RecognizedField',
    'Validation',
    'VatBreakdown',
    'FieldExtraction',
    'extract_expense_fields',
    'extract_fields',
    'extract_invoice_fields'
]
