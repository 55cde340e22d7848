"""
Record Validators Module.

Consistency checks run after extraction. Each check produces a Validation
(name, ok, details); a check is only emitted when its inputs are present,
except INVOICE_NUMBER_EXISTS which is always reported.

Invoice checks:
    SELLER_NIP_CHECK, BUYER_NIP_CHECK, TOTALS_MATCH, AMOUNTS_CONSISTENT,
    ISSUE_DATE_FORMAT, DUE_AFTER_ISSUE, INVOICE_NUMBER_EXISTS

Expense checks:
    CONTRACTOR_NIP_CHECK, AMOUNTS_CONSISTENT, DATE_FORMAT
"""

from typing import List, Optional

from .normalizers import is_valid_nip, normalize_polish_date
from .records import ParsedExpenseRecord, ParsedInvoiceRecord, Validation


# One grosz
AMOUNT_TOLERANCE = 0.01


def _close(a: float, b: float) -> bool:
    return abs(a - b) <= AMOUNT_TOLERANCE + 1e-9


def check_nip(name: str, who: str, nip: Optional[str]) -> Optional[Validation]:
    if nip is None:
        return None
    ok = is_valid_nip(nip)
    details = f"{who} NIP is valid" if ok else f"{who} NIP checksum failed"
    return Validation(name, ok, details)


def check_amounts_consistent(
    net: Optional[float],
    vat: Optional[float],
    gross: Optional[float]
) -> Optional[Validation]:
    """Net + VAT must equal gross within one grosz."""
    if net is None or vat is None or gross is None:
        return None
    ok = _close(net + vat, gross)
    details = (
        "Net + VAT equals gross" if ok
        else f"Net + VAT = {net + vat:.2f}, gross = {gross:.2f}"
    )
    return Validation('AMOUNTS_CONSISTENT', ok, details)


def check_totals_match(record: ParsedInvoiceRecord) -> Optional[Validation]:
    """Sum of line gross values must equal the invoice gross total."""
    if not record.items or record.total_gross is None:
        return None

    priced = [item.line_gross for item in record.items if item.line_gross is not None]
    if not priced:
        return None

    line_sum = sum(priced)
    ok = _close(line_sum, record.total_gross)
    details = (
        "Position totals match invoice totals" if ok
        else f"Gross mismatch: {line_sum:.2f} vs {record.total_gross:.2f}"
    )
    return Validation('TOTALS_MATCH', ok, details)


def check_date_format(name: str, label: str, value: Optional[str]) -> Optional[Validation]:
    if value is None:
        return None
    iso = normalize_polish_date(value)
    if iso is None:
        return Validation(name, False, f"{label} '{value}' is not a valid date")
    return Validation(name, True, f"{label} is {iso}")


def check_due_after_issue(record: ParsedInvoiceRecord) -> Optional[Validation]:
    issue = normalize_polish_date(record.issue_date)
    due = normalize_polish_date(record.due_date)
    if issue is None or due is None:
        return None

    # ISO strings compare chronologically
    ok = due >= issue
    details = "Due date follows issue date" if ok else f"Due date {due} is before issue date {issue}"
    return Validation('DUE_AFTER_ISSUE', ok, details)


def validate_invoice(record: ParsedInvoiceRecord) -> List[Validation]:
    """
    Run every invoice check.

    Example:
        >>> [v.name for v in validate_invoice(ParsedInvoiceRecord())]
        ['INVOICE_NUMBER_EXISTS']
    """
    checks = [
        check_nip('SELLER_NIP_CHECK', 'Seller', record.seller_nip),
        check_nip('BUYER_NIP_CHECK', 'Buyer', record.buyer_nip),
        check_totals_match(record),
        check_amounts_consistent(record.total_net, record.total_vat, record.total_gross),
        check_date_format('ISSUE_DATE_FORMAT', 'Issue date', record.issue_date),
        check_due_after_issue(record),
        Validation(
            'INVOICE_NUMBER_EXISTS',
            record.invoice_number is not None,
            "Invoice number found" if record.invoice_number else "Invoice number not found"
        ),
    ]
    return [check for check in checks if check is not None]


def validate_expense(record: ParsedExpenseRecord) -> List[Validation]:
    """Run every expense check."""
    checks = [
        check_nip('CONTRACTOR_NIP_CHECK', 'Contractor', record.contractor_nip),
        check_amounts_consistent(record.net_amount, record.vat_amount, record.gross_amount),
        check_date_format('DATE_FORMAT', 'Date', record.date),
    ]
    return [check for check in checks if check is not None]
