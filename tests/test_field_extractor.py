"""Tests for label-driven invoice and expense field extraction."""

import pytest

from docintake.confidence import ConfidenceScorer
from docintake.field_extractor import (
    ParsedExpenseRecord,
    ParsedInvoiceRecord,
    VatBreakdown,
    extract_expense_fields,
    extract_fields,
    extract_invoice_fields,
)
from docintake.field_extractor.extractor import detect_currency, extract_vat_rate, infer_category
from docintake.field_extractor.label_matcher import find_label_value, value_after_label
from docintake.field_extractor.normalizers import clean_tax_id, parse_amount


class TestLabelMatcher:

    def test_colon_layout(self):
        assert value_after_label("Netto: 300,00", "netto") == ("300,00", 7)

    def test_space_and_dash_layouts(self):
        assert value_after_label("Netto 300,00", "netto")[0] == "300,00"
        assert value_after_label("Netto - 300,00", "netto")[0] == "- 300,00"

    def test_matching_is_case_insensitive(self):
        assert value_after_label("NETTO: 5", "netto")[0] == "5"

    def test_label_must_start_a_word(self):
        assert value_after_label("Konrad: ABC", "nr") is None

    def test_rejected_value_falls_through_to_next_synonym(self):
        text = "NIP: brak\nTax ID: 526-025-02-74"
        match = find_label_value(text, ["nip", "tax id"], clean_tax_id)
        assert match.synonym == "tax id"
        assert match.value == "5260250274"

    def test_no_synonym_matches(self):
        assert find_label_value("Lorem ipsum", ["netto"], parse_amount) is None
        assert find_label_value("", ["netto"]) is None


class TestInvoiceExtraction:

    def test_minimal_invoice(self, minimal_invoice_text):
        record = extract_invoice_fields(minimal_invoice_text)

        assert record.invoice_number == "FV/2024/001"
        assert record.issue_date == "15.01.2024"
        assert record.buyer_nip == "1234567890"
        assert record.total_net == pytest.approx(300.0)
        assert record.total_vat == pytest.approx(69.0)
        assert record.total_gross == pytest.approx(369.0)
        assert record.due_date is None
        assert record.buyer_name is None
        assert record.recognized_count == 6
        assert record.expected_count == 9

    def test_full_invoice(self, invoice_text):
        record = extract_invoice_fields(invoice_text)

        assert record.invoice_number == "FV/2024/03/117"
        assert record.issue_date == "05.03.2024"
        assert record.due_date == "19.03.2024"
        assert record.buyer_name == "Nowak Consulting"
        assert record.buyer_nip == "7740001454"
        assert record.seller_nip == "5260250274"
        assert record.buyer_address == "ul. Długa 5, 00-001 Warszawa"
        assert record.total_net == pytest.approx(2000.0)
        assert record.total_vat == pytest.approx(460.0)
        assert record.total_gross == pytest.approx(2460.0)
        assert len(record.items) == 2
        assert record.recognized_count == 9

    def test_more_specific_synonym_wins(self):
        record = extract_invoice_fields("Numer: Y-2\nNr faktury: X-1")
        assert record.invoice_number == "X-1"

    def test_short_nip_is_rejected(self):
        record = extract_invoice_fields("NIP: 123-456-78-9")
        assert record.buyer_nip is None

    def test_unreadable_amount_is_not_zero(self):
        record = extract_invoice_fields("Brutto: do zapłaty")
        assert record.total_gross is None

    def test_noise_yields_empty_record(self, noise_text):
        record = extract_invoice_fields(noise_text)
        assert isinstance(record, ParsedInvoiceRecord)
        assert record.is_empty()
        assert record.recognized_count == 0

    def test_empty_and_none_text(self):
        assert extract_invoice_fields("").is_empty()
        assert extract_invoice_fields(None).is_empty()

    def test_seller_section(self):
        record = extract_invoice_fields(
            "Sprzedawca: ACME Sp. z o.o.\n"
            "ul. Prosta 1\n"
            "00-950 Warszawa\n"
            "NIP sprzedawcy: 526-025-02-74\n"
            "Data sprzedaży: 14.01.2024\n"
        )

        assert record.seller_name == "ACME Sp. z o.o."
        assert record.seller_address == "ul. Prosta 1, 00-950 Warszawa"
        assert record.seller_nip == "5260250274"
        assert record.sale_date == "14.01.2024"

    def test_seller_fields_are_not_scored(self, invoice_text):
        record = extract_invoice_fields(invoice_text)

        assert record.seller_name == "Kowalski Software Sp. z o.o."
        assert record.seller_address is None
        assert record.expected_count == 9

    def test_seller_label_followed_by_nip_is_not_a_name(self):
        record = extract_invoice_fields("Seller NIP: 526-025-02-74")

        assert record.seller_name is None
        assert record.seller_nip == "5260250274"

    def test_sale_date_must_be_a_date(self):
        record = extract_invoice_fields("Sprzedaż: towarów zwolniona\nNr faktury: FV/7")

        assert record.sale_date is None
        assert record.invoice_number == "FV/7"

    def test_vat_breakdown_from_positions(self, invoice_text):
        record = extract_invoice_fields(invoice_text)

        assert record.vat_breakdown == [VatBreakdown(rate="23", net=2000.0, vat=460.0, gross=2460.0)]
        assert record.to_dict()["byVat"] == [{"rate": "23", "net": 2000.0, "vat": 460.0, "gross": 2460.0}]

    def test_currency_needs_a_recognized_field(self):
        extraction = extract_fields("Zapłacono gotówką 50 zł", "invoice")

        assert detect_currency("Zapłacono gotówką 50 zł") == "PLN"
        assert extraction.recognized_count == 0
        assert extraction.record.currency is None
        assert extraction.record.is_empty()
        assert ConfidenceScorer(0.0).score(extraction.record, 0, extraction.expected_count) == 0.0

    def test_currency_with_recognized_fields(self):
        record = extract_invoice_fields("Brutto: 369,00 zł")

        assert record.total_gross == pytest.approx(369.0)
        assert record.currency == "PLN"

    def test_record_rebuilt_from_dict(self, invoice_text):
        record = extract_invoice_fields(invoice_text)
        assert ParsedInvoiceRecord.from_dict(record.to_dict()) == record

    def test_to_dict_uses_contract_keys_and_omits_missing(self, minimal_invoice_text):
        data = extract_invoice_fields(minimal_invoice_text).to_dict()

        assert data == {
            "invoiceNumber": "FV/2024/001",
            "issueDate": "15.01.2024",
            "buyerNIP": "1234567890",
            "totalNet": 300.0,
            "totalVat": 69.0,
            "totalGross": 369.0,
        }


class TestExpenseExtraction:

    def test_fuel_receipt(self, receipt_text):
        record = extract_expense_fields(receipt_text)

        assert record.document_number == "2024/0412"
        assert record.date == "12.03.2024"
        assert record.contractor_name == "PKN ORLEN S.A."
        assert record.contractor_nip == "7740001454"
        assert record.description == "Benzyna 95"
        assert record.net_amount == pytest.approx(200.0)
        assert record.vat_amount == pytest.approx(46.0)
        assert record.gross_amount == pytest.approx(246.0)
        assert record.vat_rate == "23"
        assert record.category == "paliwo"
        assert record.recognized_count == record.expected_count == 10

    def test_no_amount_is_invented(self):
        """Net and VAT stay unknown when only the gross is printed."""
        record = extract_expense_fields("Suma: 100,00")

        assert record.gross_amount == pytest.approx(100.0)
        assert record.net_amount is None
        assert record.vat_amount is None
        assert record.vat_rate is None

    def test_noise_yields_empty_record(self, noise_text):
        record = extract_expense_fields(noise_text)
        assert isinstance(record, ParsedExpenseRecord)
        assert record.is_empty()


class TestDerivedFields:

    def test_category_order(self):
        assert infer_category("STACJA PALIW ORLEN") == "paliwo"
        assert infer_category("Taxi Warszawa, kawa") == "transport"
        assert infer_category("Zakupy różne") is None

    def test_short_keywords_match_whole_words_only(self):
        assert infer_category("Projekt bpmn") is None
        assert infer_category("BP Polska") == "paliwo"

    def test_inline_vat_rate(self):
        assert extract_vat_rate("PTU A 23% 4,60") == "23"
        assert extract_vat_rate("Stawka: zw") == "zw"
        assert extract_vat_rate("Razem 10,00") is None

    def test_currency(self):
        assert detect_currency("Do zapłaty: 369,00 zł") == "PLN"
        assert detect_currency("Total: 10 EUR") == "EUR"
        assert detect_currency("Total $10") == "USD"
        assert detect_currency("Razem 10,00") is None


class TestExtractFields:

    def test_invoice_class(self, minimal_invoice_text):
        extraction = extract_fields(minimal_invoice_text, "invoice")

        assert isinstance(extraction.record, ParsedInvoiceRecord)
        assert extraction.recognized_count == 6
        assert extraction.expected_count == 9
        labels = [f.label for f in extraction.recognized]
        assert labels == ["invoiceNumber", "issueDate", "totalNet", "totalVat", "totalGross", "buyerNIP"]
        assert extraction.matches["total_gross"].raw == "369,00"

    def test_expense_class_records_derived_fields(self, receipt_text):
        extraction = extract_fields(receipt_text, "expense")

        assert isinstance(extraction.record, ParsedExpenseRecord)
        labels = [f.label for f in extraction.recognized]
        assert labels[-2:] == ["category", "vatRate"]
        assert "category" not in extraction.matches
