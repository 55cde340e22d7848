"""Tests for amount, NIP, date and VAT rate normalization."""

import pytest

from docintake.field_extractor.normalizers import (
    bounded_text,
    clean_tax_id,
    is_valid_nip,
    non_empty,
    normalize_polish_date,
    normalize_vat_rate,
    parse_amount,
)


class TestParseAmount:

    @pytest.mark.parametrize("raw, expected", [
        ("1 234,56 zł", 1234.56),
        ("1234.56", 1234.56),
        ("369,00", 369.0),
        ("PLN 12,5", 12.5),
        ("-15,00", -15.0),
    ])
    def test_polish_and_plain_amounts(self, raw, expected):
        assert parse_amount(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", ["abc", "", None, "zł"])
    def test_unreadable_amounts_are_none(self, raw):
        assert parse_amount(raw) is None

    def test_only_first_comma_becomes_decimal_point(self):
        """Text after the first number is ignored."""
        assert parse_amount("12,50, 3,00") == pytest.approx(12.5)


class TestTaxId:

    def test_dashes_and_spaces_are_removed(self):
        assert clean_tax_id("526-025-02-74") == "5260250274"
        assert clean_tax_id("PL 526 025 02 74") == "5260250274"

    def test_wrong_digit_count_is_rejected(self):
        assert clean_tax_id("123-456-78-9") is None
        assert clean_tax_id("12345678901") is None

    def test_checksum(self):
        assert is_valid_nip("5260250274") is True
        assert is_valid_nip("774-00-01-454") is True
        assert is_valid_nip("1234567890") is False
        assert is_valid_nip("5260250275") is False
        assert is_valid_nip(None) is False


class TestDates:

    @pytest.mark.parametrize("raw, expected", [
        ("15.01.2024", "2024-01-15"),
        ("5.3.2024", "2024-03-05"),
        ("15/01/2024", "2024-01-15"),
        ("2024-01-15", "2024-01-15"),
        ("dnia 19.03.2024 r.", "2024-03-19"),
    ])
    def test_known_formats(self, raw, expected):
        assert normalize_polish_date(raw) == expected

    def test_impossible_date_is_none(self):
        assert normalize_polish_date("31.02.2024") is None

    def test_garbage_is_none(self):
        assert normalize_polish_date("jutro") is None
        assert normalize_polish_date("") is None


class TestVatRate:

    @pytest.mark.parametrize("raw, expected", [
        ("23%", "23"),
        ("23 %", "23"),
        ("8", "8"),
        ("5,00%", "5"),
        ("ZW", "zw"),
        ("np", "np"),
    ])
    def test_rates_and_codes(self, raw, expected):
        assert normalize_vat_rate(raw) == expected

    def test_unknown_rate_is_none(self):
        assert normalize_vat_rate("standard") is None
        assert normalize_vat_rate("123%") is None


class TestTextConverters:

    def test_bounded_text_bounds_are_exclusive(self):
        accept = bounded_text(2, 10)
        assert accept("  Nowak  ") == "Nowak"
        assert accept("AB") is None
        assert accept("0123456789") is None

    def test_non_empty(self):
        assert non_empty("  x ") == "x"
        assert non_empty("   ") is None
        assert non_empty(None) is None
