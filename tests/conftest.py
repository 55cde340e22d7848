"""Test fixtures and utilities."""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from config import ConfigurationManager
from docintake.jobs import ExtractionResult
from docintake.text_extractor import ExtractedText

# The end-to-end fixture from the extraction contract
SAMPLE_MINIMAL_INVOICE = (
    "Nr faktury: FV/2024/001\n"
    "Data wystawienia: 15.01.2024\n"
    "NIP: 1234567890\n"
    "Netto: 300,00\n"
    "VAT: 69,00\n"
    "Brutto: 369,00"
)

SAMPLE_INVOICE_TEXT = """
FAKTURA VAT
Nr faktury: FV/2024/03/117
Data wystawienia: 05.03.2024
Termin płatności: 19.03.2024

Sprzedawca: Kowalski Software Sp. z o.o.
NIP sprzedawcy: 526-025-02-74

Nabywca: Nowak Consulting
NIP: 774-00-01-454
Adres nabywcy: ul. Długa 5, 00-001 Warszawa

Lp. Nazwa Ilość J.m. Cena netto VAT Wartość brutto
1. Usługa programistyczna 10 h 150,00 23% 1845,00
2. Licencja roczna 1 szt. 500,00 23% 615,00
Razem: 2460,00

Netto: 2000,00
VAT: 460,00
Brutto: 2460,00
"""

SAMPLE_RECEIPT_TEXT = """
Stacja Paliw ORLEN 123
Sprzedawca: PKN ORLEN S.A.
NIP: 774-00-01-454
Paragon fiskalny nr 2024/0412
Data: 12.03.2024
Opis: Benzyna 95
Stawka VAT: 23%
Netto: 200,00
PTU: 46,00
Suma: 246,00
"""

SAMPLE_NOISE_TEXT = "Lorem ipsum dolor sit amet\nconsectetur adipiscing elit"


@pytest.fixture(autouse=True)
def reset_configuration():
    """Every test starts from the default settings.yaml."""
    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()


@pytest.fixture
def minimal_invoice_text() -> str:
    return SAMPLE_MINIMAL_INVOICE


@pytest.fixture
def invoice_text() -> str:
    return SAMPLE_INVOICE_TEXT


@pytest.fixture
def receipt_text() -> str:
    return SAMPLE_RECEIPT_TEXT


@pytest.fixture
def noise_text() -> str:
    return SAMPLE_NOISE_TEXT


class ManualClock:
    """Deterministic clock for job timestamps."""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self.now

    def advance(self, **kwargs) -> None:
        with self._lock:
            self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


class FakeTextExtractor:
    """Text extractor returning canned text instead of running OCR."""

    def __init__(self, text: str = SAMPLE_MINIMAL_INVOICE, error: Exception = None, degraded: bool = False):
        self.text = text
        self.error = error
        self.degraded = degraded
        self.calls = []

    def extract_text(self, data, media_type):
        self.calls.append((data, media_type))
        if self.error is not None:
            raise self.error
        if self.degraded:
            return ExtractedText.degraded_result("PDF could not be rasterized: broken xref")
        return ExtractedText(text=self.text, source="text_layer")


class FakePipeline:
    """
    Pipeline stand-in recording calls and concurrency.

    Documents whose data is b"boom" fail. When a gate is given, every run
    blocks until the gate is set.
    """

    def __init__(self, gate: threading.Event = None):
        self.gate = gate
        self.processed = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def run(self, document):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                self.gate.wait(5)
            if document.data == b"boom":
                raise RuntimeError("OCR engine crashed")
            with self._lock:
                self.processed.append(document.filename)
            return ExtractionResult(
                source_description=document.filename or "upload",
                confidence=0.5,
                raw_text=document.data.decode("utf-8", "replace"),
            )
        finally:
            with self._lock:
                self.active -= 1


@pytest.fixture
def make_text_extractor():
    """Factory for FakeTextExtractor instances."""
    return FakeTextExtractor


@pytest.fixture
def make_pipeline():
    """Factory for FakePipeline instances."""
    return FakePipeline


@pytest.fixture
def fake_pipeline() -> FakePipeline:
    return FakePipeline()
