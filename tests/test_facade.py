"""Tests for the submit/poll/wait façade."""

import pytest

from docintake.confidence import ConfidenceScorer
from docintake.jobs import ExtractionPipeline, JobManager
from docintake.service import IngestionFacade, SubmissionMode
from docintake.utils.exceptions import (
    DocumentClassError,
    InputError,
    JobFailedError,
    JobNotFoundError,
    UnsupportedMediaTypeError,
)


class TestIngestionFacade:

    @pytest.fixture
    def facade(self, make_text_extractor, minimal_invoice_text, clock):
        pipeline = ExtractionPipeline(make_text_extractor(minimal_invoice_text), ConfidenceScorer(0.0))
        facade = IngestionFacade(JobManager(pipeline=pipeline, pool_size=2, clock=clock))
        yield facade
        facade.shutdown()

    def test_immediate_mode_returns_result(self, facade):
        reply = facade.submit(b"%PDF", "pdf", "invoice", mode="immediate", filename="fv.pdf")

        assert reply["mode"] == "immediate"
        assert reply["result"]["confidence"] == pytest.approx(0.6667)
        assert reply["result"]["invoice"]["invoiceNumber"] == "FV/2024/001"
        assert facade.manager.list_jobs() == []

    def test_queued_mode_returns_job_id(self, facade):
        reply = facade.submit(b"%PDF", "application/pdf", "invoice", filename="fv.pdf")

        assert reply["mode"] == "queued"
        result = facade.wait(reply["jobId"], timeout=5)
        snapshot = facade.poll(reply["jobId"])

        assert result["invoice"]["totalGross"] == 369.0
        assert snapshot["status"] == "completed"
        assert snapshot["result"] == result

    def test_class_inferred_from_filename(self, facade):
        reply = facade.submit(b"%PDF", "pdf", mode=SubmissionMode.IMMEDIATE, filename="paragon_01.pdf")

        assert "expense" in reply["result"]
        assert "invoice" not in reply["result"]

    def test_default_class_is_invoice(self, facade):
        reply = facade.submit(b"%PDF", "pdf", mode="immediate")
        assert "invoice" in reply["result"]

    def test_unsupported_media_type_creates_no_job(self, facade):
        with pytest.raises(UnsupportedMediaTypeError):
            facade.submit(b"II*", "image/tiff")
        assert facade.manager.list_jobs() == []

    def test_bad_class_and_mode(self, facade):
        with pytest.raises(DocumentClassError):
            facade.submit(b"%PDF", "pdf", "contract")
        with pytest.raises(InputError):
            facade.submit(b"%PDF", "pdf", "invoice", mode="later")

    def test_unknown_job(self, facade):
        with pytest.raises(JobNotFoundError):
            facade.poll("job_0_missing")


class TestFacadeFailures:

    def test_failed_job_is_reported(self, fake_pipeline, clock):
        facade = IngestionFacade(JobManager(pipeline=fake_pipeline, clock=clock))
        job_id = facade.submit(b"boom", "png", "expense")["jobId"]

        with pytest.raises(JobFailedError):
            facade.wait(job_id, timeout=5)
        snapshot = facade.poll(job_id)
        facade.shutdown()

        assert snapshot["status"] == "failed"
        assert snapshot["error"] == "RuntimeError: OCR engine crashed"
        assert "result" not in snapshot
