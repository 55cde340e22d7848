"""
Ingestion Façade Module.

The boundary surface for callers: submit a document, poll a job, or wait
for it. Everything returned is a plain dict shaped like the public output
contract, ready to serialize.

Usage:
    facade = IngestionFacade()

    reply = facade.submit(data, "pdf", "invoice", mode="queued")
    snapshot = facade.poll(reply["jobId"])
    result = facade.wait(reply["jobId"], timeout=30)
"""

from enum import Enum
from typing import Any, Dict, Optional, Union

from config import get_config
from docintake.jobs import JobManager
from docintake.text_extractor import Document, DocumentClass, MediaType
from docintake.utils.exceptions import InputError
from docintake.utils.logger import get_logger

logger = get_logger(__name__)


class SubmissionMode(str, Enum):
    IMMEDIATE = "immediate"
    QUEUED = "queued"

    @classmethod
    def parse(cls, value: Union[str, 'SubmissionMode']) -> 'SubmissionMode':
        if isinstance(value, SubmissionMode):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InputError(
                f"Unknown submission mode: '{value}'",
                {"mode": value, "supported": [m.value for m in cls]}
            ) from None


class IngestionFacade:
    """
    Submit/poll/wait entry point over a JobManager.

    Input is validated before anything is queued, so an unsupported media
    type never produces a job.

    Attributes:
        manager: The job manager doing the work
        default_class: Document class used when none is given or inferred
    """

    def __init__(self, manager: Optional[JobManager] = None) -> None:
        self.manager = manager or JobManager()
        self.default_class = get_config("app.default_document_class", "invoice")

    def build_document(
        self,
        data: bytes,
        media_type: Union[str, MediaType],
        document_class: Optional[Union[str, DocumentClass]] = None,
        filename: Optional[str] = None
    ) -> Document:
        return Document.create(
            data,
            media_type,
            document_class=document_class,
            filename=filename,
            default_class=self.default_class
        )

    def submit(
        self,
        data: bytes,
        media_type: Union[str, MediaType],
        document_class: Optional[Union[str, DocumentClass]] = None,
        mode: Union[str, SubmissionMode] = SubmissionMode.QUEUED,
        filename: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Submit a document for extraction.

        Args:
            data: Raw document bytes.
            media_type: pdf, jpeg or png.
            document_class: invoice or expense; inferred from filename if None.
            mode: "immediate" runs the pipeline now, "queued" returns a job id.
            filename: Optional original filename.

        Returns:
            {"mode": "immediate", "result": {...}} or
            {"mode": "queued", "jobId": "..."}

        Raises:
            UnsupportedMediaTypeError: Unsupported media type.
            InputError: Unknown document class or mode.
            ExtractionError: Immediate mode only, when OCR fails.
        """
        submission_mode = SubmissionMode.parse(mode)
        document = self.build_document(data, media_type, document_class, filename)

        if submission_mode is SubmissionMode.IMMEDIATE:
            result = self.manager.process_inline(document)
            return {"mode": submission_mode.value, "result": result.to_dict()}

        job_id = self.manager.submit(document)
        return {"mode": submission_mode.value, "jobId": job_id}

    def poll(self, job_id: str) -> Dict[str, Any]:
        """
        Current job state as {id, status, result?, error?, submittedAt, ...}.

        Raises:
            JobNotFoundError: Unknown or swept job id.
        """
        return self.manager.status(job_id).to_dict()

    def wait(self, job_id: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Wait for a job and return its result dict.

        Raises:
            JobNotFoundError, JobFailedError, JobTimeoutError
        """
        return self.manager.wait_for(job_id, timeout).to_dict()

    def start(self) -> None:
        self.manager.start()

    def shutdown(self) -> None:
        self.manager.shutdown()
