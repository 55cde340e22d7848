"""
Job Data Classes.

Classes:
    JobStatus: Lifecycle states and the transitions allowed between them
    ResultMeta: Timing and text-source details of one pipeline run
    ExtractionResult: Output contract of one pipeline run
    Job: Mutable job record, owned by the JobManager
    JobSnapshot: Immutable copy of a job handed to callers
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from docintake.field_extractor.records import (
    ParsedExpenseRecord,
    ParsedInvoiceRecord,
    RecognizedField,
    Validation,
)
from docintake.text_extractor.media import Document
from docintake.utils.exceptions import InvalidJobTransitionError
from docintake.utils.helpers import to_iso


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


_ALLOWED_TRANSITIONS = {
    JobStatus.PENDING: (JobStatus.PROCESSING,),
    JobStatus.PROCESSING: (JobStatus.COMPLETED, JobStatus.FAILED),
    JobStatus.COMPLETED: (),
    JobStatus.FAILED: (),
}


@dataclass(frozen=True)
class ResultMeta:
    """
    How a result was produced.

    Attributes:
        text_source: "text_layer", "ocr", "none" or "cache"
        ocr_ms: Text extraction time in milliseconds
        parsed_ms: Field extraction and scoring time in milliseconds
        ocr_confidence: Mean OCR word confidence (0..1), OCR only
        pages: Pages read; only the first page is processed
        cached: True when the result was served from the result cache
    """
    text_source: str
    ocr_ms: Optional[float] = None
    parsed_ms: Optional[float] = None
    ocr_confidence: Optional[float] = None
    pages: int = 1
    cached: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'textSource': self.text_source,
            'pages': self.pages,
            'cached': self.cached,
        }
        if self.ocr_ms is not None:
            data['ocrMs'] = self.ocr_ms
        if self.parsed_ms is not None:
            data['parsedMs'] = self.parsed_ms
        if self.ocr_confidence is not None:
            data['ocrConfidence'] = self.ocr_confidence
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ResultMeta':
        return cls(
            text_source=data['textSource'],
            ocr_ms=data.get('ocrMs'),
            parsed_ms=data.get('parsedMs'),
            ocr_confidence=data.get('ocrConfidence'),
            pages=data.get('pages', 1),
            cached=data.get('cached', False),
        )


@dataclass
class ExtractionResult:
    """
    Result of running the pipeline on one document.

    Attributes:
        source_description: Where the document came from
        confidence: Overall confidence, 0..1
        raw_text: Text the fields were extracted from
        fields: Recognized label/value pairs
        validations: Consistency checks
        invoice: Parsed record for invoice documents
        expense: Parsed record for expense documents
        diagnostic: Why the text extraction degraded, if it did
        meta: Text source, timings and OCR confidence
    """
    source_description: str
    confidence: float
    raw_text: str
    fields: List[RecognizedField] = field(default_factory=list)
    validations: List[Validation] = field(default_factory=list)
    invoice: Optional[ParsedInvoiceRecord] = None
    expense: Optional[ParsedExpenseRecord] = None
    diagnostic: Optional[str] = None
    meta: Optional[ResultMeta] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExtractionResult':
        """Rebuild a result from its to_dict() form (used by the result cache)."""
        return cls(
            source_description=data['sourceDescription'],
            confidence=data['confidence'],
            raw_text=data['rawText'],
            fields=[RecognizedField.from_dict(f) for f in data.get('fields', [])],
            validations=[Validation.from_dict(v) for v in data.get('validations', [])],
            invoice=ParsedInvoiceRecord.from_dict(data['invoice']) if 'invoice' in data else None,
            expense=ParsedExpenseRecord.from_dict(data['expense']) if 'expense' in data else None,
            diagnostic=data.get('diagnostic'),
            meta=ResultMeta.from_dict(data['meta']) if 'meta' in data else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'sourceDescription': self.source_description,
            'confidence': self.confidence,
            'rawText': self.raw_text,
            'fields': [f.to_dict() for f in self.fields],
            'validations': [v.to_dict() for v in self.validations],
        }
        if self.invoice is not None:
            data['invoice'] = self.invoice.to_dict()
        if self.expense is not None:
            data['expense'] = self.expense.to_dict()
        if self.diagnostic:
            data['diagnostic'] = self.diagnostic
        if self.meta is not None:
            data['meta'] = self.meta.to_dict()
        return data


@dataclass(frozen=True)
class JobSnapshot:
    """
    Read-only view of a job at one point in time.

    Example:
        >>> snapshot = manager.status(job_id)
        >>> snapshot.status
        <JobStatus.PENDING: 'pending'>
    """
    id: str
    status: JobStatus
    submitted_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    result: Optional[ExtractionResult] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'status': self.status.value,
            'submittedAt': to_iso(self.submitted_at),
        }
        if self.started_at is not None:
            data['startedAt'] = to_iso(self.started_at)
        if self.completed_at is not None:
            data['completedAt'] = to_iso(self.completed_at)
        if self.result is not None:
            data['result'] = self.result.to_dict()
        if self.error is not None:
            data['error'] = self.error
        return data


@dataclass
class Job:
    """
    A unit of queued work.

    Only the JobManager touches Job objects, always under its lock. Status
    changes go through the transition methods, which reject anything but
    pending -> processing -> completed/failed.
    """
    id: str
    document: Optional[Document]
    submitted_at: datetime
    status: JobStatus = JobStatus.PENDING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    result: Optional[ExtractionResult] = None
    error: Optional[str] = None

    def _transition(self, target: JobStatus) -> None:
        if target not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidJobTransitionError(self.id, self.status.value, target.value)
        self.status = target

    def start(self, now: datetime) -> None:
        self._transition(JobStatus.PROCESSING)
        self.started_at = max(now, self.submitted_at)

    def complete(self, result: ExtractionResult, now: datetime) -> None:
        self._transition(JobStatus.COMPLETED)
        self.result = result
        self.completed_at = max(now, self.started_at)
        self.document = None

    def fail(self, error: str, now: datetime) -> None:
        self._transition(JobStatus.FAILED)
        self.error = error
        self.completed_at = max(now, self.started_at)
        self.document = None

    def snapshot(self) -> JobSnapshot:
        """Copy of the job; the result is deep-copied so callers cannot alter it."""
        return JobSnapshot(
            id=self.id,
            status=self.status,
            submitted_at=self.submitted_at,
            started_at=self.started_at,
            completed_at=self.completed_at,
            result=copy.deepcopy(self.result),
            error=self.error,
        )
