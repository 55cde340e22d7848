"""
Custom Exceptions Module.

All exceptions raised by the document intake pipeline. Callers can catch
DocIntakeError to handle every pipeline-specific failure at once.

Exception Hierarchy:
    DocIntakeError (base)
    ├── ConfigurationError
    ├── InputError
    │   ├── UnsupportedMediaTypeError
    │   └── DocumentClassError
    ├── ExtractionError
    │   ├── RasterizationError
    │   └── OCRError
    │       └── OCREngineNotAvailableError
    └── JobError
        ├── JobNotFoundError
        ├── JobTimeoutError
        ├── JobFailedError
        ├── InvalidJobTransitionError
        └── JobManagerClosedError
"""


class DocIntakeError(Exception):
    """
    Base exception for all document intake errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(DocIntakeError):
    """Raised when a configuration value is missing or invalid."""

    def __init__(self, key: str, reason: str):
        message = f"Invalid configuration for '{key}': {reason}"
        details = {"key": key, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# INPUT ERRORS
# =============================================================================

class InputError(DocIntakeError):
    """Base exception for caller input errors. Raised before any job exists."""
    pass


class UnsupportedMediaTypeError(InputError):
    """
    Raised when a document's declared media type is not supported.

    Example:
        >>> raise UnsupportedMediaTypeError("image/tiff", ["pdf", "jpeg", "png"])
    """

    def __init__(self, media_type: str, supported_types: list):
        message = f"Unsupported media type: '{media_type}'"
        details = {"media_type": media_type, "supported_types": supported_types}
        super().__init__(message, details)


class DocumentClassError(InputError):
    """Raised when a document class other than invoice/expense is requested."""

    def __init__(self, document_class: str):
        message = f"Unknown document class: '{document_class}'"
        details = {"document_class": document_class, "supported": ["invoice", "expense"]}
        super().__init__(message, details)


# =============================================================================
# EXTRACTION ERRORS
# =============================================================================

class ExtractionError(DocIntakeError):
    """Base exception for failures while turning a document into text."""
    pass


class RasterizationError(ExtractionError):
    """Raised when a PDF page cannot be converted into an image."""

    def __init__(self, reason: str):
        message = "Could not rasterize PDF page"
        details = {"reason": reason}
        super().__init__(message, details)


class OCRError(ExtractionError):
    """Raised when OCR processing fails."""

    def __init__(self, reason: str, engine: str = "tesseract"):
        message = f"OCR processing failed: {reason}"
        details = {"engine": engine, "reason": reason}
        super().__init__(message, details)


class OCREngineNotAvailableError(OCRError):
    """Raised when the OCR engine binary or bindings are missing."""

    def __init__(self, engine_name: str, reason: str = "engine not installed"):
        super().__init__(reason, engine=engine_name)
        self.message = f"OCR engine not available: {engine_name}"


# =============================================================================
# JOB ERRORS
# =============================================================================

class JobError(DocIntakeError):
    """Base exception for job manager errors."""
    pass


class JobNotFoundError(JobError):
    """Raised for unknown or already swept job ids."""

    def __init__(self, job_id: str):
        message = f"Job not found: {job_id}"
        details = {"job_id": job_id}
        super().__init__(message, details)


class JobTimeoutError(JobError):
    """Raised when waiting for a job exceeds the timeout. The job keeps running."""

    def __init__(self, job_id: str, timeout: float, status: str):
        message = f"Timed out after {timeout}s waiting for job {job_id}"
        details = {"job_id": job_id, "timeout": timeout, "status": status}
        super().__init__(message, details)


class JobFailedError(JobError):
    """Raised by wait_for when the job ended in the failed state."""

    def __init__(self, job_id: str, error: str):
        message = f"Job {job_id} failed: {error}"
        details = {"job_id": job_id, "error": error}
        super().__init__(message, details)


class InvalidJobTransitionError(JobError):
    """Raised on any status change other than pending -> processing -> terminal."""

    def __init__(self, job_id: str, current: str, target: str):
        message = f"Job {job_id} cannot move from {current} to {target}"
        details = {"job_id": job_id, "current": current, "target": target}
        super().__init__(message, details)


class JobManagerClosedError(JobError):
    """Raised when submitting to a manager that has been shut down."""

    def __init__(self):
        super().__init__("Job manager is shut down")
