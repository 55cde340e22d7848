"""
Status/Polling Façade.

Caller-facing submit, poll and wait operations.
"""

from .facade import IngestionFacade, SubmissionMode

__all__ = ['IngestionFacade', 'SubmissionMode']
