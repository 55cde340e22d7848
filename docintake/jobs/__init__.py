"""
Job Manager Module.

Asynchronous ingestion jobs:
    - FIFO queue drained by a bounded worker pool
    - monotonic job status (pending -> processing -> completed/failed)
    - polling, waiting with timeout, and periodic sweeping
"""

from .models import ExtractionResult, Job, JobSnapshot, JobStatus, ResultMeta
from .pipeline import ExtractionPipeline
from .manager import JobManager

__all__ = [
    'ExtractionResult',
    'Job',
    'JobSnapshot',
    'JobStatus',
    'ResultMeta',
    'ExtractionPipeline',
    'JobManager'
]
