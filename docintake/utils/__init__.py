"""
Utility Module for the Document Intake Pipeline.

Common utilities used across all other modules:
    - Logging configuration
    - Exception hierarchy
    - Small helpers (ids, timestamps, file names)
"""

from .logger import setup_logger, setup_logger_from_config, get_logger
from .helpers import get_file_extension, format_file_size, generate_job_id, utc_now, to_iso

__all__ = [
    'setup_logger',
    'setup_logger_from_config',
    'get_logger',
    'get_file_extension',
    'format_file_size',
    'generate_job_id',
    'utc_now',
    'to_iso'
]
