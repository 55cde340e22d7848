"""
Helper Utilities Module.

Small generic functions shared across the pipeline.

Functions:
    - ensure_directory: Create a directory tree if missing
    - get_file_extension: Extract file extension safely
    - format_file_size: Human-readable byte counts
    - generate_job_id: Opaque job identifiers
    - utc_now: Timezone-aware current time
    - to_iso: Serialize optional datetimes
"""

import secrets
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it and its parents if necessary.

    Example:
        >>> ensure_directory(".cache/docintake")
        PosixPath('.cache/docintake')
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def get_file_extension(filepath: Union[str, Path]) -> str:
    """
    Extract the file extension from a filepath.

    Returns the extension in lowercase, including the dot.
    Returns empty string if no extension exists.

    Example:
        >>> get_file_extension("faktura.PDF")
        '.pdf'
        >>> get_file_extension("noextension")
        ''
    """
    return Path(filepath).suffix.lower()


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in human-readable format.

    Example:
        >>> format_file_size(1536)
        '1.5 KB'
    """
    size = float(size_bytes)
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} PB"


def generate_job_id() -> str:
    """
    Generate an opaque job identifier of the form ``job_<millis>_<random>``.

    Example:
        >>> generate_job_id()
        'job_1705312800000_9f3a1c07be'
    """
    millis = int(time.time() * 1000)
    return f"job_{millis}_{secrets.token_hex(5)}"


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime to ISO-8601, passing None through."""
    if value is None:
        return None
    return value.isoformat()
