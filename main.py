#!/usr/bin/env python3
"""
Document Intake Pipeline - Command Line Entry Point.

Extracts invoice or expense fields from PDF/JPEG/PNG files and prints the
result JSON for each file.

Usage:
    Command Line:
        python main.py faktura.pdf
        python main.py ./skany/ --class expense --mode queued --workers 4
        python main.py faktura.pdf --output results.json --log-level DEBUG

    Python:
        from main import run_extraction
        results = run_extraction(["faktura.pdf"])
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from config import ConfigurationManager
from docintake.jobs import JobManager
from docintake.service import IngestionFacade
from docintake.utils.exceptions import ConfigurationError, DocIntakeError
from docintake.utils.helpers import get_file_extension
from docintake.utils.logger import get_logger, setup_logger_from_config


SUPPORTED_EXTENSIONS = {'.pdf', '.jpg', '.jpeg', '.png'}

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_SETUP_ERROR = 2


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: Argument list, sys.argv[1:] when None.
    """
    parser = argparse.ArgumentParser(
        description="Extract invoice and expense fields from scanned documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Process a single invoice now:
        python main.py faktura.pdf

    Queue a directory of receipts on four workers:
        python main.py ./paragony/ --class expense --mode queued --workers 4
        """
    )

    parser.add_argument(
        "inputs",
        nargs="+",
        help="Files or directories with PDF/JPEG/PNG documents"
    )

    parser.add_argument(
        "--class",
        dest="document_class",
        choices=["invoice", "expense"],
        default=None,
        help="Document class (default: inferred from filename, else invoice)"
    )

    parser.add_argument(
        "--mode",
        choices=["immediate", "queued"],
        default="immediate",
        help="Process each file now, or queue all and wait (default: immediate)"
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker pool size in queued mode (default: jobs.pool_size)"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for each queued job (default: jobs.wait_timeout)"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="YAML file overriding config/settings.yaml"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Also write all results to this JSON file"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Override logging.level"
    )

    return parser.parse_args(argv)


def collect_files(inputs: List[str]) -> List[Path]:
    """
    Expand files and directories into the list of supported documents.

    Raises:
        FileNotFoundError: If an input path doesn't exist.
    """
    files = []
    for raw in inputs:
        path = Path(raw)
        if not path.exists():
            raise FileNotFoundError(f"Input path not found: {path}")

        if path.is_dir():
            files.extend(
                sorted(p for p in path.iterdir()
                       if p.is_file() and get_file_extension(p) in SUPPORTED_EXTENSIONS)
            )
        else:
            files.append(path)
    return files


def run_extraction(
    inputs: List[str],
    document_class: Optional[str] = None,
    mode: str = "immediate",
    workers: Optional[int] = None,
    timeout: Optional[float] = None,
    facade: Optional[IngestionFacade] = None
) -> List[Dict[str, Any]]:
    """
    Run the pipeline over files and collect one entry per file.

    Each entry is {"file", "ok", "result"} or {"file", "ok", "error"}.

    Example:
        >>> results = run_extraction(["faktura.pdf"])
        >>> results[0]["result"]["invoice"]["invoiceNumber"]
        'FV/2024/001'
    """
    logger = get_logger(__name__)

    files = collect_files(inputs)
    facade = facade or IngestionFacade(JobManager(pool_size=workers))
    logger.info(f"Processing {len(files)} file(s) in {mode} mode")

    entries: List[Dict[str, Any]] = []
    pending = []

    try:
        for path in files:
            try:
                reply = facade.submit(
                    path.read_bytes(),
                    get_file_extension(path),
                    document_class=document_class,
                    mode=mode,
                    filename=path.name
                )
            except DocIntakeError as e:
                logger.error(f"{path.name}: {e}")
                entries.append({"file": str(path), "ok": False, "error": str(e)})
                continue

            if mode == "immediate":
                entries.append({"file": str(path), "ok": True, "result": reply["result"]})
            else:
                pending.append((path, reply["jobId"]))

        for path, job_id in pending:
            try:
                result = facade.wait(job_id, timeout)
            except DocIntakeError as e:
                logger.error(f"{path.name}: {e}")
                entries.append({"file": str(path), "ok": False, "jobId": job_id, "error": str(e)})
                continue
            entries.append({"file": str(path), "ok": True, "jobId": job_id, "result": result})
    finally:
        facade.shutdown()

    return entries


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command-line entry point.

    Returns:
        0 when every file succeeded, 1 when some failed, 2 on setup errors.
    """
    args = parse_arguments(argv)

    try:
        ConfigurationManager(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_SETUP_ERROR

    app_logger = setup_logger_from_config()
    if args.log_level:
        app_logger.setLevel(args.log_level)
        for handler in app_logger.handlers:
            handler.setLevel(args.log_level)

    try:
        entries = run_extraction(
            args.inputs,
            document_class=args.document_class,
            mode=args.mode,
            workers=args.workers,
            timeout=args.timeout
        )
    except (FileNotFoundError, ConfigurationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_SETUP_ERROR
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130

    if not entries:
        print("Error: no supported files to process", file=sys.stderr)
        return EXIT_SETUP_ERROR

    payload = json.dumps(entries, ensure_ascii=False, indent=2)
    print(payload)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(payload, encoding='utf-8')

    return EXIT_OK if all(entry["ok"] for entry in entries) else EXIT_FAILURES


if __name__ == "__main__":
    sys.exit(main())
