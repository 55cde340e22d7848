"""
Job Manager Module.

Owns every ingestion job. Callers get job ids and read-only snapshots; all
reads and writes of the job table happen under one lock, shared with the
condition variable that waiters block on.

Lifecycle:
    submit()      -> job is PENDING and queued (FIFO)
    worker picks  -> PROCESSING
    pipeline ends -> COMPLETED (result) or FAILED (error)
    sweep()       -> terminal jobs older than the retention window are removed

Usage:
    manager = JobManager(pool_size=2)
    manager.start()

    job_id = manager.submit(document)
    result = manager.wait_for(job_id, timeout=30)

    manager.shutdown()
"""

import copy
import threading
import time
from collections import deque
from datetime import datetime, timedelta
from typing import Callable, Deque, Dict, List, Optional, Union

from config import get_config
from docintake.text_extractor import Document
from docintake.utils.exceptions import (
    ConfigurationError,
    DocIntakeError,
    JobFailedError,
    JobManagerClosedError,
    JobNotFoundError,
    JobTimeoutError,
)
from docintake.utils.helpers import generate_job_id, utc_now
from docintake.utils.logger import get_logger
from .models import ExtractionResult, Job, JobSnapshot, JobStatus
from .pipeline import ExtractionPipeline

logger = get_logger(__name__)


class JobManager:
    """
    In-memory job table with a FIFO queue and a bounded worker pool.

    Workers are started on demand, up to pool_size, and exit once the queue
    is empty. With pool_size > 1 jobs still leave the queue in submission
    order, but may finish in any order.

    Attributes:
        pool_size: Maximum number of concurrent worker threads
        poll_interval: Longest single wait slice in wait_for (seconds)
        retention_seconds: Age after which terminal jobs are swept
        sweep_interval: Period of the background sweeper (seconds)

    Example:
        >>> with JobManager(pool_size=4) as manager:
        ...     job_id = manager.submit(document)
        ...     manager.status(job_id).status
        <JobStatus.PENDING: 'pending'>
    """

    def __init__(
        self,
        pipeline: Optional[ExtractionPipeline] = None,
        pool_size: Optional[int] = None,
        poll_interval: Optional[float] = None,
        retention_seconds: Optional[float] = None,
        sweep_interval: Optional[float] = None,
        wait_timeout: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None
    ) -> None:
        self._pipeline = pipeline or ExtractionPipeline()
        self.pool_size = int(pool_size if pool_size is not None else get_config("jobs.pool_size", 1))
        if self.pool_size < 1:
            raise ConfigurationError("jobs.pool_size", f"must be at least 1, got {self.pool_size}")
        self.poll_interval = float(
            poll_interval if poll_interval is not None
            else get_config("jobs.poll_interval", 0.5)
        )
        self.retention_seconds = float(
            retention_seconds if retention_seconds is not None
            else get_config("jobs.retention_seconds", 3600)
        )
        self.sweep_interval = float(
            sweep_interval if sweep_interval is not None
            else get_config("jobs.sweep_interval", 3600)
        )
        self.wait_timeout = float(
            wait_timeout if wait_timeout is not None
            else get_config("jobs.wait_timeout", 60)
        )
        for key, value in (("jobs.poll_interval", self.poll_interval),
                           ("jobs.sweep_interval", self.sweep_interval)):
            if value <= 0:
                raise ConfigurationError(key, f"must be positive, got {value}")
        if self.wait_timeout < 0:
            raise ConfigurationError("jobs.wait_timeout", f"must not be negative, got {self.wait_timeout}")
        self._clock = clock or utc_now

        self._lock = threading.Lock()
        self._changed = threading.Condition(self._lock)
        self._jobs: Dict[str, Job] = {}
        self._queue: Deque[str] = deque()
        self._active_workers = 0
        self._workers: List[threading.Thread] = []
        self._closed = False

        self._sweeper: Optional[threading.Thread] = None
        self._sweeper_stop = threading.Event()

        logger.debug(
            f"JobManager initialized (pool_size={self.pool_size}, "
            f"retention={self.retention_seconds}s)"
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> None:
        """Start the periodic sweeper thread. Workers start on demand."""
        with self._lock:
            if self._sweeper is not None or self._closed:
                return
            self._sweeper = threading.Thread(
                target=self._sweeper_loop,
                name="docintake-sweeper",
                daemon=True
            )
            self._sweeper.start()
        logger.info(f"Started job sweeper (every {self.sweep_interval:.0f}s)")

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """
        Stop accepting jobs and stop the sweeper.

        Jobs already queued are still processed.

        Args:
            wait: Block until worker threads have drained the queue.
            timeout: Per-thread join timeout when waiting.
        """
        with self._lock:
            self._closed = True
            workers = list(self._workers)
            self._changed.notify_all()

        self._sweeper_stop.set()
        if wait:
            for worker in workers:
                worker.join(timeout)
            if self._sweeper is not None:
                self._sweeper.join(timeout)

        logger.info("Job manager shut down")

    def __enter__(self) -> 'JobManager':
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def submit(self, document: Document) -> str:
        """
        Queue a document and return its job id immediately.

        Raises:
            JobManagerClosedError: After shutdown().
        """
        with self._lock:
            if self._closed:
                raise JobManagerClosedError()

            job_id = generate_job_id()
            while job_id in self._jobs:
                job_id = generate_job_id()

            self._jobs[job_id] = Job(id=job_id, document=document, submitted_at=self._clock())
            self._queue.append(job_id)
            self._ensure_workers()
            self._changed.notify_all()

        logger.info(f"Queued job {job_id} for {document!r}")
        return job_id

    def process_inline(self, document: Document) -> ExtractionResult:
        """
        Run the pipeline synchronously, without creating a job.

        Raises:
            ExtractionError: If text extraction fails.
        """
        logger.debug(f"Processing {document!r} inline")
        return self._pipeline.run(document)

    def status(self, job_id: str) -> JobSnapshot:
        """
        Current snapshot of a job.

        Raises:
            JobNotFoundError: Unknown or swept job id.
        """
        with self._lock:
            return self._get(job_id).snapshot()

    def wait_for(self, job_id: str, timeout: Optional[float] = None) -> ExtractionResult:
        """
        Block until a job is terminal and return its result.

        The job is re-checked on every state change, and at least every
        poll_interval seconds. Timing out leaves the job untouched; it keeps
        running and later polls will see it finish.

        Args:
            job_id: Id returned by submit().
            timeout: Seconds to wait, jobs.wait_timeout when None.

        Raises:
            JobNotFoundError: Unknown or swept job id.
            JobFailedError: The job ended FAILED.
            JobTimeoutError: The job was not terminal in time.
        """
        timeout = self.wait_timeout if timeout is None else float(timeout)
        deadline = time.monotonic() + timeout

        with self._lock:
            while True:
                job = self._get(job_id)
                if job.status is JobStatus.COMPLETED:
                    return copy.deepcopy(job.result)
                if job.status is JobStatus.FAILED:
                    raise JobFailedError(job_id, job.error)

                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise JobTimeoutError(job_id, timeout, job.status.value)
                self._changed.wait(min(remaining, self.poll_interval))

    def sweep(self, max_age: Optional[Union[float, timedelta]] = None) -> int:
        """
        Delete terminal jobs completed more than max_age ago.

        Args:
            max_age: Seconds or timedelta, retention_seconds when None.

        Returns:
            Number of jobs removed.
        """
        if max_age is None:
            max_age = self.retention_seconds
        if not isinstance(max_age, timedelta):
            max_age = timedelta(seconds=max_age)

        cutoff = self._clock() - max_age

        with self._lock:
            expired = [
                job_id for job_id, job in self._jobs.items()
                if job.status.is_terminal and job.completed_at < cutoff
            ]
            for job_id in expired:
                del self._jobs[job_id]

        if expired:
            logger.info(f"Swept {len(expired)} expired job(s)")
        return len(expired)

    def list_jobs(self) -> List[JobSnapshot]:
        """Snapshots of every job still held, in submission order."""
        with self._lock:
            return [job.snapshot() for job in self._jobs.values()]

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _get(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def _ensure_workers(self) -> None:
        """Start workers up to pool_size. Lock must be held."""
        self._workers = [w for w in self._workers if w.is_alive()]
        needed = min(self.pool_size - self._active_workers, len(self._queue))

        for _ in range(needed):
            self._active_workers += 1
            worker = threading.Thread(
                target=self._worker_loop,
                name=f"docintake-worker-{self._active_workers}",
                daemon=True
            )
            self._workers.append(worker)
            worker.start()

    def _take_next(self) -> Optional[Job]:
        """Pop the next pending job and mark it PROCESSING. Lock must be held."""
        while self._queue:
            job = self._jobs.get(self._queue.popleft())
            if job is not None and job.status is JobStatus.PENDING:
                job.start(self._clock())
                return job
        return None

    def _worker_loop(self) -> None:
        while True:
            with self._lock:
                job = self._take_next()
                if job is None:
                    self._active_workers -= 1
                    self._changed.notify_all()
                    return
                document = job.document
                self._changed.notify_all()

            logger.info(f"Processing job {job.id}")

            try:
                result = self._pipeline.run(document)
            except Exception as e:
                error = e.message if isinstance(e, DocIntakeError) else f"{type(e).__name__}: {e}"
                logger.error(f"Job {job.id} failed: {error}", exc_info=not isinstance(e, DocIntakeError))
                with self._lock:
                    job.fail(error, self._clock())
                    self._changed.notify_all()
                continue

            with self._lock:
                job.complete(result, self._clock())
                self._changed.notify_all()
            logger.info(f"Job {job.id} completed (confidence {result.confidence:.2f})")

    def _sweeper_loop(self) -> None:
        while not self._sweeper_stop.wait(self.sweep_interval):
            self.sweep()
        logger.debug("Job sweeper stopped")
