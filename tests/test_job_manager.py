"""Tests for the job manager: queueing, worker pool, waiting and sweeping."""

import threading
import time
from datetime import timedelta

import pytest

from docintake.field_extractor import RecognizedField
from docintake.jobs import JobManager, JobStatus
from docintake.jobs.models import Job
from docintake.text_extractor import Document
from docintake.utils.exceptions import (
    ConfigurationError,
    InvalidJobTransitionError,
    JobFailedError,
    JobManagerClosedError,
    JobNotFoundError,
    JobTimeoutError,
)


def _document(name, data=b"Brutto: 10,00"):
    return Document.create(data, "pdf", "invoice", filename=name)


class TestJobLifecycle:

    @pytest.fixture
    def gate(self):
        gate = threading.Event()
        yield gate
        gate.set()

    @pytest.fixture
    def manager(self, make_pipeline, gate, clock):
        manager = JobManager(pipeline=make_pipeline(gate), pool_size=1, poll_interval=0.05, clock=clock)
        yield manager
        gate.set()
        manager.shutdown(timeout=5)

    def test_submit_returns_unique_ids(self, manager):
        ids = {manager.submit(_document(f"doc{i}.pdf")) for i in range(5)}
        assert len(ids) == 5
        assert all(job_id.startswith("job_") for job_id in ids)

    def test_queued_job_waits_for_free_worker(self, manager, gate):
        first = manager.submit(_document("a.pdf"))
        second = manager.submit(_document("b.pdf"))

        assert manager.status(second).status is JobStatus.PENDING
        assert manager.status(first).status in (JobStatus.PENDING, JobStatus.PROCESSING)

        gate.set()
        manager.wait_for(first, timeout=5)
        manager.wait_for(second, timeout=5)

        assert manager.status(second).status is JobStatus.COMPLETED

    def test_wait_returns_result(self, manager, gate, clock):
        job_id = manager.submit(_document("a.pdf"))
        gate.set()

        result = manager.wait_for(job_id, timeout=5)
        snapshot = manager.status(job_id)

        assert result.source_description == "a.pdf"
        assert snapshot.status is JobStatus.COMPLETED
        assert snapshot.result == result
        assert snapshot.result is not result
        assert snapshot.error is None
        assert snapshot.submitted_at <= snapshot.started_at <= snapshot.completed_at

    def test_timeout_leaves_job_running(self, manager, gate):
        job_id = manager.submit(_document("slow.pdf"))

        with pytest.raises(JobTimeoutError) as exc_info:
            manager.wait_for(job_id, timeout=0.2)

        assert exc_info.value.details["job_id"] == job_id
        assert not manager.status(job_id).status.is_terminal

        gate.set()
        assert manager.wait_for(job_id, timeout=5) is not None

    def test_failed_job(self, manager, gate):
        job_id = manager.submit(_document("broken.pdf", data=b"boom"))
        gate.set()

        with pytest.raises(JobFailedError):
            manager.wait_for(job_id, timeout=5)

        snapshot = manager.status(job_id)
        assert snapshot.status is JobStatus.FAILED
        assert snapshot.result is None
        assert snapshot.error == "RuntimeError: OCR engine crashed"
        assert snapshot.completed_at is not None

    def test_failure_does_not_stop_the_worker(self, manager, gate):
        failing = manager.submit(_document("broken.pdf", data=b"boom"))
        healthy = manager.submit(_document("ok.pdf"))
        gate.set()

        with pytest.raises(JobFailedError):
            manager.wait_for(failing, timeout=5)
        assert manager.wait_for(healthy, timeout=5).source_description == "ok.pdf"

    def test_unknown_job(self, manager):
        with pytest.raises(JobNotFoundError):
            manager.status("job_0_missing")
        with pytest.raises(JobNotFoundError):
            manager.wait_for("job_0_missing", timeout=0.1)

    def test_repeated_polls_are_identical(self, manager, gate):
        job_id = manager.submit(_document("a.pdf"))
        gate.set()
        manager.wait_for(job_id, timeout=5)

        assert manager.status(job_id) == manager.status(job_id)
        assert manager.status(job_id).to_dict() == manager.status(job_id).to_dict()

    def test_snapshots_cannot_alter_the_stored_job(self, manager, gate):
        job_id = manager.submit(_document("a.pdf"))
        gate.set()
        manager.wait_for(job_id, timeout=5)
        before = manager.status(job_id).to_dict()

        snapshot = manager.status(job_id)
        snapshot.result.raw_text = "TAMPERED"
        snapshot.result.fields.append(RecognizedField(label="invoiceNumber", value="X"))
        waited = manager.wait_for(job_id, timeout=5)
        waited.confidence = 1.0

        assert manager.status(job_id).to_dict() == before

    def test_snapshot_dict(self, manager, gate):
        job_id = manager.submit(_document("a.pdf"))
        gate.set()
        manager.wait_for(job_id, timeout=5)

        data = manager.status(job_id).to_dict()

        assert data["id"] == job_id
        assert data["status"] == "completed"
        assert data["submittedAt"] == "2024-03-01T12:00:00+00:00"
        assert data["result"]["confidence"] == 0.5
        assert "error" not in data

    def test_list_jobs_in_submission_order(self, manager, gate):
        ids = [manager.submit(_document(f"{i}.pdf")) for i in range(3)]
        gate.set()

        assert [snapshot.id for snapshot in manager.list_jobs()] == ids

    def test_shutdown_rejects_new_jobs(self, manager, gate):
        job_id = manager.submit(_document("a.pdf"))
        gate.set()
        manager.shutdown(timeout=5)

        assert manager.status(job_id).status is JobStatus.COMPLETED
        with pytest.raises(JobManagerClosedError):
            manager.submit(_document("late.pdf"))

    def test_process_inline_creates_no_job(self, manager, gate):
        gate.set()

        result = manager.process_inline(_document("now.pdf"))

        assert result.source_description == "now.pdf"
        assert manager.list_jobs() == []


class TestWorkerPool:

    def test_pool_size_must_be_positive(self, fake_pipeline):
        with pytest.raises(ConfigurationError):
            JobManager(pipeline=fake_pipeline, pool_size=0)

    def test_pool_size_defaults_to_configuration(self, fake_pipeline):
        assert JobManager(pipeline=fake_pipeline).pool_size == 1

    @pytest.mark.parametrize("setting", ["poll_interval", "sweep_interval"])
    def test_intervals_must_be_positive(self, fake_pipeline, setting):
        with pytest.raises(ConfigurationError):
            JobManager(pipeline=fake_pipeline, **{setting: 0})

    def test_explicit_zero_wait_timeout_is_kept(self, make_pipeline, clock):
        gate = threading.Event()
        manager = JobManager(pipeline=make_pipeline(gate), wait_timeout=0, clock=clock)
        job_id = manager.submit(_document("slow.pdf"))

        assert manager.wait_timeout == 0
        with pytest.raises(JobTimeoutError):
            manager.wait_for(job_id)

        gate.set()
        manager.shutdown(timeout=5)

    def test_fifo_with_single_worker(self, fake_pipeline, clock):
        manager = JobManager(pipeline=fake_pipeline, pool_size=1, clock=clock)
        names = [f"{i:02d}.pdf" for i in range(10)]

        ids = [manager.submit(_document(name)) for name in names]
        for job_id in ids:
            manager.wait_for(job_id, timeout=5)
        manager.shutdown(timeout=5)

        assert fake_pipeline.processed == names

    def test_pool_size_bounds_concurrency(self, make_pipeline, clock):
        """Fifty jobs submitted from five threads at once to four workers."""
        gate = threading.Event()
        pipeline = make_pipeline(gate)
        manager = JobManager(pipeline=pipeline, pool_size=4, clock=clock)
        start = threading.Barrier(5)
        ids = []
        lock = threading.Lock()

        def submit_batch(batch):
            start.wait(5)
            for i in range(10):
                job_id = manager.submit(_document(f"{batch}-{i}.pdf"))
                with lock:
                    ids.append(job_id)

        submitters = [threading.Thread(target=submit_batch, args=(b,)) for b in range(5)]
        for thread in submitters:
            thread.start()
        for thread in submitters:
            thread.join(10)

        gate.set()
        results = [manager.wait_for(job_id, timeout=10) for job_id in ids]
        manager.shutdown(timeout=5)

        assert len(ids) == len(set(ids)) == 50
        assert len(results) == 50
        assert len(pipeline.processed) == len(set(pipeline.processed)) == 50
        assert 1 <= pipeline.max_active <= 4
        assert all(manager.status(job_id).status is JobStatus.COMPLETED for job_id in ids)

    def test_concurrent_submitters(self, fake_pipeline, clock):
        manager = JobManager(pipeline=fake_pipeline, pool_size=3, clock=clock)
        ids = []
        lock = threading.Lock()

        def submit_many(prefix):
            for i in range(10):
                job_id = manager.submit(_document(f"{prefix}-{i}.pdf"))
                with lock:
                    ids.append(job_id)

        threads = [threading.Thread(target=submit_many, args=(p,)) for p in "abcd"]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        for job_id in ids:
            manager.wait_for(job_id, timeout=10)
        manager.shutdown(timeout=5)

        assert len(set(ids)) == 40
        assert sorted(fake_pipeline.processed) == sorted(f"{p}-{i}.pdf" for p in "abcd" for i in range(10))


class TestSweep:

    @pytest.fixture
    def manager(self, fake_pipeline, clock):
        manager = JobManager(pipeline=fake_pipeline, pool_size=1, retention_seconds=3600, clock=clock)
        yield manager
        manager.shutdown(timeout=5)

    def test_old_terminal_jobs_are_removed(self, manager, clock):
        job_id = manager.submit(_document("a.pdf"))
        manager.wait_for(job_id, timeout=5)

        assert manager.sweep() == 0

        clock.advance(hours=2)
        assert manager.sweep() == 1
        with pytest.raises(JobNotFoundError):
            manager.status(job_id)

    def test_sweep_keeps_fresh_completed_jobs(self, manager, clock):
        old = manager.submit(_document("old.pdf"))
        manager.wait_for(old, timeout=5)

        clock.advance(hours=2)
        fresh = manager.submit(_document("fresh.pdf"))
        manager.wait_for(fresh, timeout=5)

        assert manager.sweep() == 1
        with pytest.raises(JobNotFoundError):
            manager.status(old)
        assert manager.status(fresh).status is JobStatus.COMPLETED
        assert [s.id for s in manager.list_jobs()] == [fresh]

    def test_max_age_argument(self, manager, clock):
        job_id = manager.submit(_document("a.pdf"))
        manager.wait_for(job_id, timeout=5)
        clock.advance(minutes=10)

        assert manager.sweep(timedelta(hours=1)) == 0
        assert manager.sweep(300) == 1

    def test_unfinished_jobs_are_kept(self, make_pipeline, clock):
        gate = threading.Event()
        manager = JobManager(pipeline=make_pipeline(gate), pool_size=1, clock=clock)
        job_id = manager.submit(_document("slow.pdf"))

        clock.advance(days=2)
        assert manager.sweep(0) == 0
        assert manager.status(job_id).status in (JobStatus.PENDING, JobStatus.PROCESSING)

        gate.set()
        manager.shutdown(timeout=5)

    def test_background_sweeper(self, fake_pipeline, clock):
        manager = JobManager(pipeline=fake_pipeline, retention_seconds=60, sweep_interval=0.05, clock=clock)
        manager.start()
        job_id = manager.submit(_document("a.pdf"))
        manager.wait_for(job_id, timeout=5)

        clock.advance(minutes=5)
        deadline = time.monotonic() + 5
        while manager.list_jobs() and time.monotonic() < deadline:
            time.sleep(0.05)
        manager.shutdown(timeout=5)

        assert manager.list_jobs() == []


class TestJobTransitions:

    def test_only_forward_transitions(self, clock):
        job = Job(id="job_1", document=_document("a.pdf"), submitted_at=clock())

        with pytest.raises(InvalidJobTransitionError):
            job.complete(None, clock())

        job.start(clock())
        job.fail("OCR engine crashed", clock())

        assert job.status is JobStatus.FAILED
        assert job.document is None
        with pytest.raises(InvalidJobTransitionError):
            job.start(clock())

    def test_timestamps_never_go_backwards(self, clock):
        submitted = clock()
        job = Job(id="job_1", document=_document("a.pdf"), submitted_at=submitted)

        job.start(submitted - timedelta(seconds=5))

        assert job.started_at == submitted
