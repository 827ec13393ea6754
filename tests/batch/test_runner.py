"""
Tests for massaction_batch.services.runner -- InProcessBatchRunner.

Validates submit (id issuance, batch size validation, queued record),
chunked execution, per-chunk exception isolation, source failure
handling, hook semantics, and the background worker.

Uses in-memory SQLite shared across threads (see conftest).
"""

import threading
from datetime import timedelta

import pytest
from sqlalchemy import select

from massaction_kernel.exceptions import InvalidBatchSizeError, JobNotFoundError
from massaction_kernel.utils.keys import CANONICAL_ID_LENGTH, FULL_ID_LENGTH

from massaction_batch.domain.types import JobHandle, JobStatus
from massaction_batch.models.batch import BatchJobModel
from massaction_batch.services.runner import InProcessBatchRunner, chunked
from massaction_batch.services.stores import JobMetadataService
from massaction_batch.sources.base import SingleUseAdapter


class ListAdapter(SingleUseAdapter):
    source_type = "Apex"

    def __init__(self, rows, fail_after=None):
        super().__init__()
        self._rows_list = rows
        self._fail_after = fail_after

    def _rows(self):
        for index, row in enumerate(self._rows_list):
            if self._fail_after is not None and index == self._fail_after:
                raise RuntimeError("source broke")
            yield row


class RecordingWork:
    def __init__(self, fail_on=()):
        self.chunks = []
        self.contexts = []
        self._fail_on = set(fail_on)

    def __call__(self, rows, context):
        self.chunks.append([row["n"] for row in rows])
        self.contexts.append(context)
        if context.chunk_index in self._fail_on:
            raise ValueError(f"chunk {context.chunk_index} rejected")


def _rows(count):
    return [{"n": n} for n in range(count)]


@pytest.fixture
def runner(session_factory, clock, actor_id):
    r = InProcessBatchRunner(session_factory, clock=clock, actor_id=actor_id,
                             poll_interval_seconds=0.05)
    yield r
    r.stop(timeout=5)


# =============================================================================
# chunked()
# =============================================================================


class TestChunked:
    def test_even_and_remainder(self):
        assert list(chunked(range(5), 2)) == [[0, 1], [2, 3], [4]]

    def test_empty(self):
        assert list(chunked([], 3)) == []

    def test_consumes_lazily(self):
        pulled = []

        def source():
            for n in range(4):
                pulled.append(n)
                yield n

        iterator = chunked(source(), 2)
        next(iterator)
        assert pulled == [0, 1]


# =============================================================================
# Submit
# =============================================================================


class TestSubmit:
    def test_returns_full_length_handle(self, runner):
        handle = runner.submit(ListAdapter(_rows(1)), 10, RecordingWork())
        assert len(handle.job_id) == FULL_ID_LENGTH
        assert len(handle.canonical) == CANONICAL_ID_LENGTH
        assert handle.job_id.startswith("707")

    def test_persists_queued_job(self, runner, db_session, clock):
        handle = runner.submit(ListAdapter(_rows(1)), 10, RecordingWork())
        job = db_session.execute(
            select(BatchJobModel).where(BatchJobModel.job_id == handle.job_id)
        ).scalar_one()
        assert job.status == JobStatus.QUEUED.value
        assert job.canonical_job_id == handle.canonical
        assert job.chunk_size == 10
        assert job.source_type == "Apex"
        assert job.submitted_at == clock.now()

    def test_does_not_execute(self, runner):
        work = RecordingWork()
        runner.submit(ListAdapter(_rows(3)), 10, work)
        assert work.chunks == []
        assert runner.pending_count == 1

    @pytest.mark.parametrize("chunk_size", [0, -1, True, 1.5, "5", None])
    def test_invalid_chunk_size(self, runner, db_session, chunk_size):
        with pytest.raises(InvalidBatchSizeError):
            runner.submit(ListAdapter(_rows(1)), chunk_size, RecordingWork())
        assert runner.pending_count == 0
        assert db_session.execute(select(BatchJobModel)).first() is None


# =============================================================================
# Execution
# =============================================================================


class TestRunJob:
    def test_chunks_by_size(self, runner):
        work = RecordingWork()
        handle = runner.submit(ListAdapter(_rows(5)), 2, work)
        meta = runner.run_job(handle)

        assert work.chunks == [[0, 1], [2, 3], [4]]
        assert [c.row_count for c in work.contexts] == [2, 2, 1]
        assert all(c.job_id == handle.job_id for c in work.contexts)
        assert meta.status == JobStatus.COMPLETED
        assert (meta.total_units, meta.processed_units, meta.failed_units) == (3, 3, 0)
        assert meta.extended_status is None

    def test_stamps_completion_time(self, runner, clock):
        handle = runner.submit(ListAdapter(_rows(1)), 1, RecordingWork())
        clock.advance(90)
        meta = runner.run_job(handle)
        assert meta.completed_at == clock.now()
        assert meta.completed_at - meta.submitted_at == timedelta(seconds=90)

    def test_empty_source_completes(self, runner):
        handle = runner.submit(ListAdapter([]), 5, RecordingWork())
        meta = runner.run_job(handle)
        assert meta.status == JobStatus.COMPLETED
        assert meta.total_units == 0

    def test_accepts_canonical_id(self, runner):
        handle = runner.submit(ListAdapter(_rows(1)), 5, RecordingWork())
        meta = runner.run_job(handle.canonical)
        assert meta.job_id == handle.job_id

    def test_unknown_job(self, runner):
        with pytest.raises(JobNotFoundError):
            runner.run_job("707000000000000")

    def test_job_runs_once(self, runner):
        handle = runner.submit(ListAdapter(_rows(1)), 5, RecordingWork())
        runner.run_job(handle)
        with pytest.raises(JobNotFoundError):
            runner.run_job(handle)

    def test_persisted_metadata_matches(self, runner, session_factory):
        handle = runner.submit(ListAdapter(_rows(3)), 2, RecordingWork(fail_on={0}))
        runner.run_job(handle)
        session = session_factory()
        try:
            meta = JobMetadataService(session).get_by_id(handle.job_id)
        finally:
            session.close()
        assert meta.status == JobStatus.COMPLETED
        assert meta.failed_units == 1


class TestChunkIsolation:
    def test_failed_chunk_does_not_stop_job(self, runner):
        work = RecordingWork(fail_on={1})
        handle = runner.submit(ListAdapter(_rows(6)), 2, work)
        meta = runner.run_job(handle)

        assert work.chunks == [[0, 1], [2, 3], [4, 5]]
        assert meta.failed_units == 1
        assert meta.processed_units == 3
        assert meta.status == JobStatus.COMPLETED
        assert meta.extended_status is None

    def test_unit_exception_hook_per_failed_chunk(self, runner):
        calls = []
        handle = runner.submit(
            ListAdapter(_rows(6)), 2, RecordingWork(fail_on={0, 2}),
            on_unit_exception=lambda job_id, exc: calls.append((job_id, str(exc))),
        )
        runner.run_job(handle)
        assert calls == [
            (handle.job_id, "chunk 0 rejected"),
            (handle.job_id, "chunk 2 rejected"),
        ]

    def test_hook_sees_committed_counters(self, runner, session_factory):
        seen = []

        def on_unit_exception(job_id, exc):
            session = session_factory()
            try:
                seen.append(JobMetadataService(session).get_by_id(job_id).failed_units)
            finally:
                session.close()

        handle = runner.submit(
            ListAdapter(_rows(4)), 2, RecordingWork(fail_on={0, 1}),
            on_unit_exception=on_unit_exception,
        )
        runner.run_job(handle)
        assert seen == [1, 2]

    def test_all_chunks_failing_still_completes(self, runner):
        handle = runner.submit(ListAdapter(_rows(4)), 2, RecordingWork(fail_on={0, 1}))
        meta = runner.run_job(handle)
        assert meta.failed_units == 2
        assert meta.status == JobStatus.COMPLETED


class TestSourceFailure:
    def test_sets_extended_status(self, runner):
        work = RecordingWork()
        handle = runner.submit(ListAdapter(_rows(5), fail_after=3), 2, work)
        meta = runner.run_job(handle)

        assert work.chunks == [[0, 1]]
        assert meta.status == JobStatus.FAILED
        assert meta.extended_status == "RuntimeError: source broke"
        assert meta.completed_at is not None

    def test_source_failure_logged(self, runner, captured_logs):
        handle = runner.submit(ListAdapter(_rows(2), fail_after=0), 2, RecordingWork())
        runner.run_job(handle)
        failures = [r for r in captured_logs() if r["message"] == "batch_job_source_failed"]
        assert len(failures) == 1
        assert failures[0]["job_id"] == handle.job_id
        assert failures[0]["exc_type"] == "RuntimeError"


class TestJobFinishedHook:
    def test_called_exactly_once(self, runner):
        calls = []
        handle = runner.submit(
            ListAdapter(_rows(5)), 2, RecordingWork(fail_on={1}),
            on_job_finished=calls.append,
        )
        runner.run_job(handle)
        assert calls == [handle.job_id]

    def test_called_once_on_source_failure(self, runner):
        calls = []
        handle = runner.submit(
            ListAdapter(_rows(5), fail_after=1), 2, RecordingWork(),
            on_job_finished=calls.append,
        )
        runner.run_job(handle)
        assert calls == [handle.job_id]

    def test_hook_exceptions_swallowed(self, runner, captured_logs):
        def boom(*args):
            raise RuntimeError("hook broke")

        handle = runner.submit(
            ListAdapter(_rows(2)), 1, RecordingWork(fail_on={0}),
            on_unit_exception=boom, on_job_finished=boom,
        )
        meta = runner.run_job(handle)

        assert meta.status == JobStatus.COMPLETED
        assert meta.processed_units == 2
        hooks = [r["hook"] for r in captured_logs() if r["message"] == "batch_hook_failed"]
        assert hooks == ["on_unit_exception", "on_job_finished"]


# =============================================================================
# Queue draining
# =============================================================================


class TestRunPending:
    def test_runs_in_submission_order(self, runner):
        order = []
        first = runner.submit(ListAdapter(_rows(1)), 1, RecordingWork(),
                              on_job_finished=order.append)
        second = runner.submit(ListAdapter(_rows(1)), 1, RecordingWork(),
                               on_job_finished=order.append)
        results = runner.run_pending()

        assert order == [first.job_id, second.job_id]
        assert [r.handle for r in results] == [first, second]
        assert runner.pending_count == 0

    def test_skips_jobs_already_run(self, runner):
        handle = runner.submit(ListAdapter(_rows(1)), 1, RecordingWork())
        runner.run_job(handle)
        assert runner.run_pending() == []


class TestBackgroundWorker:
    def test_start_executes_queued_jobs(self, runner):
        done = threading.Event()
        handle = runner.submit(ListAdapter(_rows(3)), 2, RecordingWork(),
                               on_job_finished=lambda job_id: done.set())
        runner.start()
        assert runner.is_running
        assert done.wait(timeout=5)
        runner.stop(timeout=5)
        assert not runner.is_running
        assert JobHandle(handle.job_id) == handle

    def test_start_is_idempotent(self, runner):
        runner.start()
        thread = runner._worker
        runner.start()
        assert runner._worker is thread
