"""
InProcessBatchRunner -- chunked batch execution with lifecycle hooks.

Contract:
    Stands in for the external batch scheduler.  ``submit()`` accepts an
    adapter and a chunk work function and returns a JobHandle at once;
    ``run_job()`` executes the job; ``run_pending()`` drains the queue;
    ``start()`` / ``stop()`` drain it on a background thread.

Architecture: massaction_batch/services.  Imports from massaction_batch.domain,
    massaction_batch.models and massaction_kernel.

Invariants enforced:
    - Chunk isolation: an exception in one chunk's work is reported through
      ``on_unit_exception`` and the next chunk still runs.
    - ``on_job_finished`` is called exactly once per executed job.
    - Hook exceptions are logged and never abort the job.
    - Job counters are committed after every chunk.
    - Job-level failure (the source itself raised) sets ``extended_status``.
      Chunk failures are counted in ``failed_units`` only.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from itertools import islice
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from massaction_kernel.domain.clock import Clock, SystemClock
from massaction_kernel.exceptions import InvalidBatchSizeError, JobNotFoundError
from massaction_kernel.logging_config import LogContext, get_logger
from massaction_kernel.utils.keys import canonicalize_job_id, generate_job_id

from massaction_batch.domain.types import (
    ChunkContext,
    JobHandle,
    JobMetadata,
    JobStatus,
)
from massaction_batch.models.batch import BatchJobModel
from massaction_batch.sources.base import DataSourceAdapter

logger = get_logger("batch.runner")

ChunkWork = Callable[[Sequence[Mapping[str, Any]], ChunkContext], None]
UnitExceptionHook = Callable[[str, BaseException], None]
JobFinishedHook = Callable[[str], None]


@dataclass
class _PendingJob:
    job_id: str
    adapter: DataSourceAdapter
    chunk_size: int
    work: ChunkWork
    on_unit_exception: UnitExceptionHook | None
    on_job_finished: JobFinishedHook | None


def chunked(rows: Iterable[Any], size: int) -> Iterator[list[Any]]:
    """Slice an iterable into lists of at most ``size`` items."""
    iterator = iter(rows)
    while True:
        chunk = list(islice(iterator, size))
        if not chunk:
            return
        yield chunk


class InProcessBatchRunner:
    """In-process batch runner.

    Contract:
        - ``submit()`` persists a QUEUED job row and returns its handle.
        - ``run_job()`` executes one queued job and returns its metadata.
        - ``run_pending()`` executes every queued job, oldest first.
        - ``start()`` / ``stop()`` for background worker operation.

    Non-goals:
        - No retry, cancellation or timeout.
        - NOT a distributed runner: queued jobs live in this process only.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Clock | None = None,
        actor_id: UUID | None = None,
        poll_interval_seconds: float = 1.0,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._actor_id = actor_id or uuid4()
        self._poll_interval = poll_interval_seconds
        self._pending: dict[str, _PendingJob] = {}
        self._queue: queue.Queue[str] = queue.Queue()
        self._lock = threading.Lock()
        self._halt = threading.Event()
        self._worker: threading.Thread | None = None

    # -------------------------------------------------------------------------
    # Submit
    # -------------------------------------------------------------------------

    def submit(
        self,
        adapter: DataSourceAdapter,
        chunk_size: int,
        work: ChunkWork,
        on_unit_exception: UnitExceptionHook | None = None,
        on_job_finished: JobFinishedHook | None = None,
        config_id: UUID | None = None,
    ) -> JobHandle:
        """Queue a job for asynchronous execution.

        Raises:
            InvalidBatchSizeError: If chunk_size is not a positive integer.
        """
        if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size <= 0:
            raise InvalidBatchSizeError(chunk_size)

        job_id = generate_job_id()
        canonical = canonicalize_job_id(job_id)

        session = self._session_factory()
        try:
            session.add(BatchJobModel(
                job_id=job_id,
                canonical_job_id=canonical,
                config_id=config_id,
                source_type=getattr(adapter, "source_type", None),
                status=JobStatus.QUEUED.value,
                chunk_size=chunk_size,
                submitted_at=self._clock.now(),
                created_by_id=self._actor_id,
            ))
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        with self._lock:
            self._pending[canonical] = _PendingJob(
                job_id=job_id,
                adapter=adapter,
                chunk_size=chunk_size,
                work=work,
                on_unit_exception=on_unit_exception,
                on_job_finished=on_job_finished,
            )
        self._queue.put(canonical)

        logger.info(
            "batch_job_submitted",
            extra={
                "job_id": job_id,
                "chunk_size": chunk_size,
                "source_type": getattr(adapter, "source_type", None),
            },
        )
        return JobHandle(job_id)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    # -------------------------------------------------------------------------
    # Execute
    # -------------------------------------------------------------------------

    def run_job(self, job_id: JobHandle | str) -> JobMetadata:
        """Execute a queued job to completion.

        Raises:
            JobNotFoundError: If the job is not queued in this runner.
        """
        canonical = JobHandle.of(job_id).canonical
        with self._lock:
            pending = self._pending.pop(canonical, None)
        if pending is None:
            raise JobNotFoundError(str(job_id))

        with LogContext.bind(job_id=pending.job_id):
            return self._execute(pending)

    def run_pending(self) -> list[JobMetadata]:
        """Execute every queued job in submission order."""
        results: list[JobMetadata] = []
        while True:
            try:
                canonical = self._queue.get_nowait()
            except queue.Empty:
                return results
            with self._lock:
                still_pending = canonical in self._pending
            if still_pending:
                results.append(self.run_job(canonical))

    def _execute(self, pending: _PendingJob) -> JobMetadata:
        session = self._session_factory()
        try:
            job_model = self._load(session, pending.job_id)
            job_model.status = JobStatus.PROCESSING.value
            job_model.started_at = self._clock.now()
            session.commit()

            logger.info("batch_job_started", extra={"chunk_size": pending.chunk_size})

            try:
                for index, chunk in enumerate(chunked(pending.adapter, pending.chunk_size)):
                    job_model.total_units += 1
                    context = ChunkContext(
                        job_id=pending.job_id, chunk_index=index, row_count=len(chunk),
                    )
                    chunk_error: Exception | None = None
                    try:
                        pending.work(chunk, context)
                    except Exception as exc:
                        chunk_error = exc
                        job_model.failed_units += 1
                        logger.warning(
                            "batch_chunk_failed",
                            extra={
                                "chunk_index": index,
                                "row_count": len(chunk),
                                "error": str(exc),
                            },
                        )
                    job_model.processed_units += 1
                    session.commit()
                    # Counters are committed first so the hook reads them.
                    if chunk_error is not None:
                        self._call_hook(
                            "on_unit_exception", pending.on_unit_exception,
                            pending.job_id, chunk_error,
                        )
            except Exception as exc:
                # The source itself failed: the job as a whole failed.
                job_model.extended_status = f"{type(exc).__name__}: {exc}"
                logger.exception("batch_job_source_failed")

            job_model.status = (
                JobStatus.FAILED.value
                if job_model.extended_status
                else JobStatus.COMPLETED.value
            )
            job_model.completed_at = self._clock.now()
            session.commit()
            metadata = job_model.to_metadata()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        logger.info(
            "batch_job_finished",
            extra={
                "status": metadata.status.value,
                "total_units": metadata.total_units,
                "failed_units": metadata.failed_units,
            },
        )
        self._call_hook("on_job_finished", pending.on_job_finished, pending.job_id)
        return metadata

    @staticmethod
    def _load(session: Session, job_id: str) -> BatchJobModel:
        model = session.execute(
            select(BatchJobModel).where(
                BatchJobModel.canonical_job_id == canonicalize_job_id(job_id),
            )
        ).scalar_one_or_none()
        if model is None:
            raise JobNotFoundError(job_id)
        return model

    @staticmethod
    def _call_hook(name: str, hook: Callable[..., None] | None, *args: Any) -> None:
        if hook is None:
            return
        try:
            hook(*args)
        except Exception:
            logger.exception("batch_hook_failed", extra={"hook": name})

    # -------------------------------------------------------------------------
    # Background worker
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start draining the queue on a background thread."""
        if self.is_running:
            return
        self._halt.clear()
        self._worker = threading.Thread(target=self._drain, name="batch-runner", daemon=True)
        self._worker.start()
        logger.info("runner_started", extra={"poll_interval": self._poll_interval})

    def stop(self, timeout: float = 30.0) -> None:
        """Signal stop and wait for the current job to finish."""
        self._halt.set()
        if self.is_running:
            self._worker.join(timeout)
        logger.info("runner_stopped")

    @property
    def is_running(self) -> bool:
        return bool(self._worker and self._worker.is_alive())

    def _drain(self) -> None:
        while not self._halt.is_set():
            try:
                canonical = self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                continue
            try:
                self.run_job(canonical)
            except JobNotFoundError:
                # Already executed through run_job() on another thread.
                continue
            except Exception:
                logger.exception("runner_job_exception", extra={"job_id": canonical})
