"""
OutcomeRecorder -- turns job outcomes into log entries and config state.

Contract:
    ``on_job_finished`` and ``on_unit_exception`` are the two lifecycle
    hooks the runner calls.  ``log_if_failed`` is the shared routine that
    writes a LogEntry.  ``get_job_by_id`` goes through an injected
    ``JobMetadataFetcher`` so tests can supply job metadata that no real
    run produced.

    ``RecorderHooks`` adapts the recorder to the runner: every hook call
    runs in its own session and transaction, and any exception is logged
    and swallowed so a logging failure cannot abort the job.

Invariants enforced:
    - A LogEntry is written iff the job's extended status is non-blank or
      an error was passed.
    - A written LogEntry has both messages populated whenever either is
      known.
    - ``last_run_had_errors`` is true iff the job reported a failure or at
      least one log entry exists for the (configuration, job) pair.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from massaction_kernel.logging_config import LogContext, get_logger

from massaction_batch.domain.types import JobHandle, JobMetadata, LogEntry
from massaction_batch.services.stores import (
    ConfigurationStore,
    JobMetadataService,
    LogStore,
)

logger = get_logger("batch.outcome_recorder")


@runtime_checkable
class JobMetadataFetcher(Protocol):
    def get_by_id(self, job_id: JobHandle | str) -> JobMetadata: ...


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _error_message(error: BaseException | None) -> str | None:
    if error is None:
        return None
    message = str(error)
    return message if message.strip() else type(error).__name__


class OutcomeRecorder:
    """Records job outcomes for one configuration store and log store.

    Non-goals:
        - Does NOT call ``session.commit()`` -- RecorderHooks (or the
          caller) controls transaction boundaries.
    """

    def __init__(
        self,
        config_store: ConfigurationStore,
        log_store: LogStore,
        job_fetcher: JobMetadataFetcher,
    ) -> None:
        self._config_store = config_store
        self._log_store = log_store
        self._job_fetcher = job_fetcher

    # -------------------------------------------------------------------------
    # Lifecycle hooks
    # -------------------------------------------------------------------------

    def on_job_finished(self, config_id: UUID, job_id: JobHandle | str) -> bool:
        """Finalize a configuration's last-run fields.

        Returns:
            The ``last_run_had_errors`` value written.
        """
        job = self.get_job_by_id(job_id)
        job_failed = not _is_blank(job.extended_status)

        self.log_if_failed(config_id, job, None)

        error_count = self._log_store.count(config_id, job.job_id)
        had_errors = job_failed or error_count > 0

        self._config_store.record_run_outcome(
            config_id,
            completed_at=job.completed_at,
            had_errors=had_errors,
        )

        logger.info(
            "job_outcome_recorded",
            extra={
                "config_id": str(config_id),
                "job_id": job.job_id,
                "job_failed": job_failed,
                "error_log_count": error_count,
                "had_errors": had_errors,
            },
        )
        return had_errors

    def on_unit_exception(
        self,
        config_id: UUID,
        job_id: JobHandle | str,
        error: BaseException,
    ) -> LogEntry | None:
        """Log a caught per-chunk exception against the job."""
        job = self.get_job_by_id(job_id)
        return self.log_if_failed(config_id, job, error)

    # -------------------------------------------------------------------------
    # Shared logging routine
    # -------------------------------------------------------------------------

    def log_if_failed(
        self,
        config_id: UUID,
        job: JobMetadata,
        error: BaseException | None,
    ) -> LogEntry | None:
        """Write a LogEntry if the job failed or an error was caught.

        Short message defaults to the extended status and long message to
        the error's message; a blank one is filled from the other.
        """
        if _is_blank(job.extended_status) and error is None:
            return None

        short_message = job.extended_status
        long_message = _error_message(error)

        if _is_blank(short_message):
            short_message = long_message
        if _is_blank(long_message):
            long_message = short_message

        entry = self._log_store.insert(LogEntry(
            config_id=config_id,
            job_id=job.handle.canonical,
            submitted_at=job.submitted_at,
            total_units=job.total_units,
            processed_units=job.processed_units,
            failed_units=job.failed_units,
            short_message=short_message,
            long_message=long_message,
        ))

        logger.warning(
            "mass_action_failure_logged",
            extra={
                "config_id": str(config_id),
                "job_id": entry.job_id,
                "short_message": entry.short_message,
                "from_exception": error is not None,
            },
        )
        return entry

    def get_job_by_id(self, job_id: JobHandle | str) -> JobMetadata:
        return self._job_fetcher.get_by_id(job_id)


class RecorderHooks:
    """Runner-facing hooks, one session and transaction per call.

    ``job_fetcher_factory`` builds the job-metadata capability for a
    session; it defaults to reading the runner's job table.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        actor_id: UUID | None = None,
        job_fetcher_factory: Callable[[Session], JobMetadataFetcher] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._actor_id = actor_id or uuid4()
        self._job_fetcher_factory = job_fetcher_factory or JobMetadataService

    def on_job_finished(self, config_id: UUID, job_id: str) -> None:
        self._run("on_job_finished", config_id, job_id,
                  lambda recorder: recorder.on_job_finished(config_id, job_id))

    def on_unit_exception(self, config_id: UUID, job_id: str, error: BaseException) -> None:
        self._run("on_unit_exception", config_id, job_id,
                  lambda recorder: recorder.on_unit_exception(config_id, job_id, error))

    def _run(
        self,
        hook: str,
        config_id: UUID,
        job_id: str,
        call: Callable[[OutcomeRecorder], object],
    ) -> None:
        session = self._session_factory()
        try:
            with LogContext.bind(config_id=str(config_id), job_id=job_id):
                recorder = OutcomeRecorder(
                    config_store=ConfigurationStore(session, actor_id=self._actor_id),
                    log_store=LogStore(session, actor_id=self._actor_id),
                    job_fetcher=self._job_fetcher_factory(session),
                )
                call(recorder)
            session.commit()
        except Exception:
            session.rollback()
            logger.exception(
                "outcome_hook_failed",
                extra={"hook": hook, "config_id": str(config_id), "job_id": job_id},
            )
        finally:
            session.close()
