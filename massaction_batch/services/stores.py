"""
Session-backed stores for configurations, failure logs and job metadata.

Contract:
    ``ConfigurationStore`` reads configuration records and writes back the
    run-outcome and schedule fields.  ``LogStore`` inserts and counts
    failure log entries.  ``JobMetadataService`` reads the runner's job
    records as ``JobMetadata``.

Architecture: massaction_batch/services.  Imports from massaction_batch.domain,
    massaction_batch.models and massaction_kernel.

Non-goals:
    - Does NOT call ``session.commit()`` -- caller controls boundaries.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from massaction_kernel.exceptions import (
    ConfigurationNotFoundError,
    InvalidConfigurationError,
    JobNotFoundError,
)
from massaction_kernel.logging_config import get_logger
from massaction_kernel.utils.keys import canonicalize_job_id

from massaction_batch.domain.types import JobHandle, JobMetadata, LogEntry, MassActionConfig
from massaction_batch.models.batch import BatchJobModel
from massaction_batch.models.mass_action import MassActionConfigModel, MassActionLogModel

logger = get_logger("batch.stores")


class ConfigurationStore:
    """Reads configurations; writes only run-outcome and schedule fields."""

    def __init__(self, session: Session, actor_id: UUID | None = None) -> None:
        self._session = session
        self._actor_id = actor_id

    def get(self, config_id: UUID) -> MassActionConfig | None:
        model = self._session.get(MassActionConfigModel, config_id)
        return model.to_dto() if model is not None else None

    def require(self, config_id: UUID) -> MassActionConfig:
        """Get a configuration by ID.

        Raises:
            ConfigurationNotFoundError: If config_id does not exist.
        """
        config = self.get(config_id)
        if config is None:
            raise ConfigurationNotFoundError(str(config_id))
        return config

    def get_by_name(self, name: str) -> MassActionConfig | None:
        model = self._session.execute(
            select(MassActionConfigModel).where(MassActionConfigModel.name == name)
        ).scalar_one_or_none()
        return model.to_dto() if model is not None else None

    def list_active(self) -> tuple[MassActionConfig, ...]:
        """Active configurations by name.  Unreadable rows are logged and skipped."""
        models = self._session.execute(
            select(MassActionConfigModel)
            .where(MassActionConfigModel.active == True)  # noqa: E712
            .order_by(MassActionConfigModel.name)
        ).scalars().all()

        configs = []
        for model in models:
            try:
                configs.append(model.to_dto())
            except InvalidConfigurationError as exc:
                logger.warning(
                    "config_unreadable_skipped",
                    extra={"config_id": exc.config_id, "reason": exc.reason},
                )
        return tuple(configs)

    def record_run_outcome(
        self,
        config_id: UUID,
        completed_at: datetime | None,
        had_errors: bool,
    ) -> None:
        """Write ``last_run_completed_at`` and ``last_run_had_errors``.

        Raises:
            ConfigurationNotFoundError: If config_id does not exist.
        """
        model = self._load(config_id)
        model.last_run_completed_at = completed_at
        model.last_run_had_errors = had_errors
        model.touch(self._actor_id)
        self._session.flush()

    def record_schedule(
        self,
        config_id: UUID,
        last_run_at: datetime,
        next_run_at: datetime | None,
    ) -> None:
        """Stamp a scheduled dispatch on the configuration."""
        model = self._load(config_id)
        model.last_run_at = last_run_at
        model.next_run_at = next_run_at
        model.touch(self._actor_id)
        self._session.flush()

    def _load(self, config_id: UUID) -> MassActionConfigModel:
        model = self._session.get(MassActionConfigModel, config_id)
        if model is None:
            raise ConfigurationNotFoundError(str(config_id))
        return model


class LogStore:
    """Insert-only store of failure log entries."""

    def __init__(self, session: Session, actor_id: UUID) -> None:
        self._session = session
        self._actor_id = actor_id

    def insert(self, entry: LogEntry) -> LogEntry:
        model = MassActionLogModel.from_dto(entry, created_by_id=self._actor_id)
        self._session.add(model)
        self._session.flush()
        return model.to_dto()

    def count(self, config_id: UUID, job_id: JobHandle | str) -> int:
        """Count log entries for a (configuration, job) pair.

        Either form of the job id matches.
        """
        canonical = JobHandle.of(job_id).canonical
        return self._session.execute(
            select(func.count(MassActionLogModel.id)).where(
                MassActionLogModel.config_id == config_id,
                MassActionLogModel.job_id == canonical,
            )
        ).scalar_one()

    def list_for_config(self, config_id: UUID) -> tuple[LogEntry, ...]:
        models = self._session.execute(
            select(MassActionLogModel)
            .where(MassActionLogModel.config_id == config_id)
            .order_by(MassActionLogModel.created_at, MassActionLogModel.id)
        ).scalars().all()
        return tuple(m.to_dto() for m in models)


class JobMetadataService:
    """Reads job metadata from the runner's ``batch_jobs`` table."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, job_id: JobHandle | str) -> JobMetadata:
        """Get job metadata by either form of the job id.

        Raises:
            JobNotFoundError: If no job matches.
        """
        raw = str(job_id)
        model = self._session.execute(
            select(BatchJobModel).where(
                BatchJobModel.canonical_job_id == canonicalize_job_id(raw),
            )
        ).scalar_one_or_none()
        if model is None:
            raise JobNotFoundError(raw)
        return model.to_metadata()
