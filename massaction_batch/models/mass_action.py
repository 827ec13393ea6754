"""
ORM models for mass action configuration and failure logs.

Contract:
    MassActionConfigModel persists configuration records; MassActionLogModel
    persists one row per failure event.  Each has ``to_dto()``; the log model
    also has ``from_dto()``.

Architecture: massaction_batch/models. Imports from massaction_kernel only.

Invariants enforced:
    - Log rows are insert-only from the core's perspective.
    - ``short_message`` is truncated to SHORT_MESSAGE_MAX_LENGTH in
      ``from_dto()`` instead of failing the insert.
    - ``job_id`` on a log row is always the canonical 15-character form.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from massaction_kernel.db.base import TrackedBase, UTCDateTime, UUIDString
from massaction_kernel.exceptions import InvalidConfigurationError
from massaction_kernel.utils.keys import CANONICAL_ID_LENGTH, canonicalize_job_id

if TYPE_CHECKING:
    from massaction_batch.domain.types import LogEntry, MassActionConfig


class MassActionConfigModel(TrackedBase):
    """Persistent mass action configuration."""

    __tablename__ = "mass_action_configs"

    __table_args__ = (
        Index("ix_mass_action_configs_active", "active"),
        Index("ix_mass_action_configs_next_run", "next_run_at"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    source_type: Mapped[str] = mapped_column(String(50), nullable=False)
    batch_size: Mapped[int] = mapped_column(Integer, default=200, nullable=False)
    target_action: Mapped[str | None] = mapped_column(String(200), nullable=True)
    field_mappings: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    source_report_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    source_list_view_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    source_soql_query: Mapped[str | None] = mapped_column(Text, nullable=True)
    source_apex_class: Mapped[str | None] = mapped_column(String(255), nullable=True)
    schedule_frequency: Mapped[str] = mapped_column(
        String(50), default="on_demand", nullable=False,
    )
    schedule_cron: Mapped[str | None] = mapped_column(String(100), nullable=True)
    next_run_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    last_run_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    last_run_completed_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), nullable=True,
    )
    last_run_had_errors: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False,
    )

    logs: Mapped[list["MassActionLogModel"]] = relationship(
        "MassActionLogModel",
        back_populates="config",
        foreign_keys="MassActionLogModel.config_id",
    )

    def to_dto(self) -> MassActionConfig:
        """Build the DTO.

        Raises:
            InvalidConfigurationError: If ``schedule_frequency`` holds a
                value outside ScheduleFrequency (e.g. an edited row).
        """
        from massaction_batch.domain.types import MassActionConfig, ScheduleFrequency

        try:
            frequency = ScheduleFrequency(self.schedule_frequency)
        except ValueError as exc:
            raise InvalidConfigurationError(
                str(self.id), f"unknown schedule_frequency {self.schedule_frequency!r}",
            ) from exc

        return MassActionConfig(
            config_id=self.id,
            name=self.name,
            source_type=self.source_type,
            batch_size=self.batch_size,
            active=self.active,
            target_action=self.target_action,
            field_mappings=dict(self.field_mappings or {}),
            source_report_id=self.source_report_id,
            source_list_view_id=self.source_list_view_id,
            source_soql_query=self.source_soql_query,
            source_apex_class=self.source_apex_class,
            schedule_frequency=frequency,
            schedule_cron=self.schedule_cron,
            next_run_at=self.next_run_at,
            last_run_at=self.last_run_at,
            last_run_completed_at=self.last_run_completed_at,
            last_run_had_errors=self.last_run_had_errors,
            description=self.description,
        )


class MassActionLogModel(TrackedBase):
    """One failure event for a (configuration, job) pair."""

    __tablename__ = "mass_action_logs"

    __table_args__ = (
        Index("ix_mass_action_logs_config_job", "config_id", "job_id"),
    )

    config_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("mass_action_configs.id", ondelete="CASCADE"),
        nullable=False,
    )
    job_id: Mapped[str] = mapped_column(String(CANONICAL_ID_LENGTH), nullable=False)
    submitted_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    total_units: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    processed_units: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    failed_units: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    short_message: Mapped[str | None] = mapped_column(String(255), nullable=True)
    long_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    config: Mapped["MassActionConfigModel"] = relationship(
        "MassActionConfigModel",
        back_populates="logs",
        foreign_keys=[config_id],
    )

    def to_dto(self) -> LogEntry:
        from massaction_batch.domain.types import LogEntry

        return LogEntry(
            config_id=self.config_id,
            job_id=self.job_id,
            submitted_at=self.submitted_at,
            total_units=self.total_units,
            processed_units=self.processed_units,
            failed_units=self.failed_units,
            short_message=self.short_message,
            long_message=self.long_message,
            log_id=self.id,
            created_at=self.created_at,
        )

    @classmethod
    def from_dto(cls, dto: LogEntry, created_by_id: UUID) -> MassActionLogModel:
        from massaction_batch.domain.types import SHORT_MESSAGE_MAX_LENGTH

        short_message = dto.short_message
        if short_message is not None:
            short_message = short_message[:SHORT_MESSAGE_MAX_LENGTH]

        return cls(
            config_id=dto.config_id,
            job_id=canonicalize_job_id(dto.job_id),
            submitted_at=dto.submitted_at,
            total_units=dto.total_units,
            processed_units=dto.processed_units,
            failed_units=dto.failed_units,
            short_message=short_message,
            long_message=dto.long_message,
            created_by_id=created_by_id,
            updated_by_id=None,
        )
