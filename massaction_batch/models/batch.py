"""
ORM model for batch jobs run by the in-process runner.

Contract:
    BatchJobModel is the runner's job record and the source of
    ``JobMetadata`` for the outcome recorder.

Architecture: massaction_batch/models. Imports from massaction_kernel.db.base only.

Invariants enforced:
    - ``job_id`` is the full 18-character id and is UNIQUE.
    - ``canonical_job_id`` is the 15-character key used for lookups, so a
      caller holding either form finds the row.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from massaction_kernel.db.base import TrackedBase, UTCDateTime, UUIDString
from massaction_kernel.utils.keys import CANONICAL_ID_LENGTH, FULL_ID_LENGTH

if TYPE_CHECKING:
    from massaction_batch.domain.types import JobMetadata


class BatchJobModel(TrackedBase):
    """Persistent batch job record."""

    __tablename__ = "batch_jobs"

    __table_args__ = (
        Index("ix_batch_jobs_status", "status"),
        Index("ix_batch_jobs_config", "config_id"),
    )

    job_id: Mapped[str] = mapped_column(
        String(FULL_ID_LENGTH), nullable=False, unique=True,
    )
    canonical_job_id: Mapped[str] = mapped_column(
        String(CANONICAL_ID_LENGTH), nullable=False, unique=True,
    )
    config_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    source_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    chunk_size: Mapped[int] = mapped_column(Integer, nullable=False)
    submitted_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    extended_status: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_units: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    processed_units: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    failed_units: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def to_metadata(self) -> JobMetadata:
        from massaction_batch.domain.types import JobMetadata, JobStatus

        return JobMetadata(
            job_id=self.job_id,
            status=JobStatus(self.status),
            submitted_at=self.submitted_at,
            completed_at=self.completed_at,
            extended_status=self.extended_status,
            total_units=self.total_units,
            processed_units=self.processed_units,
            failed_units=self.failed_units,
        )
