"""
massaction_batch.domain.types -- Pure frozen dataclasses for mass actions.

ZERO I/O.

Frozen dataclasses with enum status fields; ORM models convert to and from
these via ``to_dto()`` / ``from_dto()``.

Invariants enforced:
    - JobHandle equality and hashing use the canonical 15-character id, so
      the submission-time id and the id stored on a log entry compare equal.
    - LogEntry short messages are bounded by SHORT_MESSAGE_MAX_LENGTH at the
      persistence layer (truncated, never rejected).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

from massaction_kernel.utils.keys import canonicalize_job_id

SHORT_MESSAGE_MAX_LENGTH = 255


# =============================================================================
# Enums
# =============================================================================


class SourceType(str, Enum):
    """Where a mass action reads its rows from."""

    REPORT = "Report"  # Saved tabular report
    LIST_VIEW = "ListView"  # Saved filter over a table
    SOQL = "SOQL"  # Free-form query string
    APEX = "Apex"  # Registered custom iterable

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(member.value for member in cls)


class JobStatus(str, Enum):
    """Lifecycle status of a submitted batch job."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ScheduleFrequency(str, Enum):
    """Recurrence frequency for scheduled dispatch."""

    ONCE = "once"  # Fire once, no recurrence
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ON_DEMAND = "on_demand"  # Manual enqueue only


# =============================================================================
# Job handle
# =============================================================================


@dataclass(frozen=True, eq=False)
class JobHandle:
    """Opaque correlation id for a submitted job.

    ``job_id`` keeps the form the runner issued (18 characters);
    ``canonical`` is the comparison key used at every boundary.
    """

    job_id: str

    @property
    def canonical(self) -> str:
        return canonicalize_job_id(self.job_id)

    @classmethod
    def of(cls, value: JobHandle | str) -> JobHandle:
        if isinstance(value, JobHandle):
            return value
        return cls(job_id=str(value).strip())

    def __eq__(self, other: object) -> bool:
        if isinstance(other, JobHandle):
            return self.canonical == other.canonical
        if isinstance(other, str):
            return self.canonical == canonicalize_job_id(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.canonical)

    def __str__(self) -> str:
        return self.job_id


# =============================================================================
# Configuration DTO
# =============================================================================


@dataclass(frozen=True)
class MassActionConfig:
    """Immutable snapshot of a mass action configuration.

    ``source_type`` is kept as the raw stored string; the resolver decides
    whether it names a supported source.
    """

    config_id: UUID
    name: str
    source_type: str
    batch_size: int
    active: bool = True
    target_action: str | None = None
    field_mappings: dict[str, str] = field(default_factory=dict)
    source_report_id: str | None = None
    source_list_view_id: str | None = None
    source_soql_query: str | None = None
    source_apex_class: str | None = None
    schedule_frequency: ScheduleFrequency = ScheduleFrequency.ON_DEMAND
    schedule_cron: str | None = None
    next_run_at: datetime | None = None
    last_run_at: datetime | None = None
    last_run_completed_at: datetime | None = None
    last_run_had_errors: bool = False
    description: str | None = None


# =============================================================================
# Job metadata and log entries
# =============================================================================


@dataclass(frozen=True)
class JobMetadata:
    """Scheduler-side record of a job, read-only to the outcome recorder."""

    job_id: str
    status: JobStatus
    submitted_at: datetime | None = None
    completed_at: datetime | None = None
    extended_status: str | None = None
    total_units: int = 0
    processed_units: int = 0
    failed_units: int = 0

    @property
    def handle(self) -> JobHandle:
        return JobHandle(self.job_id)


@dataclass(frozen=True)
class LogEntry:
    """One failure event recorded against a configuration and job."""

    config_id: UUID
    job_id: str  # canonical form
    submitted_at: datetime | None = None
    total_units: int = 0
    processed_units: int = 0
    failed_units: int = 0
    short_message: str | None = None
    long_message: str | None = None
    log_id: UUID | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class ChunkContext:
    """Identifies one unit of work handed to a chunk work function."""

    job_id: str
    chunk_index: int
    row_count: int = 0
