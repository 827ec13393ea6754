"""
massaction_batch.domain -- Pure types and schedule evaluation.

ZERO I/O.  All types are frozen dataclasses.
"""

from massaction_batch.domain.types import (
    ChunkContext,
    JobHandle,
    JobMetadata,
    JobStatus,
    LogEntry,
    MassActionConfig,
    ScheduleFrequency,
    SourceType,
)

__all__ = [
    "ChunkContext",
    "JobHandle",
    "JobMetadata",
    "JobStatus",
    "LogEntry",
    "MassActionConfig",
    "ScheduleFrequency",
    "SourceType",
]
