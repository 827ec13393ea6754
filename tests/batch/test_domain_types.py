"""
Tests for massaction_batch.domain.types.

Validates enum values, JobHandle canonical equality, and frozen DTOs.
"""

from dataclasses import FrozenInstanceError
from uuid import uuid4

import pytest

from massaction_batch.domain.types import (
    SHORT_MESSAGE_MAX_LENGTH,
    ChunkContext,
    JobHandle,
    JobMetadata,
    JobStatus,
    LogEntry,
    MassActionConfig,
    ScheduleFrequency,
    SourceType,
)


class TestSourceType:
    def test_values(self):
        assert SourceType.values() == ("Report", "ListView", "SOQL", "Apex")

    def test_lookup_is_case_sensitive(self):
        with pytest.raises(ValueError):
            SourceType("soql")

    def test_is_str(self):
        assert SourceType.LIST_VIEW == "ListView"


class TestEnums:
    def test_job_status_values(self):
        assert {s.value for s in JobStatus} == {"queued", "processing", "completed", "failed"}

    def test_schedule_frequency_values(self):
        assert ScheduleFrequency("on_demand") is ScheduleFrequency.ON_DEMAND
        assert len(ScheduleFrequency) == 6


class TestJobHandle:
    FULL = "7074x00000AbCdEFGH"
    CANONICAL = "7074x00000AbCdE"

    def test_canonical(self):
        assert JobHandle(self.FULL).canonical == self.CANONICAL

    def test_full_and_canonical_handles_equal(self):
        assert JobHandle(self.FULL) == JobHandle(self.CANONICAL)
        assert hash(JobHandle(self.FULL)) == hash(JobHandle(self.CANONICAL))

    def test_equals_either_string_form(self):
        handle = JobHandle(self.FULL)
        assert handle == self.CANONICAL
        assert handle == self.FULL

    def test_different_ids_not_equal(self):
        assert JobHandle(self.FULL) != JobHandle("7074x00000ZZZZZ")

    def test_usable_as_dict_key_across_forms(self):
        seen = {JobHandle(self.FULL): "job"}
        assert seen[JobHandle(self.CANONICAL)] == "job"

    def test_of_passes_handle_through(self):
        handle = JobHandle(self.FULL)
        assert JobHandle.of(handle) is handle
        assert JobHandle.of(f" {self.FULL} ").job_id == self.FULL

    def test_str_keeps_issued_form(self):
        assert str(JobHandle(self.FULL)) == self.FULL

    def test_not_equal_to_other_types(self):
        assert JobHandle(self.FULL) != 42

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            JobHandle(self.FULL).job_id = "x"


class TestDTOs:
    def test_config_defaults(self):
        config = MassActionConfig(
            config_id=uuid4(), name="n", source_type="SOQL", batch_size=10,
        )
        assert config.active is True
        assert config.field_mappings == {}
        assert config.schedule_frequency == ScheduleFrequency.ON_DEMAND
        assert config.last_run_had_errors is False

    def test_config_frozen(self):
        config = MassActionConfig(
            config_id=uuid4(), name="n", source_type="SOQL", batch_size=10,
        )
        with pytest.raises(FrozenInstanceError):
            config.batch_size = 5

    def test_job_metadata_handle(self):
        meta = JobMetadata(job_id="7074x00000AbCdEFGH", status=JobStatus.COMPLETED)
        assert meta.handle == "7074x00000AbCdE"
        assert meta.total_units == 0

    def test_log_entry_defaults(self):
        entry = LogEntry(config_id=uuid4(), job_id="7074x00000AbCdE")
        assert entry.short_message is None
        assert entry.log_id is None

    def test_chunk_context(self):
        assert ChunkContext(job_id="j", chunk_index=2).row_count == 0

    def test_short_message_limit(self):
        assert SHORT_MESSAGE_MAX_LENGTH == 255
