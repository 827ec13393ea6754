"""
Property-based tests for job id normalization, case-insensitive keys,
chunking, and cron next-run computation.

Boundaries fuzzed here:
- Job ids: any 15-character base62 id, its 18-character form, padding
- Row keys: arbitrary ASCII field names looked up in another case
- Chunking: any row count and chunk size
- Cron: any daily minute/hour pair from any start instant
"""

from datetime import datetime, timedelta, timezone

from hypothesis import HealthCheck, assume, given, settings
from hypothesis import strategies as st

from massaction_kernel.utils.keys import (
    CaseInsensitiveDict,
    canonicalize_job_id,
    id_checksum_suffix,
    to_full_id,
)

from massaction_batch.domain.schedule import compute_next_run, matches_cron, parse_cron
from massaction_batch.domain.types import JobHandle, ScheduleFrequency
from massaction_batch.services.runner import chunked

BASE62 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"

base_ids = st.text(alphabet=BASE62, min_size=15, max_size=15)
instants = st.datetimes(
    min_value=datetime(2020, 1, 1),
    max_value=datetime(2035, 12, 31),
    timezones=st.just(timezone.utc),
)


class TestJobIdProperties:
    @given(base_id=base_ids)
    def test_full_form_canonicalizes_back(self, base_id):
        full = to_full_id(base_id)
        assert len(full) == 18
        assert canonicalize_job_id(full) == base_id
        assert canonicalize_job_id(base_id) == base_id

    @given(base_id=base_ids, padding=st.text(alphabet=" \t\n", max_size=3))
    def test_padding_ignored(self, base_id, padding):
        assert canonicalize_job_id(f"{padding}{base_id}{padding}") == base_id

    @given(base_id=base_ids, position=st.integers(min_value=0, max_value=14))
    def test_suffix_distinguishes_case(self, base_id, position):
        char = base_id[position]
        assume(char.isalpha())
        flipped = base_id[:position] + char.swapcase() + base_id[position + 1:]
        assert id_checksum_suffix(flipped) != id_checksum_suffix(base_id)

    @given(base_id=base_ids)
    def test_handle_equal_across_forms(self, base_id):
        full = JobHandle(to_full_id(base_id))
        short = JobHandle(base_id)
        assert full == short
        assert hash(full) == hash(short)


class TestCaseInsensitiveKeys:
    @given(data=st.dictionaries(
        keys=st.text(alphabet="abcdefghijklmnopqrstuvwxyz_", min_size=1, max_size=12),
        values=st.integers(),
        max_size=10,
    ))
    def test_lookup_in_any_case(self, data):
        mapping = CaseInsensitiveDict(data)
        assert len(mapping) == len(data)
        for key, value in data.items():
            assert mapping[key.upper()] == value
            assert f" {key.title()} " in mapping


class TestChunkingProperties:
    @given(rows=st.lists(st.integers(), max_size=60), size=st.integers(min_value=1, max_value=25))
    def test_chunks_partition_rows(self, rows, size):
        chunks = list(chunked(rows, size))
        assert [row for chunk in chunks for row in chunk] == rows
        assert all(1 <= len(chunk) <= size for chunk in chunks)
        assert all(len(chunk) == size for chunk in chunks[:-1])
        assert len(chunks) == -(-len(rows) // size)


class TestNextRunProperties:
    @settings(max_examples=50, suppress_health_check=[HealthCheck.too_slow])
    @given(
        last_run=instants,
        minute=st.integers(min_value=0, max_value=59),
        hour=st.integers(min_value=0, max_value=23),
    )
    def test_daily_cron_next_match(self, last_run, minute, hour):
        expression = f"{minute} {hour} * * *"
        next_run = compute_next_run(ScheduleFrequency.DAILY, last_run, expression)
        assert last_run < next_run <= last_run + timedelta(days=1)
        assert (next_run.hour, next_run.minute, next_run.second) == (hour, minute, 0)
        assert matches_cron(parse_cron(expression), next_run)

    @given(
        last_run=instants,
        frequency=st.sampled_from([
            ScheduleFrequency.HOURLY,
            ScheduleFrequency.DAILY,
            ScheduleFrequency.WEEKLY,
            ScheduleFrequency.MONTHLY,
        ]),
    )
    def test_interval_always_in_future(self, last_run, frequency):
        assert compute_next_run(frequency, last_run) > last_run
