"""
Schedule evaluation for mass action configurations.

Everything here is a pure function of its arguments: the scheduler passes
in the configuration and the clock's ``now`` and gets back a decision or
a timestamp.

Cron support is the classic five-field form
``minute hour day-of-month month day-of-week`` with ``*``, single values,
comma lists, ``a-b`` ranges and ``/n`` steps.  Day-of-week counts from
Sunday = 0.  All fields must match (no day-of-month / day-of-week OR rule).
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import datetime, timedelta

from massaction_kernel.exceptions import InvalidCronExpressionError

from massaction_batch.domain.types import MassActionConfig, ScheduleFrequency

_TERM = re.compile(r"^(?P<start>\*|\d+)(?:-(?P<end>\d+))?(?:/(?P<step>\d+))?$")

# (CronSpec attribute, lowest, highest) in expression order.
_CRON_FIELDS = (
    ("minutes", 0, 59),
    ("hours", 0, 23),
    ("days_of_month", 1, 31),
    ("months", 1, 12),
    ("days_of_week", 0, 6),
)

# Four years covers any satisfiable date, including 29 February.
_SEARCH_DAYS = 4 * 366

_INTERVALS = {
    ScheduleFrequency.HOURLY: timedelta(hours=1),
    ScheduleFrequency.DAILY: timedelta(days=1),
    ScheduleFrequency.WEEKLY: timedelta(weeks=1),
}


@dataclass(frozen=True)
class CronSpec:
    """A parsed cron expression; each field is the set of allowed values."""

    minutes: frozenset[int] = frozenset(range(60))
    hours: frozenset[int] = frozenset(range(24))
    days_of_month: frozenset[int] = frozenset(range(1, 32))
    months: frozenset[int] = frozenset(range(1, 13))
    days_of_week: frozenset[int] = frozenset(range(7))

    def matches_day(self, dt: datetime) -> bool:
        return (
            dt.month in self.months
            and dt.day in self.days_of_month
            and (dt.isoweekday() % 7) in self.days_of_week
        )

    def matches(self, dt: datetime) -> bool:
        return dt.minute in self.minutes and dt.hour in self.hours and self.matches_day(dt)


def _expand_term(term: str, low: int, high: int) -> range:
    match = _TERM.match(term)
    if match is None:
        raise ValueError(f"cannot parse {term!r}")

    start, end, step = match.group("start", "end", "step")
    if start == "*":
        if end is not None:
            raise ValueError(f"'*' cannot start a range: {term!r}")
        first, last = low, high
    else:
        first = int(start)
        if end is not None:
            last = int(end)
        else:
            last = high if step is not None else first

    if first > last:
        raise ValueError(f"range {first}-{last} runs backwards")
    if first < low or last > high:
        raise ValueError(f"{term!r} is outside {low}-{high}")

    stride = int(step) if step is not None else 1
    if stride <= 0:
        raise ValueError(f"step must be positive in {term!r}")
    return range(first, last + 1, stride)


def parse_cron(expression: str) -> CronSpec:
    """Parse ``minute hour day-of-month month day-of-week``.

    Raises:
        InvalidCronExpressionError: If the expression is malformed or a
            value is out of range.
    """
    fields = expression.split()
    if len(fields) != len(_CRON_FIELDS):
        raise InvalidCronExpressionError(
            expression, f"expected {len(_CRON_FIELDS)} fields, got {len(fields)}",
        )

    allowed: dict[str, frozenset[int]] = {}
    try:
        for text, (name, low, high) in zip(fields, _CRON_FIELDS):
            values: set[int] = set()
            for term in text.split(","):
                values.update(_expand_term(term, low, high))
            allowed[name] = frozenset(values)
    except ValueError as exc:
        raise InvalidCronExpressionError(expression, str(exc)) from exc
    return CronSpec(**allowed)


def matches_cron(spec: CronSpec, dt: datetime) -> bool:
    return spec.matches(dt)


def _next_cron_match(spec: CronSpec, after: datetime) -> datetime | None:
    """First whole minute strictly after ``after`` that ``spec`` allows.

    None when the spec can never fire (e.g. 31 February).
    """
    earliest = after.replace(second=0, microsecond=0) + timedelta(minutes=1)
    day = earliest.replace(hour=0, minute=0)
    hours = sorted(spec.hours)
    minutes = sorted(spec.minutes)

    for _ in range(_SEARCH_DAYS):
        if spec.matches_day(day):
            for hour in hours:
                for minute in minutes:
                    candidate = day.replace(hour=hour, minute=minute)
                    if candidate >= earliest:
                        return candidate
        day += timedelta(days=1)
    return None


def _cron_or_none(expression: str) -> CronSpec | None:
    try:
        return parse_cron(expression)
    except InvalidCronExpressionError:
        return None


# =============================================================================
# Scheduling decisions
# =============================================================================


def should_fire(config: MassActionConfig, as_of: datetime) -> bool:
    """Whether ``config`` is due at ``as_of``.

    ON_DEMAND never fires and ONCE fires only until it has run.  Recurring
    schedules fire once ``next_run_at`` (if any) has been reached and, when
    a cron is set, ``as_of`` falls on it.  An unparsable cron never fires.
    """
    frequency = config.schedule_frequency
    if not config.active or frequency == ScheduleFrequency.ON_DEMAND:
        return False
    if frequency == ScheduleFrequency.ONCE:
        return config.last_run_at is None
    if config.next_run_at is not None and as_of < config.next_run_at:
        return False
    if not config.schedule_cron:
        return True
    spec = _cron_or_none(config.schedule_cron)
    return spec is not None and spec.matches(as_of)


def _one_month_later(moment: datetime) -> datetime:
    year, month_index = divmod(moment.year * 12 + moment.month, 12)
    month = month_index + 1
    last_day = calendar.monthrange(year, month)[1]
    return moment.replace(year=year, month=month, day=min(moment.day, last_day))


def compute_next_run(
    frequency: ScheduleFrequency,
    last_run_at: datetime | None,
    cron_expression: str | None = None,
) -> datetime | None:
    """Next time a recurring configuration is due after ``last_run_at``.

    A valid cron wins over the frequency interval; an invalid or
    unsatisfiable one is ignored.  Returns None for ON_DEMAND, ONCE, or
    a configuration that has never run.
    """
    if frequency in (ScheduleFrequency.ON_DEMAND, ScheduleFrequency.ONCE) or last_run_at is None:
        return None

    spec = _cron_or_none(cron_expression) if cron_expression else None
    if spec is not None:
        next_match = _next_cron_match(spec, last_run_at)
        if next_match is not None:
            return next_match

    if frequency == ScheduleFrequency.MONTHLY:
        return _one_month_later(last_run_at)
    return last_run_at + _INTERVALS[frequency]
