"""
ReportSourceAdapter -- detail rows of a saved tabular report.

Contract:
    A ``ReportRunner`` runs a report by key and returns its column labels
    plus a lazy stream of detail rows (positional cell values).  The
    adapter zips each row with the labels to produce row mappings.

    ``SqlReportRunner`` is the default runner: reports are rows in the
    ``saved_reports`` table holding a query and optional column labels.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from sqlalchemy import select, text
from sqlalchemy.engine import Result
from sqlalchemy.orm import Session

from massaction_kernel.exceptions import SavedSourceNotFoundError

from massaction_batch.domain.types import SourceType
from massaction_batch.models.sources import SavedReportModel
from massaction_batch.sources.base import Row, SingleUseAdapter


@dataclass(frozen=True)
class TabularReport:
    """Result of running a tabular report."""

    report_key: str
    columns: tuple[str, ...]
    rows: Iterator[Sequence[Any]]


@runtime_checkable
class ReportRunner(Protocol):
    def run(self, report_key: str) -> TabularReport: ...


class SqlReportRunner:
    """Runs reports stored in ``saved_reports``.

    The session stays open until the returned row stream is exhausted
    or closed.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def run(self, report_key: str) -> TabularReport:
        session = self._session_factory()
        try:
            saved = session.execute(
                select(SavedReportModel).where(SavedReportModel.report_key == report_key)
            ).scalar_one_or_none()
            if saved is None:
                raise SavedSourceNotFoundError("report", report_key)
            result = session.execute(text(saved.query))
        except Exception:
            session.close()
            raise

        keys = tuple(result.keys())
        labels = tuple(saved.column_labels or ())
        # Labels override result keys position by position.
        columns = labels + keys[len(labels):]
        return TabularReport(
            report_key=report_key,
            columns=columns,
            rows=_detail_rows(session, result),
        )


def _detail_rows(session: Session, result: Result) -> Iterator[tuple[Any, ...]]:
    try:
        for row in result:
            yield tuple(row)
    finally:
        session.close()


class ReportSourceAdapter(SingleUseAdapter):
    """Row stream over a saved report's detail rows."""

    source_type = SourceType.REPORT.value

    def __init__(self, runner: ReportRunner, report_key: str) -> None:
        super().__init__()
        self._runner = runner
        self._report_key = report_key

    @property
    def report_key(self) -> str:
        return self._report_key

    def _rows(self) -> Iterator[Row]:
        report = self._runner.run(self._report_key)
        for cells in report.rows:
            yield dict(zip(report.columns, cells))
