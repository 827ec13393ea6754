"""
QuerySourceAdapter -- streams a SQL query (the SOQL source type).

The statement is not executed until the first row is requested; rows are
fetched from the cursor in ``yield_per`` partitions so a large result set
is never materialized at once.  The adapter opens its own session from the
factory, so it can be iterated on the runner's worker thread.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import Any

from sqlalchemy import text
from sqlalchemy.orm import Session

from massaction_batch.domain.types import SourceType
from massaction_batch.sources.base import Row, SingleUseAdapter

DEFAULT_YIELD_PER = 500


def stream_query(
    session_factory: Callable[[], Session],
    query: str,
    parameters: Mapping[str, Any] | None = None,
    yield_per: int = DEFAULT_YIELD_PER,
) -> Iterator[Row]:
    """Yield each row of ``query`` as a plain dict."""
    session = session_factory()
    try:
        result = session.execute(
            text(query),
            dict(parameters or {}),
            execution_options={"yield_per": yield_per},
        )
        for row in result.mappings():
            yield dict(row)
    finally:
        session.close()


class QuerySourceAdapter(SingleUseAdapter):
    """Row stream over a raw SQL query."""

    source_type = SourceType.SOQL.value

    def __init__(
        self,
        session_factory: Callable[[], Session],
        query: str,
        parameters: Mapping[str, Any] | None = None,
        yield_per: int = DEFAULT_YIELD_PER,
    ) -> None:
        super().__init__()
        self._session_factory = session_factory
        self._query = query
        self._parameters = dict(parameters or {})
        self._yield_per = yield_per

    @property
    def query(self) -> str:
        return self._query

    def _rows(self) -> Iterator[Row]:
        return stream_query(
            self._session_factory, self._query, self._parameters, self._yield_per,
        )
