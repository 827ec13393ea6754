"""
ListViewSourceAdapter -- rows matching a saved filter.

The saved filter is looked up when iteration starts, the same moment the
query it stands for is run.  A filter deleted after the configuration was
dispatched therefore fails the job rather than the enqueue call.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator

from sqlalchemy import select
from sqlalchemy.orm import Session

from massaction_kernel.exceptions import SavedSourceNotFoundError

from massaction_batch.domain.types import SourceType
from massaction_batch.models.sources import SavedFilterModel
from massaction_batch.sources.base import Row, SingleUseAdapter
from massaction_batch.sources.query import DEFAULT_YIELD_PER, stream_query


class ListViewSourceAdapter(SingleUseAdapter):
    """Row stream over a saved filter."""

    source_type = SourceType.LIST_VIEW.value

    def __init__(
        self,
        session_factory: Callable[[], Session],
        filter_key: str,
        yield_per: int = DEFAULT_YIELD_PER,
    ) -> None:
        super().__init__()
        self._session_factory = session_factory
        self._filter_key = filter_key
        self._yield_per = yield_per

    @property
    def filter_key(self) -> str:
        return self._filter_key

    def _describe(self) -> str:
        session = self._session_factory()
        try:
            saved = session.execute(
                select(SavedFilterModel).where(
                    SavedFilterModel.filter_key == self._filter_key,
                )
            ).scalar_one_or_none()
            if saved is None:
                raise SavedSourceNotFoundError("filter", self._filter_key)
            return saved.to_query()
        finally:
            session.close()

    def _rows(self) -> Iterator[Row]:
        yield from stream_query(
            self._session_factory, self._describe(), yield_per=self._yield_per,
        )
