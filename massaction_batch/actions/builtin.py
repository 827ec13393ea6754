"""
Built-in target actions.

``LogRowsAction`` records each chunk in the structured log (useful for
dry runs of a new configuration).  ``InsertRowsAction`` writes mapped
inputs into a table, one parameterized INSERT per chunk.
"""

from __future__ import annotations

from typing import Any, Callable

from sqlalchemy import column, insert, table
from sqlalchemy.orm import Session

from massaction_kernel.logging_config import get_logger

logger = get_logger("batch.actions")


class LogRowsAction:
    """Logs the size and field names of every chunk it receives."""

    def __init__(self, name: str = "log_rows") -> None:
        self._name = name
        self.rows_seen = 0

    @property
    def name(self) -> str:
        return self._name

    def invoke(self, inputs: list[dict[str, Any]]) -> None:
        self.rows_seen += len(inputs)
        fields = sorted({key for item in inputs for key in item})
        logger.info(
            "log_rows_chunk",
            extra={"action": self._name, "row_count": len(inputs), "fields": fields},
        )


class InsertRowsAction:
    """Inserts each chunk of inputs into ``table_name``.

    The session comes from ``session_factory`` so the action can be run on
    the runner's worker thread; each chunk is committed on its own.
    """

    def __init__(
        self,
        name: str,
        session_factory: Callable[[], Session],
        table_name: str,
    ) -> None:
        self._name = name
        self._session_factory = session_factory
        self._table_name = table_name

    @property
    def name(self) -> str:
        return self._name

    def invoke(self, inputs: list[dict[str, Any]]) -> None:
        if not inputs:
            return
        columns = sorted({key for item in inputs for key in item})
        target = table(self._table_name, *(column(name) for name in columns))
        session = self._session_factory()
        try:
            session.execute(insert(target), inputs)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
