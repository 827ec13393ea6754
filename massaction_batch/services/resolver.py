"""
SourceResolver -- maps a configuration's source type to a data source adapter.

Contract:
    ``resolve(source_type, config)`` returns a fresh, unconsumed adapter.
    Nothing is read from the source during resolution; adapters are lazy.

Invariants enforced:
    - Unknown source types raise UnsupportedSourceTypeError.
    - Apex class references that the AdapterRegistry cannot resolve raise
      UnresolvedAdapterError (a configuration error, not a transient one).
    - Report, ListView and SOQL configurations missing their source
      reference raise InvalidConfigurationError.
"""

from __future__ import annotations

from collections.abc import Callable

from sqlalchemy.orm import Session

from massaction_kernel.exceptions import (
    InvalidConfigurationError,
    UnsupportedSourceTypeError,
)
from massaction_kernel.logging_config import get_logger

from massaction_batch.domain.types import MassActionConfig, SourceType
from massaction_batch.sources.base import AdapterRegistry, DataSourceAdapter
from massaction_batch.sources.iterable import IterableSourceAdapter
from massaction_batch.sources.list_view import ListViewSourceAdapter
from massaction_batch.sources.query import QuerySourceAdapter
from massaction_batch.sources.report import (
    ReportRunner,
    ReportSourceAdapter,
    SqlReportRunner,
)

logger = get_logger("batch.resolver")


class SourceResolver:
    """Source strategy resolver.

    Non-goals:
        - Does NOT validate that a query or saved source actually returns
          rows -- that happens when the runner iterates the adapter.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        adapter_registry: AdapterRegistry,
        report_runner: ReportRunner | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._adapter_registry = adapter_registry
        self._report_runner = report_runner or SqlReportRunner(session_factory)

    @property
    def adapter_registry(self) -> AdapterRegistry:
        return self._adapter_registry

    def resolve(
        self,
        source_type: SourceType | str,
        config: MassActionConfig,
    ) -> DataSourceAdapter:
        """Build the adapter for ``source_type``.

        Raises:
            UnsupportedSourceTypeError: If source_type is not a SourceType.
            UnresolvedAdapterError: If an Apex class reference is unknown.
            InvalidConfigurationError: If the source reference is blank.
        """
        kind = self._parse(source_type)

        if kind == SourceType.REPORT:
            adapter: DataSourceAdapter = ReportSourceAdapter(
                self._report_runner,
                self._require(config, config.source_report_id, "source_report_id"),
            )
        elif kind == SourceType.LIST_VIEW:
            adapter = ListViewSourceAdapter(
                self._session_factory,
                self._require(config, config.source_list_view_id, "source_list_view_id"),
            )
        elif kind == SourceType.SOQL:
            adapter = QuerySourceAdapter(
                self._session_factory,
                self._require(config, config.source_soql_query, "source_soql_query"),
            )
        else:
            factory = self._adapter_registry.lookup(config.source_apex_class or "")
            adapter = IterableSourceAdapter(factory, config)

        logger.debug(
            "source_resolved",
            extra={
                "config_id": str(config.config_id),
                "source_type": kind.value,
                "adapter": type(adapter).__name__,
            },
        )
        return adapter

    @staticmethod
    def _parse(source_type: SourceType | str) -> SourceType:
        if isinstance(source_type, SourceType):
            return source_type
        try:
            return SourceType(source_type)
        except ValueError:
            raise UnsupportedSourceTypeError(
                str(source_type), SourceType.values(),
            ) from None

    @staticmethod
    def _require(config: MassActionConfig, value: str | None, field_name: str) -> str:
        if value is None or not value.strip():
            raise InvalidConfigurationError(
                str(config.config_id), f"{field_name} is required",
            )
        return value.strip()
