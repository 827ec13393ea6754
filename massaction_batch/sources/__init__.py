"""
massaction_batch.sources -- Data source adapters and the adapter registry.

One adapter per source type (Report, ListView, SOQL, Apex).  Every adapter
is a lazy, single-pass stream of row mappings.
"""

from massaction_batch.sources.base import (
    AdapterFactory,
    AdapterRegistry,
    DataSourceAdapter,
    Row,
    SingleUseAdapter,
)
from massaction_batch.sources.iterable import IterableSourceAdapter
from massaction_batch.sources.list_view import ListViewSourceAdapter
from massaction_batch.sources.query import QuerySourceAdapter
from massaction_batch.sources.report import (
    ReportRunner,
    ReportSourceAdapter,
    SqlReportRunner,
    TabularReport,
)

__all__ = [
    "AdapterFactory",
    "AdapterRegistry",
    "DataSourceAdapter",
    "IterableSourceAdapter",
    "ListViewSourceAdapter",
    "QuerySourceAdapter",
    "ReportRunner",
    "ReportSourceAdapter",
    "Row",
    "SingleUseAdapter",
    "SqlReportRunner",
    "TabularReport",
]
