"""
ORM models for saved data sources referenced by configurations.

Contract:
    SavedReportModel backs the Report source type (a named tabular query
    with optional column labels).  SavedFilterModel backs the ListView
    source type (a table, a column list and a filter clause).

Architecture: massaction_batch/models. Imports from massaction_kernel.db.base only.
"""

from __future__ import annotations

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from massaction_kernel.db.base import TrackedBase


class SavedReportModel(TrackedBase):
    """Saved tabular report definition."""

    __tablename__ = "saved_reports"

    report_key: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    query: Mapped[str] = mapped_column(Text, nullable=False)
    column_labels: Mapped[list | None] = mapped_column(JSON, nullable=True)


class SavedFilterModel(TrackedBase):
    """Saved filter (list view) over a single table."""

    __tablename__ = "saved_filters"

    filter_key: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    table_name: Mapped[str] = mapped_column(String(200), nullable=False)
    columns: Mapped[list | None] = mapped_column(JSON, nullable=True)
    filter_clause: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_by: Mapped[str | None] = mapped_column(String(200), nullable=True)

    def to_query(self) -> str:
        """Render the saved filter as the SELECT it stands for."""
        column_list = ", ".join(self.columns) if self.columns else "*"
        sql = f"SELECT {column_list} FROM {self.table_name}"
        if self.filter_clause:
            sql += f" WHERE {self.filter_clause}"
        if self.order_by:
            sql += f" ORDER BY {self.order_by}"
        return sql
