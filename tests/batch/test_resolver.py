"""
Tests for massaction_batch.services.resolver -- SourceResolver.

Validates that each supported source type yields the matching adapter,
that unknown types and unresolved class references raise configuration
errors, and that resolution never reads from the source.
"""

from dataclasses import replace
from uuid import uuid4

import pytest

from massaction_kernel.exceptions import (
    InvalidConfigurationError,
    UnresolvedAdapterError,
    UnsupportedSourceTypeError,
)

from massaction_batch.domain.types import MassActionConfig, SourceType
from massaction_batch.services.resolver import SourceResolver
from massaction_batch.sources.base import AdapterRegistry
from massaction_batch.sources.iterable import IterableSourceAdapter
from massaction_batch.sources.list_view import ListViewSourceAdapter
from massaction_batch.sources.query import QuerySourceAdapter
from massaction_batch.sources.report import ReportSourceAdapter, TabularReport


class _ExplodingReportRunner:
    """Report runner that fails if resolution ever runs a report."""

    def run(self, report_key):
        raise AssertionError("report must not run during resolution")


@pytest.fixture
def registry():
    reg = AdapterRegistry(default_namespace="local")
    reg.register("ContactCleanup", lambda config: [{"id": 1}])
    reg.register("Cleanup", lambda config: [{"id": 2}], namespace="acme")
    reg.register("Outer.Inner", lambda config: [{"id": 3}])
    return reg


@pytest.fixture
def resolver(session_factory, registry):
    return SourceResolver(session_factory, registry, report_runner=_ExplodingReportRunner())


def _config(**overrides) -> MassActionConfig:
    base = MassActionConfig(
        config_id=uuid4(),
        name="cfg",
        source_type="SOQL",
        batch_size=50,
        source_report_id="00O000000000001",
        source_list_view_id="00B000000000001",
        source_soql_query="SELECT id FROM contacts",
        source_apex_class="ContactCleanup",
    )
    return replace(base, **overrides)


class TestResolveSupportedTypes:
    @pytest.mark.parametrize(
        "source_type, adapter_cls",
        [
            ("Report", ReportSourceAdapter),
            ("ListView", ListViewSourceAdapter),
            ("SOQL", QuerySourceAdapter),
            ("Apex", IterableSourceAdapter),
        ],
    )
    def test_each_type_resolves(self, resolver, source_type, adapter_cls):
        adapter = resolver.resolve(source_type, _config(source_type=source_type))
        assert isinstance(adapter, adapter_cls)
        assert adapter.source_type == source_type
        assert not adapter.consumed

    def test_accepts_enum(self, resolver):
        adapter = resolver.resolve(SourceType.SOQL, _config())
        assert isinstance(adapter, QuerySourceAdapter)

    def test_report_key_and_query_carried(self, resolver):
        report = resolver.resolve("Report", _config())
        query = resolver.resolve("SOQL", _config())
        assert report.report_key == "00O000000000001"
        assert query.query == "SELECT id FROM contacts"

    def test_fresh_adapter_each_call(self, resolver):
        config = _config()
        assert resolver.resolve("SOQL", config) is not resolver.resolve("SOQL", config)

    def test_default_report_runner_used(self, session_factory, registry):
        plain = SourceResolver(session_factory, registry)
        assert isinstance(plain.resolve("Report", _config()), ReportSourceAdapter)


class TestResolveApex:
    def test_unqualified(self, resolver):
        adapter = resolver.resolve("Apex", _config(source_apex_class="ContactCleanup"))
        assert list(adapter) == [{"id": 1}]

    def test_namespace_qualified(self, resolver):
        adapter = resolver.resolve("Apex", _config(source_apex_class="acme.Cleanup"))
        assert list(adapter) == [{"id": 2}]

    def test_inner_class_falls_back_to_local_namespace(self, resolver):
        adapter = resolver.resolve("Apex", _config(source_apex_class="Outer.Inner"))
        assert list(adapter) == [{"id": 3}]

    def test_unresolved(self, resolver):
        with pytest.raises(UnresolvedAdapterError) as exc_info:
            resolver.resolve("Apex", _config(source_apex_class="acme.Missing"))
        assert exc_info.value.attempted == ("acme.Missing", "local.acme.Missing")

    def test_missing_class_name(self, resolver):
        with pytest.raises(UnresolvedAdapterError):
            resolver.resolve("Apex", _config(source_apex_class=None))


class TestResolveErrors:
    @pytest.mark.parametrize("source_type", ["Bogus", "soql", "", "report"])
    def test_unsupported_type(self, resolver, source_type):
        with pytest.raises(UnsupportedSourceTypeError) as exc_info:
            resolver.resolve(source_type, _config(source_type=source_type))
        assert exc_info.value.source_type == source_type
        assert exc_info.value.supported == SourceType.values()

    @pytest.mark.parametrize(
        "source_type, field_name",
        [
            ("Report", "source_report_id"),
            ("ListView", "source_list_view_id"),
            ("SOQL", "source_soql_query"),
        ],
    )
    def test_blank_reference(self, resolver, source_type, field_name):
        config = _config(source_type=source_type, **{field_name: "  "})
        with pytest.raises(InvalidConfigurationError) as exc_info:
            resolver.resolve(source_type, config)
        assert field_name in exc_info.value.reason


class TestResolverWithStubReport:
    def test_report_rows_via_injected_runner(self, session_factory, registry):
        class Runner:
            def run(self, report_key):
                return TabularReport(report_key, ("Id",), iter([(7,)]))

        resolver = SourceResolver(session_factory, registry, report_runner=Runner())
        assert list(resolver.resolve("Report", _config())) == [{"Id": 7}]
