"""
Tests for massaction_batch.orchestrator -- MassActionOrchestrator wiring.
"""

import pytest

from massaction_kernel.domain.clock import SystemClock

from massaction_batch.actions.base import ActionRegistry
from massaction_batch.actions.builtin import LogRowsAction
from massaction_batch.domain.types import JobStatus
from massaction_batch.orchestrator import MassActionOrchestrator
from massaction_batch.services.dispatcher import JobDispatcher
from massaction_batch.services.scheduler import MassActionScheduler
from massaction_batch.services.stores import ConfigurationStore, LogStore
from massaction_batch.sources.base import AdapterRegistry


@pytest.fixture
def orchestrator(session_factory, clock, actor_id):
    orch = MassActionOrchestrator.from_session_factory(
        session_factory, clock=clock, actor_id=actor_id, default_namespace="local",
    )
    yield orch
    orch.runner.stop(timeout=5)


class TestFromSessionFactory:
    def test_defaults(self, session_factory):
        orch = MassActionOrchestrator.from_session_factory(session_factory)
        assert isinstance(orch.clock, SystemClock)
        assert orch.actor_id is not None
        assert orch.action_registry.list_actions() == ("log_rows",)
        assert len(orch.adapter_registry) == 0

    def test_uses_injected_dependencies(self, orchestrator, clock, actor_id):
        assert orchestrator.clock is clock
        assert orchestrator.actor_id == actor_id

    def test_custom_registries(self, session_factory):
        adapters = AdapterRegistry()
        actions = ActionRegistry()
        orch = MassActionOrchestrator.from_session_factory(
            session_factory, adapter_registry=adapters, action_registry=actions,
        )
        assert orch.adapter_registry is adapters
        assert orch.action_registry is actions


class TestFactories:
    def test_create_dispatcher(self, orchestrator, db_session):
        assert isinstance(orchestrator.create_dispatcher(db_session), JobDispatcher)

    def test_create_scheduler(self, orchestrator):
        scheduler = orchestrator.create_scheduler(tick_interval_seconds=5)
        assert isinstance(scheduler, MassActionScheduler)
        assert not scheduler.is_running

    def test_dispatchers_share_runner(self, orchestrator, db_session, make_config):
        first = orchestrator.create_dispatcher(db_session)
        second = orchestrator.create_dispatcher(db_session)
        config = make_config(source_soql_query="SELECT 1 AS x")
        first.enqueue(config.id)
        second.enqueue(config.id)
        assert orchestrator.runner.pending_count == 2


class TestEndToEnd:
    def test_enqueue_and_run(self, orchestrator, db_session, actor_id, make_config,
                             contacts_table, clock):
        config = make_config(
            source_type="SOQL",
            source_soql_query="SELECT id, name FROM contacts ORDER BY id",
            batch_size=10,
        )
        handle = orchestrator.create_dispatcher(db_session).enqueue(config.id)

        results = orchestrator.runner.run_pending()
        assert [m.job_id for m in results] == [handle.job_id]
        assert results[0].status == JobStatus.COMPLETED
        assert orchestrator.action_registry.get("log_rows").rows_seen == 5

        db_session.expire_all()
        stored = ConfigurationStore(db_session).get(config.id)
        assert stored.last_run_had_errors is False
        assert stored.last_run_completed_at == clock.now()
        assert LogStore(db_session, actor_id).count(config.id, handle) == 0

    def test_registered_apex_class(self, orchestrator, db_session, make_config):
        orchestrator.adapter_registry.register("Cleanup", lambda config: [{"id": 7}])
        config = make_config(source_type="Apex", source_apex_class="Cleanup")
        orchestrator.create_dispatcher(db_session).enqueue(config.id)

        (meta,) = orchestrator.runner.run_pending()
        assert meta.status == JobStatus.COMPLETED
        assert meta.total_units == 1

    def test_failed_source_recorded(self, orchestrator, db_session, actor_id, make_config):
        config = make_config(source_type="SOQL", source_soql_query="SELECT * FROM missing_table")
        handle = orchestrator.create_dispatcher(db_session).enqueue(config.id)

        (meta,) = orchestrator.runner.run_pending()
        assert meta.status == JobStatus.FAILED

        db_session.expire_all()
        assert ConfigurationStore(db_session).get(config.id).last_run_had_errors is True
        assert LogStore(db_session, actor_id).count(config.id, handle) == 1
