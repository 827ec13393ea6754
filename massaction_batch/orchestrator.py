"""
MassActionOrchestrator -- DI container for the mass action system.

Contract:
    Wires the adapter and action registries, the batch runner, the outcome
    recorder hooks, and creates dispatchers and the scheduler.  Single place
    where all dependencies are composed.

Invariants enforced:
    - One Clock and one actor id are shared by every service it creates.
    - One runner per orchestrator, so every dispatcher feeds the same queue.
"""

from __future__ import annotations

from typing import Callable
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from massaction_kernel.domain.clock import Clock, SystemClock

from massaction_batch.actions.base import ActionRegistry, TargetAction
from massaction_batch.actions.builtin import LogRowsAction
from massaction_batch.services.dispatcher import JobDispatcher
from massaction_batch.services.outcome_recorder import JobMetadataFetcher, RecorderHooks
from massaction_batch.services.resolver import SourceResolver
from massaction_batch.services.runner import InProcessBatchRunner
from massaction_batch.services.scheduler import MassActionScheduler
from massaction_batch.services.stores import ConfigurationStore
from massaction_batch.sources.base import AdapterRegistry
from massaction_batch.sources.report import ReportRunner


def _default_action_registry() -> ActionRegistry:
    """Create an ActionRegistry pre-loaded with the built-in actions."""
    registry = ActionRegistry()
    registry.register(LogRowsAction())
    return registry


class MassActionOrchestrator:
    """DI container for the mass action system.

    Contract:
        - ``from_session_factory()`` creates a fully wired orchestrator.
        - ``create_dispatcher()`` returns a JobDispatcher bound to a session.
        - ``create_scheduler()`` returns a MassActionScheduler for background use.
        - ``runner`` executes what the dispatchers submit.

    Non-goals:
        - Does NOT start the runner or scheduler automatically -- caller decides.
        - Does NOT manage the caller's session lifecycle.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        adapter_registry: AdapterRegistry,
        action_registry: ActionRegistry,
        clock: Clock | None = None,
        actor_id: UUID | None = None,
        report_runner: ReportRunner | None = None,
        job_fetcher_factory: Callable[[Session], JobMetadataFetcher] | None = None,
        default_action: TargetAction | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._adapter_registry = adapter_registry
        self._action_registry = action_registry
        self._clock = clock or SystemClock()
        self._actor_id = actor_id or uuid4()
        self._default_action = default_action
        self._resolver = SourceResolver(
            session_factory, adapter_registry, report_runner=report_runner,
        )
        self._runner = InProcessBatchRunner(
            session_factory, clock=self._clock, actor_id=self._actor_id,
        )
        self._hooks = RecorderHooks(
            session_factory,
            actor_id=self._actor_id,
            job_fetcher_factory=job_fetcher_factory,
        )

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def from_session_factory(
        cls,
        session_factory: Callable[[], Session],
        clock: Clock | None = None,
        actor_id: UUID | None = None,
        adapter_registry: AdapterRegistry | None = None,
        action_registry: ActionRegistry | None = None,
        default_namespace: str | None = None,
    ) -> MassActionOrchestrator:
        """Create a fully wired MassActionOrchestrator.

        Args:
            session_factory: Callable returning new sessions.
            clock: Optional clock for deterministic testing.
            actor_id: Optional actor UUID for record attribution.
            adapter_registry: Optional pre-populated registry. If None, an
                empty one in ``default_namespace`` is created.
            action_registry: Optional registry. If None, uses the built-in
                actions.
        """
        actions = action_registry if action_registry is not None else _default_action_registry()
        default_action = actions.get("log_rows") if "log_rows" in actions else None
        return cls(
            session_factory=session_factory,
            adapter_registry=(
                adapter_registry
                if adapter_registry is not None
                else AdapterRegistry(default_namespace=default_namespace)
            ),
            action_registry=actions,
            clock=clock,
            actor_id=actor_id,
            default_action=default_action,
        )

    # -------------------------------------------------------------------------
    # Dispatcher
    # -------------------------------------------------------------------------

    def create_dispatcher(self, session: Session) -> JobDispatcher:
        """Create a JobDispatcher reading configurations through ``session``."""
        return JobDispatcher(
            config_store=ConfigurationStore(session, actor_id=self._actor_id),
            resolver=self._resolver,
            scheduler=self._runner,
            action_registry=self._action_registry,
            hooks=self._hooks,
            default_action=self._default_action,
        )

    # -------------------------------------------------------------------------
    # Scheduler
    # -------------------------------------------------------------------------

    def create_scheduler(self, tick_interval_seconds: int = 60) -> MassActionScheduler:
        """Create a MassActionScheduler wired with the orchestrator's dependencies."""
        return MassActionScheduler(
            session_factory=self._session_factory,
            dispatcher_factory=self.create_dispatcher,
            clock=self._clock,
            tick_interval_seconds=tick_interval_seconds,
        )

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def actor_id(self) -> UUID:
        return self._actor_id

    @property
    def runner(self) -> InProcessBatchRunner:
        return self._runner

    @property
    def hooks(self) -> RecorderHooks:
        return self._hooks

    @property
    def resolver(self) -> SourceResolver:
        return self._resolver

    @property
    def adapter_registry(self) -> AdapterRegistry:
        return self._adapter_registry

    @property
    def action_registry(self) -> ActionRegistry:
        return self._action_registry
