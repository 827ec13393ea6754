"""
JobDispatcher -- enqueues a configured mass action on the batch runner.

Contract:
    ``enqueue(config_id)`` fetches the configuration, resolves its source
    adapter and target action, and submits the job with ``batch_size`` as
    the chunk size.  It returns as soon as the job is accepted.

Invariants enforced:
    - Missing or inactive configurations are skipped with a warning and
      nothing is submitted; the call returns None.
    - Configuration errors (unsupported source type, unresolved adapter,
      unknown target action) propagate to the caller before any submission.
    - The runner's hooks are bound to the configuration id, so the outcome
      recorder always knows which configuration a job belongs to.
"""

from __future__ import annotations

from functools import partial
from typing import Protocol
from uuid import UUID

from massaction_kernel.exceptions import ActionNotRegisteredError
from massaction_kernel.logging_config import LogContext, get_logger

from massaction_batch.actions.base import (
    ActionChunkWork,
    ActionRegistry,
    TargetAction,
)
from massaction_batch.domain.types import JobHandle, MassActionConfig
from massaction_batch.services.outcome_recorder import RecorderHooks
from massaction_batch.services.resolver import SourceResolver
from massaction_batch.services.runner import ChunkWork, JobFinishedHook, UnitExceptionHook
from massaction_batch.services.stores import ConfigurationStore
from massaction_batch.sources.base import DataSourceAdapter

logger = get_logger("batch.dispatcher")


class BatchScheduler(Protocol):
    """What the dispatcher needs from a batch scheduler."""

    def submit(
        self,
        adapter: DataSourceAdapter,
        chunk_size: int,
        work: ChunkWork,
        on_unit_exception: UnitExceptionHook | None = None,
        on_job_finished: JobFinishedHook | None = None,
        config_id: UUID | None = None,
    ) -> JobHandle: ...


class JobDispatcher:
    """Mass action job dispatcher.

    Non-goals:
        - Does NOT wait for the job -- execution belongs to the runner.
        - Does NOT prevent concurrent jobs for one configuration.
    """

    def __init__(
        self,
        config_store: ConfigurationStore,
        resolver: SourceResolver,
        scheduler: BatchScheduler,
        action_registry: ActionRegistry,
        hooks: RecorderHooks,
        default_action: TargetAction | None = None,
    ) -> None:
        self._config_store = config_store
        self._resolver = resolver
        self._scheduler = scheduler
        self._action_registry = action_registry
        self._hooks = hooks
        self._default_action = default_action

    def enqueue(self, config_id: UUID) -> JobHandle | None:
        """Submit a configuration's job.

        Returns:
            The job handle, or None if the configuration is missing or inactive.

        Raises:
            UnsupportedSourceTypeError: If the source type is unknown.
            UnresolvedAdapterError: If an Apex class reference is unknown.
            InvalidConfigurationError: If the source reference is blank.
            ActionNotRegisteredError: If target_action is unknown.
        """
        with LogContext.bind(config_id=str(config_id)):
            config = self._config_store.get(config_id)
            if config is None:
                logger.warning("config_not_found_skipped")
                return None
            if not config.active:
                logger.warning("config_inactive_skipped", extra={"config_name": config.name})
                return None

            adapter = self._resolver.resolve(config.source_type, config)
            work = self._build_work(config)

            handle = self._scheduler.submit(
                adapter,
                config.batch_size,
                work,
                on_unit_exception=partial(self._hooks.on_unit_exception, config.config_id),
                on_job_finished=partial(self._hooks.on_job_finished, config.config_id),
                config_id=config.config_id,
            )

            logger.info(
                "job_enqueued",
                extra={
                    "config_name": config.name,
                    "job_id": handle.job_id,
                    "source_type": config.source_type,
                    "batch_size": config.batch_size,
                },
            )
            return handle

    def _build_work(self, config: MassActionConfig) -> ActionChunkWork:
        if config.target_action:
            action = self._action_registry.get(config.target_action)
        elif self._default_action is not None:
            action = self._default_action
        else:
            raise ActionNotRegisteredError("", self._action_registry.list_actions())
        return ActionChunkWork(action, config.field_mappings)
