"""
Polling scheduler for recurring mass actions.

Every tick reads the active configurations, asks ``should_fire()`` which of
them are due at ``clock.now()``, enqueues those through a JobDispatcher
bound to the tick's session, and stamps ``last_run_at``/``next_run_at``.

A configuration whose enqueue raises is logged as ``schedule_dispatch_failed``
and left untouched, so it is retried on the next tick.  Single process only:
two schedulers over the same database will both fire.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from massaction_kernel.domain.clock import Clock, SystemClock
from massaction_kernel.logging_config import get_logger

from massaction_batch.domain.schedule import compute_next_run, should_fire
from massaction_batch.domain.types import MassActionConfig
from massaction_batch.services.dispatcher import JobDispatcher
from massaction_batch.services.stores import ConfigurationStore

logger = get_logger("batch.scheduler")

DispatcherFactory = Callable[[Session], JobDispatcher]


class MassActionScheduler:
    """Fires due configurations, either on demand (``tick``) or from a
    daemon thread (``start``/``stop``)."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        dispatcher_factory: DispatcherFactory,
        clock: Clock | None = None,
        tick_interval_seconds: int = 60,
    ):
        self._session_factory = session_factory
        self._dispatcher_factory = dispatcher_factory
        self._clock = clock if clock is not None else SystemClock()
        self._interval = tick_interval_seconds
        self._halt = threading.Event()
        self._worker: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return bool(self._worker and self._worker.is_alive())

    def tick(self) -> int:
        """Run one scheduling pass and return how many configurations fired.

        The pass shares one session; an unexpected error rolls it back and
        counts as zero fired.
        """
        with self._session_factory() as session:
            try:
                fired = self._run_pass(session)
                session.commit()
            except Exception:
                session.rollback()
                logger.exception("scheduler_tick_failed")
                return 0
        return fired

    def start(self) -> None:
        if self.is_running:
            return
        self._halt.clear()
        self._worker = threading.Thread(
            target=self._loop, name="mass-action-scheduler", daemon=True,
        )
        self._worker.start()
        logger.info("scheduler_started", extra={"tick_interval": self._interval})

    def stop(self, timeout: float = 30.0) -> None:
        """Ask the loop to exit and wait up to ``timeout`` seconds for it."""
        self._halt.set()
        if self.is_running:
            self._worker.join(timeout)
        logger.info("scheduler_stopped")

    def _loop(self) -> None:
        while not self._halt.is_set():
            self.tick()
            self._halt.wait(self._interval)

    def _run_pass(self, session: Session) -> int:
        as_of = self._clock.now()
        store = ConfigurationStore(session)
        dispatcher = self._dispatcher_factory(session)

        fired = 0
        for config in store.list_active():
            if self._halt.is_set():
                break
            if should_fire(config, as_of) and self._fire(config, as_of, store, dispatcher):
                fired += 1
        return fired

    def _fire(
        self,
        config: MassActionConfig,
        as_of: datetime,
        store: ConfigurationStore,
        dispatcher: JobDispatcher,
    ) -> bool:
        identity = {"config_id": str(config.config_id), "config_name": config.name}
        try:
            handle = dispatcher.enqueue(config.config_id)
        except Exception:
            logger.exception("schedule_dispatch_failed", extra=identity)
            return False
        if handle is None:
            # Deactivated or deleted since list_active(); nothing was submitted.
            logger.info("schedule_skipped", extra=identity)
            return False

        next_run_at = compute_next_run(
            config.schedule_frequency, as_of, config.schedule_cron,
        )
        store.record_schedule(config.config_id, last_run_at=as_of, next_run_at=next_run_at)

        logger.info(
            "schedule_fired",
            extra={
                **identity,
                "job_id": handle.job_id,
                "next_run_at": next_run_at.isoformat() if next_run_at else None,
            },
        )
        return True
