"""
massaction_batch.services -- Stores, resolver, dispatcher, runner,
outcome recorder and scheduler.
"""

from massaction_batch.services.dispatcher import JobDispatcher
from massaction_batch.services.outcome_recorder import (
    JobMetadataFetcher,
    OutcomeRecorder,
    RecorderHooks,
)
from massaction_batch.services.resolver import SourceResolver
from massaction_batch.services.runner import InProcessBatchRunner
from massaction_batch.services.scheduler import MassActionScheduler
from massaction_batch.services.stores import (
    ConfigurationStore,
    JobMetadataService,
    LogStore,
)

__all__ = [
    "ConfigurationStore",
    "InProcessBatchRunner",
    "JobDispatcher",
    "JobMetadataFetcher",
    "JobMetadataService",
    "LogStore",
    "MassActionScheduler",
    "OutcomeRecorder",
    "RecorderHooks",
    "SourceResolver",
]
