"""
Typed Exception Hierarchy for the Mass Action Scheduler.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from MassActionError:

    MassActionError (base)
    |
    +-- ConfigurationError
    |   +-- UnsupportedSourceTypeError
    |   +-- UnresolvedAdapterError
    |   +-- ConfigurationNotFoundError
    |   +-- InvalidConfigurationError
    |
    +-- SourceError
    |   +-- AdapterExhaustedError
    |   +-- SavedSourceNotFoundError
    |
    +-- JobError
    |   +-- JobNotFoundError
    |   +-- InvalidBatchSizeError
    |
    +-- ActionError
    |   +-- ActionNotRegisteredError
    |
    +-- ScheduleError
        +-- InvalidCronExpressionError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Configuration   | UNSUPPORTED_SOURCE_TYPE     | source_type is not one of the four known
                | UNRESOLVED_ADAPTER          | Apex class name not in the registry
                | CONFIGURATION_NOT_FOUND     | Config id doesn't exist
                | INVALID_CONFIGURATION       | Config record is missing its source ref
----------------|-----------------------------|-----------------------------------------
Source          | ADAPTER_EXHAUSTED           | Adapter iterated a second time
                | SAVED_SOURCE_NOT_FOUND      | Report / saved filter id doesn't exist
----------------|-----------------------------|-----------------------------------------
Job             | JOB_NOT_FOUND               | Job id doesn't exist
                | INVALID_BATCH_SIZE          | Chunk size is not a positive integer
----------------|-----------------------------|-----------------------------------------
Action          | ACTION_NOT_REGISTERED       | target_action has no registered action
----------------|-----------------------------|-----------------------------------------
Schedule        | INVALID_CRON_EXPRESSION     | Cron string can't be parsed

===============================================================================
HANDLING PATTERNS
===============================================================================

Configuration errors are fatal to a dispatch attempt and propagate to the
caller of ``JobDispatcher.enqueue``:

    try:
        handle = dispatcher.enqueue(config_id)
    except UnresolvedAdapterError as e:
        notify_admin(f"Fix class reference {e.class_name} (tried {e.attempted})")

Everything raised while a job is executing is caught by the runner,
converted into a log entry by the outcome recorder, and swallowed.
"""


class MassActionError(Exception):
    """
    Base exception for all mass action errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "MASS_ACTION_ERROR"


# Configuration-related exceptions


class ConfigurationError(MassActionError):
    """Base exception for configuration errors (never retried)."""

    code: str = "CONFIGURATION_ERROR"


class UnsupportedSourceTypeError(ConfigurationError):
    """Configuration declares a source type outside the supported set."""

    code: str = "UNSUPPORTED_SOURCE_TYPE"

    def __init__(self, source_type: str, supported: tuple[str, ...] = ()):
        self.source_type = source_type
        self.supported = supported
        message = f"Unsupported source type: {source_type!r}"
        if supported:
            message += f". Supported: {', '.join(supported)}"
        super().__init__(message)


class UnresolvedAdapterError(ConfigurationError):
    """No adapter factory is registered under the configured class name."""

    code: str = "UNRESOLVED_ADAPTER"

    def __init__(self, class_name: str, attempted: tuple[str, ...] = ()):
        self.class_name = class_name
        self.attempted = attempted
        super().__init__(
            f"No adapter registered for {class_name!r} "
            f"(tried: {', '.join(attempted) or 'nothing'})"
        )


class ConfigurationNotFoundError(ConfigurationError):
    """Configuration with given ID was not found."""

    code: str = "CONFIGURATION_NOT_FOUND"

    def __init__(self, config_id: str):
        self.config_id = config_id
        super().__init__(f"Mass action configuration not found: {config_id}")


class InvalidConfigurationError(ConfigurationError):
    """Configuration record is structurally unusable."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, config_id: str, reason: str):
        self.config_id = config_id
        self.reason = reason
        super().__init__(f"Invalid configuration {config_id}: {reason}")


# Source-related exceptions


class SourceError(MassActionError):
    """Base exception for data source errors."""

    code: str = "SOURCE_ERROR"


class AdapterExhaustedError(SourceError):
    """A single-use source adapter was iterated more than once."""

    code: str = "ADAPTER_EXHAUSTED"

    def __init__(self, source_type: str):
        self.source_type = source_type
        super().__init__(
            f"{source_type} source adapter has already been consumed"
        )


class SavedSourceNotFoundError(SourceError):
    """A saved report or saved filter referenced by a configuration is missing."""

    code: str = "SAVED_SOURCE_NOT_FOUND"

    def __init__(self, kind: str, source_id: str):
        self.kind = kind
        self.source_id = source_id
        super().__init__(f"Saved {kind} not found: {source_id}")


# Job-related exceptions


class JobError(MassActionError):
    """Base exception for batch job errors."""

    code: str = "JOB_ERROR"


class JobNotFoundError(JobError):
    """Batch job with given ID was not found."""

    code: str = "JOB_NOT_FOUND"

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Batch job not found: {job_id}")


class InvalidBatchSizeError(JobError):
    """Chunk size handed to the runner is not a positive integer."""

    code: str = "INVALID_BATCH_SIZE"

    def __init__(self, batch_size: object):
        self.batch_size = batch_size
        super().__init__(f"Batch size must be a positive integer, got {batch_size!r}")


# Action-related exceptions


class ActionError(MassActionError):
    """Base exception for target action errors."""

    code: str = "ACTION_ERROR"


class ActionNotRegisteredError(ActionError):
    """No target action is registered under the given name."""

    code: str = "ACTION_NOT_REGISTERED"

    def __init__(self, action_name: str, available: tuple[str, ...] = ()):
        self.action_name = action_name
        self.available = available
        super().__init__(
            f"No target action registered for {action_name!r}. "
            f"Available: {list(available)}"
        )


# Schedule-related exceptions


class ScheduleError(MassActionError):
    """Base exception for schedule errors."""

    code: str = "SCHEDULE_ERROR"


class InvalidCronExpressionError(ScheduleError):
    """Cron expression could not be parsed."""

    code: str = "INVALID_CRON_EXPRESSION"

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        self.reason = reason
        super().__init__(f"Invalid cron expression {expression!r}: {reason}")
