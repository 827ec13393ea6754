"""
massaction_batch -- Mass action dispatch, execution and outcome logging.

Resolves a configuration to one of four data source adapters, submits the
row stream to a chunking batch runner, and records job outcomes as log
entries plus last-run fields on the configuration.

Architecture:
    massaction_batch/ depends on massaction_kernel only.  massaction_config
    depends on massaction_batch.models to seed configurations.

Invariants:
    - Configuration errors surface from ``JobDispatcher.enqueue``; nothing
      raised while a job runs reaches the caller or aborts the job.
    - Job ids are compared by their canonical 15-character key everywhere.
    - Clock injection (no datetime.now() calls outside SystemClock).
"""
