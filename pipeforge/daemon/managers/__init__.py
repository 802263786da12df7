"""Job managers for the pipeline daemon.

Each module schedules work on the ``ExecutionQueue`` and reports progress
through a ``ServerSentEmitter``.  Managers raise domain exceptions
(``LookupError``, ``ValueError`` and those in ``pipeforge.daemon.errors``),
never HTTP exceptions -- that translation is the router's responsibility.
"""
