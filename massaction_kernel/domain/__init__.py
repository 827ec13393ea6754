"""
Pure kernel domain helpers.

Nothing here touches the database or performs I/O, except
``SystemClock``, the one sanctioned boundary for wall-clock time.
"""

from massaction_kernel.domain.clock import Clock, DeterministicClock, SystemClock

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
]
