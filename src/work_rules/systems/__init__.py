"""
Engine systems.

The reconciliation loop applies the current rule book to the host; the
scheduler and hooks decide when it runs.
"""

from .scheduler import IntervalScheduler, DEFAULT_TICK_INTERVAL
from .reconciliation import (
    ReconciliationLoop,
    PassResult,
    PassStatus,
    PriorityChange,
    MissingCollaboratorError,
)
from .hooks import run_after, attach_after, detach_after

__all__ = [
    "IntervalScheduler",
    "DEFAULT_TICK_INTERVAL",
    "ReconciliationLoop",
    "PassResult",
    "PassStatus",
    "PriorityChange",
    "MissingCollaboratorError",
    # Post-assignment trigger
    "run_after",
    "attach_after",
    "detach_after",
]
