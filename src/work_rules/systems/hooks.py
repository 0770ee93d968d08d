"""
Post-assignment trigger.

Whenever the host finishes its own priority assignment, rule overrides must
be applied right after so they win. These helpers wrap a host function (or
an instance method) so a reconciliation pass follows every call.
"""

import functools
import logging
from typing import Any, Callable

from .reconciliation import ReconciliationLoop

logger = logging.getLogger(__name__)


def _follow_with_pass(loop: ReconciliationLoop) -> None:
    rules = loop.manager.rules
    if rules is None or not rules.has_any_rules():
        return
    try:
        loop.run_now()
    except Exception:
        # Never break the host's own assignment
        logger.exception("Rule pass after host assignment failed")


def run_after(loop: ReconciliationLoop) -> Callable:
    """
    Decorator: run a rule pass after the wrapped host assignment returns.

    The wrapped function's return value and exceptions pass through
    unchanged; if it raises, no pass runs.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            result = func(*args, **kwargs)
            _follow_with_pass(loop)
            return result

        wrapper.__wrapped_by_rules__ = True
        return wrapper

    return decorator


def attach_after(host: Any, method_name: str, loop: ReconciliationLoop) -> Callable:
    """
    Patch a host instance so `method_name` is followed by a rule pass.

    Returns the original bound method so callers can restore it with
    detach_after().
    """
    original = getattr(host, method_name)
    if getattr(original, "__wrapped_by_rules__", False):
        logger.debug(f"{method_name} already followed by rule passes")
        return original.__wrapped__

    setattr(host, method_name, run_after(loop)(original))
    logger.debug(f"Rule passes attached after {type(host).__name__}.{method_name}")
    return original


def detach_after(host: Any, method_name: str) -> None:
    """Undo attach_after(). No-op if the method is not patched."""
    current = getattr(host, method_name, None)
    if current is None or not getattr(current, "__wrapped_by_rules__", False):
        return
    # Instance attribute shadows the class method; removing it restores it
    if method_name in vars(host):
        delattr(host, method_name)
    else:
        setattr(host, method_name, current.__wrapped__)
