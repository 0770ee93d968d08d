"""Pure rule evaluation."""

from .priority import coverage_gaps, evaluate_priority, find_matching_rule

__all__ = [
    "coverage_gaps",
    "evaluate_priority",
    "find_matching_rule",
]
