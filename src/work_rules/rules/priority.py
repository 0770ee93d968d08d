"""
Priority rules as pure functions.

These functions operate on rule data without being methods on the models.
No side effects, no clock, no randomness: the same inputs always give the
same priority.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..state.schema import RangeRule, RuleSet

from ..state.schema import DISABLED_PRIORITY


def find_matching_rule(skill: int, rule_set: "RuleSet") -> "RangeRule | None":
    """
    Find the first rule whose range contains the skill level.

    Args:
        skill: The entity's level in the category's skill
        rule_set: Rules in their maintained (ascending min_skill) order

    Returns:
        The first matching rule, or None if the skill falls in a gap
    """
    for rule in rule_set.rules:
        if rule.matches(skill):
            return rule
    return None


def evaluate_priority(disabled: bool, skill: int, rule_set: "RuleSet") -> int:
    """
    Compute the priority an entity should have for one category.

    Fail-closed: a disabled category, a skill outside every range, and an
    empty rule set all yield DISABLED_PRIORITY (0).

    Args:
        disabled: Whether the host has disabled this work for the entity
        skill: The entity's level in the category's skill
        rule_set: Rules for the category

    Returns:
        Priority 1-4 from the first matching rule, else 0
    """
    if disabled:
        return DISABLED_PRIORITY

    rule = find_matching_rule(skill, rule_set)
    if rule is None:
        return DISABLED_PRIORITY
    return rule.priority


def coverage_gaps(rule_set: "RuleSet", low: int = 0, high: int = 20) -> list[tuple[int, int]]:
    """
    List skill ranges not covered by any rule.

    Skills in a gap evaluate to disabled; editors show these so the
    fail-closed behavior is not a surprise.

    Returns:
        Inclusive (start, end) ranges, in ascending order
    """
    gaps = []
    start = None
    for skill in range(low, high + 1):
        covered = find_matching_rule(skill, rule_set) is not None
        if not covered and start is None:
            start = skill
        elif covered and start is not None:
            gaps.append((start, skill - 1))
            start = None
    if start is not None:
        gaps.append((start, high))
    return gaps
