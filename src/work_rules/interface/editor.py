"""
Rule editing operations shared by the CLI and the interactive shell.

Functions take the manager, mutate the current rule book through the
RuleStore/RuleSet API and return structured results. No Rich here;
presentation lives in renderer.py. Saving is left to the caller.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..host.protocols import EligibilityProvider, EntityAttributeSource
from ..rules.priority import coverage_gaps, evaluate_priority
from ..state.catalog import WorkCategory
from ..state.event_bus import EventType, get_event_bus
from ..state.schema import DEFAULT_RULE, RangeRule, RuleSet
from ..systems.reconciliation import PriorityChange

if TYPE_CHECKING:
    from ..state.manager import RuleBookManager


# =============================================================================
# Result Types
# =============================================================================

@dataclass
class CommandResult:
    """Base result for command operations."""
    success: bool
    message: str
    data: dict | None = None


def _no_rulebook() -> CommandResult:
    return CommandResult(success=False, message="No rule book loaded")


# =============================================================================
# Helpers
# =============================================================================

def _resolve_category(manager: "RuleBookManager", name: str) -> WorkCategory | None:
    category = manager.catalog.find(name)
    if category is None or not category.configurable:
        return None
    return category


def _find_rule(rule_set: RuleSet, ref: str) -> RangeRule | None:
    """Rule by 1-based position in the list, or by ID."""
    if ref.isdigit():
        idx = int(ref) - 1
        if 0 <= idx < len(rule_set):
            return rule_set.rules[idx]
    return rule_set.get(ref)


def _rule_rows(rule_set: RuleSet) -> list[dict]:
    return [
        {"index": i, **rule.model_dump()}
        for i, rule in enumerate(rule_set.rules, 1)
    ]


# =============================================================================
# Queries
# =============================================================================

def list_categories(manager: "RuleBookManager") -> list[dict]:
    """
    Configurable categories with their rule counts.

    Rebuilt from the catalog on every call, sorted by short label.
    """
    rules = manager.rules
    rows = []
    for category in manager.catalog.configurable():
        rule_set = rules.peek(category.key) if rules is not None else None
        rows.append({
            "key": category.key,
            "label": category.label,
            "label_short": category.label_short,
            "skill": category.primary_skill,
            "rule_count": len(rule_set) if rule_set is not None else 0,
        })
    return rows


def show_rules(manager: "RuleBookManager", category_name: str) -> CommandResult:
    """Rules for one category, plus the skill ranges no rule covers."""
    if manager.rules is None:
        return _no_rulebook()

    category = _resolve_category(manager, category_name)
    if category is None:
        return CommandResult(success=False, message=f"Unknown category: {category_name}")

    rule_set = manager.rules.peek(category.key) or RuleSet()
    return CommandResult(
        success=True,
        message=f"{len(rule_set)} rule(s) for {category.label}",
        data={
            "category": category.key,
            "label": category.label,
            "skill": category.primary_skill,
            "rules": _rule_rows(rule_set),
            "gaps": coverage_gaps(rule_set) if not rule_set.is_empty else [],
        },
    )


# =============================================================================
# Mutations
# =============================================================================

def add_rule(
    manager: "RuleBookManager",
    category_name: str,
    min_skill: int | None = None,
    max_skill: int | None = None,
    priority: int | None = None,
) -> CommandResult:
    """Add a rule; omitted fields take the editor defaults (0-5, P3)."""
    if manager.rules is None:
        return _no_rulebook()

    category = _resolve_category(manager, category_name)
    if category is None:
        return CommandResult(success=False, message=f"Unknown category: {category_name}")

    default_min, default_max, default_priority = DEFAULT_RULE
    rule = RangeRule(
        min_skill=default_min if min_skill is None else min_skill,
        max_skill=default_max if max_skill is None else max_skill,
        priority=default_priority if priority is None else priority,
    )
    manager.rules.get(category.key).add(rule)

    get_event_bus().emit(
        EventType.RULE_ADDED,
        session_id=manager.session_id,
        category=category.key,
        rule_id=rule.id,
    )
    return CommandResult(
        success=True,
        message=f"Added {rule} to {category.label}",
        data={"category": category.key, "rule": rule.model_dump()},
    )


def update_rule(
    manager: "RuleBookManager",
    category_name: str,
    rule_ref: str,
    min_skill: int | None = None,
    max_skill: int | None = None,
    priority: int | None = None,
) -> CommandResult:
    """Edit a rule by list position or ID. Values are clamped, never rejected."""
    if manager.rules is None:
        return _no_rulebook()

    category = _resolve_category(manager, category_name)
    if category is None:
        return CommandResult(success=False, message=f"Unknown category: {category_name}")

    rule_set = manager.rules.peek(category.key)
    rule = _find_rule(rule_set, rule_ref) if rule_set is not None else None
    if rule is None:
        return CommandResult(success=False, message=f"No rule {rule_ref} in {category.label}")

    before = str(rule)
    rule_set.update(rule, min_skill=min_skill, max_skill=max_skill, priority=priority)

    get_event_bus().emit(
        EventType.RULE_UPDATED,
        session_id=manager.session_id,
        category=category.key,
        rule_id=rule.id,
    )
    return CommandResult(
        success=True,
        message=f"Updated {before} to {rule} in {category.label}",
        data={"category": category.key, "rule": rule.model_dump()},
    )


def delete_rule(manager: "RuleBookManager", category_name: str, rule_ref: str) -> CommandResult:
    """Remove one rule by list position or ID."""
    if manager.rules is None:
        return _no_rulebook()

    category = _resolve_category(manager, category_name)
    if category is None:
        return CommandResult(success=False, message=f"Unknown category: {category_name}")

    rule_set = manager.rules.peek(category.key)
    rule = _find_rule(rule_set, rule_ref) if rule_set is not None else None
    if rule is None:
        return CommandResult(success=False, message=f"No rule {rule_ref} in {category.label}")

    rule_set.remove(rule)

    get_event_bus().emit(
        EventType.RULE_REMOVED,
        session_id=manager.session_id,
        category=category.key,
        rule_id=rule.id,
    )
    return CommandResult(
        success=True,
        message=f"Removed {rule} from {category.label}",
        data={"category": category.key, "rule": rule.model_dump()},
    )


def clear_category(manager: "RuleBookManager", category_name: str) -> CommandResult:
    """Remove every rule for a category. The category stops being overridden."""
    if manager.rules is None:
        return _no_rulebook()

    category = _resolve_category(manager, category_name)
    if category is None:
        return CommandResult(success=False, message=f"Unknown category: {category_name}")

    rule_set = manager.rules.peek(category.key)
    removed = rule_set.clear() if rule_set is not None else 0

    get_event_bus().emit(
        EventType.CATEGORY_CLEARED,
        session_id=manager.session_id,
        category=category.key,
        removed=removed,
    )
    return CommandResult(
        success=True,
        message=f"Cleared {removed} rule(s) from {category.label}",
        data={"category": category.key, "removed": removed},
    )


# =============================================================================
# Preview
# =============================================================================

def dry_run(
    manager: "RuleBookManager",
    eligibility: EligibilityProvider,
    attributes: EntityAttributeSource,
) -> CommandResult:
    """
    Compute what a pass would write, without writing.

    Same order and evaluation as a real pass; nothing is emitted.
    """
    rules = manager.rules
    if rules is None:
        return _no_rulebook()
    if not rules.has_any_rules():
        return CommandResult(success=True, message="No rules to apply", data={"changes": []})

    changes: list[PriorityChange] = []
    for entity in eligibility.list_eligible():
        for category, rule_set in rules.active_items():
            disabled = attributes.is_disabled(entity, category)
            skill = attributes.attribute_value(entity, category)
            target = evaluate_priority(disabled, skill, rule_set)
            current = attributes.current_priority(entity, category)
            if current != target:
                changes.append(PriorityChange(entity.id, category, current, target))

    return CommandResult(
        success=True,
        message=f"{len(changes)} priority change(s) pending",
        data={"changes": changes},
    )
