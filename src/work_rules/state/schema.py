"""
Pydantic models for work priority rules.

A rule book maps work categories to ordered skill-range rules.
Designed to serialize to JSON keyed by stable category identifiers.
"""

from datetime import datetime
from typing import Any, Callable
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator


# -----------------------------------------------------------------------------
# Scales
# -----------------------------------------------------------------------------

SKILL_MIN = 0
SKILL_MAX = 20

# 1 is the most urgent active priority, 4 the least
PRIORITY_HIGHEST = 1
PRIORITY_LOWEST = 4

# Reserved "do not work" value. Never stored inside a rule.
DISABLED_PRIORITY = 0

DEFAULT_PRIORITY = 3

# Editor default for a fresh rule: skill 0-5, lowest-but-one priority
DEFAULT_RULE = (0, 5, PRIORITY_LOWEST - 1)

SCHEMA_VERSION = "1.0.0"


# Resolves a persisted category key to a live category, or None if gone
CategoryResolver = Callable[[str], Any]


def generate_id() -> str:
    return str(uuid4())[:8]


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


# -----------------------------------------------------------------------------
# Rules
# -----------------------------------------------------------------------------

class RangeRule(BaseModel):
    """
    A skill range mapped to a work priority.

    Bounds are inclusive on both ends. Out-of-scale values are clamped
    rather than rejected, and an inverted range is repaired by lowering
    min_skill to max_skill.

    Edit through the owning RuleSet.update so the rule is re-clamped and
    the set re-sorted; plain attribute assignment is not checked.
    """
    id: str = Field(default_factory=generate_id)
    min_skill: int = SKILL_MIN
    max_skill: int = SKILL_MAX
    priority: int = DEFAULT_PRIORITY

    @model_validator(mode="after")
    def _apply_bounds(self) -> "RangeRule":
        self.normalize()
        return self

    def normalize(self) -> bool:
        """Clamp all fields into range. Returns True if anything changed."""
        before = (self.min_skill, self.max_skill, self.priority)

        self.min_skill = clamp(self.min_skill, SKILL_MIN, SKILL_MAX)
        self.max_skill = clamp(self.max_skill, SKILL_MIN, SKILL_MAX)
        self.priority = clamp(self.priority, PRIORITY_HIGHEST, PRIORITY_LOWEST)
        if self.min_skill > self.max_skill:
            self.min_skill = self.max_skill

        return before != (self.min_skill, self.max_skill, self.priority)

    def matches(self, skill: int) -> bool:
        """Check if a skill level falls inside this range."""
        return self.min_skill <= skill <= self.max_skill

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.min_skill, self.max_skill, self.priority)

    def __str__(self) -> str:
        return f"{self.min_skill}-{self.max_skill} -> P{self.priority}"


class RuleSet(BaseModel):
    """
    Ordered rules for one work category.

    Always sorted ascending by min_skill (stable, so ties keep insertion
    order). Evaluation is first-match, so this order decides overlaps.
    An empty set means "no override" for the category.
    """
    rules: list[RangeRule] = Field(default_factory=list)

    @model_validator(mode="after")
    def _apply_order(self) -> "RuleSet":
        self._resort()
        return self

    def _resort(self) -> None:
        self.rules.sort(key=lambda rule: rule.min_skill)

    def __len__(self) -> int:
        return len(self.rules)

    @property
    def is_empty(self) -> bool:
        return not self.rules

    def get(self, rule_id: str) -> RangeRule | None:
        """Find a rule by ID."""
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None

    def add(self, rule: RangeRule) -> RangeRule:
        """Append a rule and restore ordering."""
        self.rules.append(rule)
        self._resort()
        return rule

    def add_default(self) -> RangeRule:
        """Add a rule with editor defaults."""
        min_skill, max_skill, priority = DEFAULT_RULE
        return self.add(RangeRule(min_skill=min_skill, max_skill=max_skill, priority=priority))

    def remove(self, rule: RangeRule) -> bool:
        """
        Remove a rule by identity.

        Rules with equal fields are distinct entries; only this exact
        object is removed. Remaining order is already valid.
        """
        for i, existing in enumerate(self.rules):
            if existing is rule:
                del self.rules[i]
                return True
        return False

    def remove_by_id(self, rule_id: str) -> RangeRule | None:
        """Remove a rule by ID. Returns the removed rule."""
        rule = self.get(rule_id)
        if rule is not None:
            self.remove(rule)
        return rule

    def update(
        self,
        rule: RangeRule,
        min_skill: int | None = None,
        max_skill: int | None = None,
        priority: int | None = None,
    ) -> RangeRule:
        """
        Edit a rule in this set, then re-clamp and re-sort.

        All given fields are applied before clamping, so moving a range
        upward in one call (e.g. 0-5 to 8-10) does not get squashed.

        Raises:
            ValueError: rule does not belong to this set
        """
        if not any(existing is rule for existing in self.rules):
            raise ValueError(f"Rule {rule.id} is not part of this rule set")

        if min_skill is not None:
            rule.min_skill = min_skill
        if max_skill is not None:
            rule.max_skill = max_skill
        if priority is not None:
            rule.priority = priority
        rule.normalize()
        self._resort()
        return rule

    def clear(self) -> int:
        """Remove all rules. Returns the number removed."""
        count = len(self.rules)
        self.rules.clear()
        return count

    def to_record(self) -> list[dict]:
        return [rule.model_dump() for rule in self.rules]


class RuleStore(BaseModel):
    """
    Category key -> RuleSet.

    Keys are stable category identifiers (e.g. "Mining"), never list
    indices, so they survive reordering of the category catalog.
    """
    rule_sets: dict[str, RuleSet] = Field(default_factory=dict)

    def get(self, category: str) -> RuleSet:
        """
        Get the rule set for a category, creating it if missing.

        Side effect: the first call for a category inserts an empty
        RuleSet, so editors always get a mutable handle. Use peek() for a
        read that never inserts.
        """
        rule_set = self.rule_sets.get(category)
        if rule_set is None:
            rule_set = RuleSet()
            self.rule_sets[category] = rule_set
        return rule_set

    def peek(self, category: str) -> RuleSet | None:
        """Get the rule set for a category without inserting."""
        return self.rule_sets.get(category)

    def __contains__(self, category: str) -> bool:
        return category in self.rule_sets

    def categories(self) -> list[str]:
        return list(self.rule_sets)

    def has_any_rules(self) -> bool:
        """True if at least one category has a non-empty rule set."""
        return any(not rule_set.is_empty for rule_set in self.rule_sets.values())

    def active_items(self) -> list[tuple[str, RuleSet]]:
        """Categories with at least one rule, in store order."""
        return [
            (category, rule_set)
            for category, rule_set in self.rule_sets.items()
            if not rule_set.is_empty
        ]

    def rule_count(self) -> int:
        return sum(len(rule_set) for rule_set in self.rule_sets.values())

    def remove_category(self, category: str) -> bool:
        """Drop a category and all of its rules."""
        if category in self.rule_sets:
            del self.rule_sets[category]
            return True
        return False

    def to_record(self) -> dict[str, list[dict]]:
        """Persistable form: category key -> list of rule dicts."""
        return {
            category: rule_set.to_record()
            for category, rule_set in self.rule_sets.items()
        }

    @classmethod
    def load(cls, raw: Any, resolve: CategoryResolver, report=None) -> "RuleStore":
        """
        Build a store from a persisted record, normalizing as it goes.

        See loader.load_rule_store for the normalization steps. Never
        raises on bad data.
        """
        from .loader import load_rule_store

        return load_rule_store(raw, resolve, report)


# -----------------------------------------------------------------------------
# Rule book (root persisted model)
# -----------------------------------------------------------------------------

class RuleBookMeta(BaseModel):
    """Rule book metadata."""
    id: str = Field(default_factory=generate_id)
    name: str = "Unnamed"
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class RuleBook(BaseModel):
    """
    Complete rule state for one game session (save).

    This is the root record that gets persisted. One rule book is owned by
    one session at a time; sessions never share rule books.
    """
    schema_version: str = SCHEMA_VERSION
    saved_at: datetime = Field(default_factory=datetime.now)

    meta: RuleBookMeta = Field(default_factory=RuleBookMeta)
    rules: RuleStore = Field(default_factory=RuleStore)

    def save_checkpoint(self) -> None:
        """Update timestamps before save."""
        self.saved_at = datetime.now()
        self.meta.updated_at = datetime.now()

    def to_record(self) -> dict:
        """JSON-ready record."""
        return {
            "schema_version": self.schema_version,
            "saved_at": self.saved_at.isoformat(),
            "meta": self.meta.model_dump(mode="json"),
            "rules": self.rules.to_record(),
        }
