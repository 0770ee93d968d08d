"""
Load-time normalization for persisted rule books.

Saved rules can be stale (a category whose content is no longer installed)
or hand-edited. Loading never fails on bad data: entries are dropped or
repaired, every repair is logged as a warning and collected in a LoadReport.

Normalization steps, always run after deserialization:
1. Drop categories whose key no longer resolves
2. Replace a null rule list with an empty one
3. Drop null (or unreadable) rule entries
4. Clamp each rule into range, lowering min_skill if it exceeds max_skill
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError

from .schema import (
    DEFAULT_PRIORITY,
    SCHEMA_VERSION,
    SKILL_MAX,
    SKILL_MIN,
    CategoryResolver,
    RangeRule,
    RuleBook,
    RuleBookMeta,
    RuleSet,
    RuleStore,
)

logger = logging.getLogger(__name__)


# Earlier saves used these names
LEGACY_RULES_KEY = "workTypeRules"
LEGACY_FIELDS = {
    "minSkill": "min_skill",
    "maxSkill": "max_skill",
}


@dataclass
class LoadReport:
    """What load-time normalization had to fix."""
    issues: list[str] = field(default_factory=list)
    dropped_categories: list[str] = field(default_factory=list)
    dropped_rules: int = 0
    repaired_rules: int = 0

    @property
    def clean(self) -> bool:
        return not self.issues

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.issues.append(message)


class _StoredRule(BaseModel):
    """Rule fields as persisted, before clamping."""
    id: str | None = None
    min_skill: int = SKILL_MIN
    max_skill: int = SKILL_MAX
    priority: int = DEFAULT_PRIORITY


def _load_rule(category: str, entry: Any, report: LoadReport) -> RangeRule | None:
    if entry is None:
        report.dropped_rules += 1
        report.warn(f"Removed null rule from '{category}'")
        return None

    if not isinstance(entry, dict):
        report.dropped_rules += 1
        report.warn(f"Removed unreadable rule from '{category}': {entry!r}")
        return None

    data = {LEGACY_FIELDS.get(key, key): value for key, value in entry.items()}
    try:
        stored = _StoredRule.model_validate(data)
    except ValidationError as e:
        report.dropped_rules += 1
        report.warn(f"Removed invalid rule from '{category}': {e.error_count()} field error(s)")
        return None

    fields = {
        "min_skill": stored.min_skill,
        "max_skill": stored.max_skill,
        "priority": stored.priority,
    }
    if stored.id:
        fields["id"] = stored.id
    rule = RangeRule(**fields)

    if rule.as_tuple() != (stored.min_skill, stored.max_skill, stored.priority):
        report.repaired_rules += 1
        clamped_max = max(SKILL_MIN, min(SKILL_MAX, stored.max_skill))
        clamped_min = max(SKILL_MIN, min(SKILL_MAX, stored.min_skill))
        if clamped_min > clamped_max:
            report.warn(
                f"Rule in '{category}' had min_skill ({stored.min_skill}) > "
                f"max_skill ({stored.max_skill}) for priority {rule.priority}. "
                f"Lowered min_skill to {rule.min_skill}."
            )
        else:
            report.warn(
                f"Rule in '{category}' was out of range "
                f"({stored.min_skill}-{stored.max_skill}, P{stored.priority}); "
                f"clamped to {rule}"
            )
    return rule


def load_rule_store(
    raw: Any,
    resolve: CategoryResolver,
    report: LoadReport | None = None,
) -> RuleStore:
    """
    Build a RuleStore from a persisted category -> rule list record.

    Args:
        raw: Decoded record (normally a dict)
        resolve: Maps a category key to a live category, None if unknown
        report: Collects what was fixed (a fresh one is used if omitted)

    Returns:
        A store satisfying all post-load invariants
    """
    if report is None:
        report = LoadReport()

    store = RuleStore()

    if raw is None:
        report.warn("Rule dictionary was null after loading. Initialized as empty.")
        return store
    if not isinstance(raw, dict):
        report.warn(
            f"Rule dictionary had unexpected type {type(raw).__name__}. Initialized as empty."
        )
        return store

    for category, entries in raw.items():
        if not category or not isinstance(category, str) or resolve(category) is None:
            report.dropped_categories.append(str(category))
            report.warn(f"Dropped rules for unknown category '{category}'")
            continue

        if entries is None:
            report.warn(f"Rule list for '{category}' was null. Initialized as empty list.")
            store.rule_sets[category] = RuleSet()
            continue
        if not isinstance(entries, list):
            report.warn(f"Rule list for '{category}' was not a list. Initialized as empty list.")
            store.rule_sets[category] = RuleSet()
            continue

        rules = []
        for entry in entries:
            rule = _load_rule(category, entry, report)
            if rule is not None:
                rules.append(rule)
        store.rule_sets[category] = RuleSet(rules=rules)

    return store


def load_rulebook(
    raw: Any,
    resolve: CategoryResolver,
    report: LoadReport | None = None,
) -> RuleBook:
    """
    Build a RuleBook from a persisted record.

    Accepts both the current layout ("rules") and the legacy one
    ("workTypeRules"). Metadata problems fall back to defaults.
    """
    if report is None:
        report = LoadReport()

    if not isinstance(raw, dict):
        report.warn("Rule book record was not an object. Starting empty.")
        return RuleBook()

    meta_raw = raw.get("meta")
    meta = RuleBookMeta()
    if isinstance(meta_raw, dict):
        try:
            meta = RuleBookMeta.model_validate(meta_raw)
        except ValidationError:
            report.warn("Rule book metadata was invalid. Using defaults.")
            if isinstance(meta_raw.get("id"), str):
                meta.id = meta_raw["id"]
    else:
        report.warn("Rule book metadata was missing. Using defaults.")

    if "rules" in raw:
        rules_raw = raw["rules"]
    else:
        rules_raw = raw.get(LEGACY_RULES_KEY)

    stored_version = raw.get("schema_version")
    if stored_version and stored_version != SCHEMA_VERSION:
        logger.info(f"Migrating rule book {meta.id} from schema {stored_version} to {SCHEMA_VERSION}")

    return RuleBook(
        schema_version=SCHEMA_VERSION,
        meta=meta,
        rules=load_rule_store(rules_raw, resolve, report),
    )
