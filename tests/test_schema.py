"""Tests for rule models: clamping, ordering and the get-or-insert store."""

import pytest
from work_rules.state.schema import (
    RangeRule,
    RuleSet,
    RuleStore,
    RuleBook,
    RuleBookMeta,
    DEFAULT_RULE,
    SCHEMA_VERSION,
)


class TestRangeRule:
    """Test RangeRule clamping and matching."""

    def test_defaults(self):
        """A bare rule covers the whole scale at priority 3."""
        rule = RangeRule()
        assert rule.as_tuple() == (0, 20, 3)
        assert len(rule.id) == 8

    def test_clamps_out_of_range_values(self):
        """Values outside the scales are clamped, not rejected."""
        rule = RangeRule(min_skill=-5, max_skill=99, priority=9)
        assert rule.as_tuple() == (0, 20, 4)

    def test_priority_never_zero(self):
        """0 is reserved for disabled; a rule's priority starts at 1."""
        rule = RangeRule(priority=0)
        assert rule.priority == 1

    def test_inverted_range_lowers_min(self):
        """min > max is repaired by lowering min to max."""
        rule = RangeRule(min_skill=15, max_skill=5, priority=2)
        assert rule.as_tuple() == (5, 5, 2)

    def test_bounds_inclusive(self):
        """Both ends of the range match."""
        rule = RangeRule(min_skill=6, max_skill=10)
        assert rule.matches(6)
        assert rule.matches(10)
        assert not rule.matches(5)
        assert not rule.matches(11)

    def test_update_reapplies_bounds(self):
        """Edits through the owning set keep the invariants."""
        rule = RangeRule(min_skill=2, max_skill=8)
        rule_set = RuleSet(rules=[rule])
        rule_set.update(rule, max_skill=1)
        assert rule.as_tuple()[:2] == (1, 1)
        rule_set.update(rule, priority=-3)
        assert rule.priority == 1
        rule_set.update(rule, min_skill=50)
        assert rule.min_skill == rule.max_skill == 1


    def test_normalize_reports_change(self):
        """normalize() says whether anything moved."""
        rule = RangeRule(min_skill=3, max_skill=9)
        assert rule.normalize() is False
        rule.max_skill = 40
        assert rule.normalize() is True
        assert rule.max_skill == 20

    def test_str(self):
        assert str(RangeRule(min_skill=0, max_skill=5, priority=3)) == "0-5 -> P3"


class TestRuleSet:
    """Test RuleSet ordering and mutation."""

    def test_sorted_on_construction(self):
        """Rules are ordered by min_skill."""
        rule_set = RuleSet(rules=[
            RangeRule(min_skill=10, max_skill=20),
            RangeRule(min_skill=0, max_skill=5),
        ])
        assert [r.min_skill for r in rule_set.rules] == [0, 10]

    def test_add_keeps_order(self):
        """Adding re-sorts."""
        rule_set = RuleSet()
        rule_set.add(RangeRule(min_skill=12, max_skill=20))
        rule_set.add(RangeRule(min_skill=3, max_skill=8))
        assert [r.min_skill for r in rule_set.rules] == [3, 12]

    def test_sort_is_stable(self):
        """Rules with equal min_skill keep insertion order."""
        first = RangeRule(min_skill=5, max_skill=10, priority=1)
        second = RangeRule(min_skill=5, max_skill=20, priority=4)
        rule_set = RuleSet()
        rule_set.add(first)
        rule_set.add(RangeRule(min_skill=0, max_skill=4))
        rule_set.add(second)
        assert rule_set.rules[1] is first
        assert rule_set.rules[2] is second

    def test_add_default(self):
        """Editor default rule."""
        rule = RuleSet().add_default()
        assert rule.as_tuple() == DEFAULT_RULE

    def test_remove_by_identity(self):
        """Only the exact rule object is removed, not an equal one."""
        a = RangeRule(id="same", min_skill=0, max_skill=5, priority=3)
        b = RangeRule(id="same", min_skill=0, max_skill=5, priority=3)
        rule_set = RuleSet(rules=[a, b])

        assert rule_set.remove(b) is True
        assert len(rule_set) == 1
        assert rule_set.rules[0] is a

    def test_remove_missing(self):
        rule_set = RuleSet(rules=[RangeRule()])
        assert rule_set.remove(RangeRule()) is False
        assert len(rule_set) == 1

    def test_remove_by_id(self):
        rule = RangeRule(min_skill=3, max_skill=4)
        rule_set = RuleSet(rules=[RangeRule(), rule])
        assert rule_set.remove_by_id(rule.id) is rule
        assert rule_set.remove_by_id("nope") is None

    def test_update_resorts(self):
        """Raising a rule's min moves it after the others."""
        low = RangeRule(min_skill=0, max_skill=5)
        high = RangeRule(min_skill=6, max_skill=10)
        rule_set = RuleSet(rules=[low, high])

        rule_set.update(low, min_skill=11, max_skill=20)

        assert rule_set.rules == [high, low]
        assert low.as_tuple()[:2] == (11, 20)

    def test_update_applies_all_fields_before_clamping(self):
        """Moving a range upward in one call is not squashed."""
        rule = RangeRule(min_skill=0, max_skill=5)
        rule_set = RuleSet(rules=[rule])
        rule_set.update(rule, min_skill=8, max_skill=10)
        assert (rule.min_skill, rule.max_skill) == (8, 10)

    def test_update_clamps(self):
        rule = RangeRule()
        rule_set = RuleSet(rules=[rule])
        rule_set.update(rule, priority=7)
        assert rule.priority == 4

    def test_update_foreign_rule_raises(self):
        """Updating a rule from another set is an error."""
        with pytest.raises(ValueError):
            RuleSet().update(RangeRule(), priority=2)

    def test_clear(self):
        rule_set = RuleSet(rules=[RangeRule(), RangeRule()])
        assert rule_set.clear() == 2
        assert rule_set.is_empty


class TestRuleStore:
    """Test the category -> RuleSet mapping."""

    def test_get_inserts(self):
        """get() creates an empty set for an unseen category."""
        store = RuleStore()
        rule_set = store.get("Mining")
        assert rule_set.is_empty
        assert "Mining" in store
        assert store.get("Mining") is rule_set

    def test_peek_does_not_insert(self):
        store = RuleStore()
        assert store.peek("Mining") is None
        assert "Mining" not in store

    def test_has_any_rules(self):
        """Empty sets do not count as rules."""
        store = RuleStore()
        store.get("Mining")
        assert store.has_any_rules() is False
        store.get("Cooking").add_default()
        assert store.has_any_rules() is True

    def test_active_items_skip_empty(self):
        """Only non-empty sets are active, in insertion order."""
        store = RuleStore()
        store.get("Mining").add_default()
        store.get("Hauling")
        store.get("Cooking").add_default()
        assert [key for key, _ in store.active_items()] == ["Mining", "Cooking"]

    def test_rule_count_and_remove_category(self):
        store = RuleStore()
        store.get("Mining").add_default()
        store.get("Mining").add_default()
        store.get("Cooking").add_default()
        assert store.rule_count() == 3
        assert store.remove_category("Mining") is True
        assert store.remove_category("Mining") is False
        assert store.categories() == ["Cooking"]

    def test_to_record(self):
        """Keyed by category key, rules as plain dicts."""
        store = RuleStore()
        rule = store.get("Mining").add(RangeRule(min_skill=2, max_skill=9, priority=1))
        assert store.to_record() == {
            "Mining": [{"id": rule.id, "min_skill": 2, "max_skill": 9, "priority": 1}],
        }


class TestRuleBook:
    """Test the persisted root record."""

    def test_record_layout(self):
        book = RuleBook(meta=RuleBookMeta(name="Alpha"))
        book.rules.get("Mining").add_default()
        record = book.to_record()

        assert record["schema_version"] == SCHEMA_VERSION
        assert record["meta"]["name"] == "Alpha"
        assert isinstance(record["meta"]["created_at"], str)
        assert list(record["rules"]) == ["Mining"]

    def test_save_checkpoint_updates_timestamps(self):
        book = RuleBook()
        before = book.meta.updated_at
        book.save_checkpoint()
        assert book.meta.updated_at >= before
