"""Tests for priority evaluation (pure functions)."""

from work_rules.rules.priority import (
    coverage_gaps,
    evaluate_priority,
    find_matching_rule,
)
from work_rules.state.schema import RangeRule, RuleSet


class TestEvaluatePriority:
    """Test first-match, fail-closed evaluation."""

    def test_middle_tier(self, tiered_rules):
        assert evaluate_priority(False, 7, tiered_rules) == 3

    def test_top_of_scale(self, tiered_rules):
        assert evaluate_priority(False, 20, tiered_rules) == 2

    def test_upper_bound_inclusive(self, tiered_rules):
        assert evaluate_priority(False, 5, tiered_rules) == 4

    def test_lower_bound_inclusive(self, tiered_rules):
        assert evaluate_priority(False, 0, tiered_rules) == 4
        assert evaluate_priority(False, 6, tiered_rules) == 3

    def test_gap_is_disabled(self):
        """A skill no rule covers gets no work."""
        rule_set = RuleSet(rules=[
            RangeRule(min_skill=0, max_skill=5, priority=4),
            RangeRule(min_skill=10, max_skill=15, priority=2),
        ])
        assert evaluate_priority(False, 7, rule_set) == 0
        assert evaluate_priority(False, 18, rule_set) == 0

    def test_disabled_overrides_rules(self, tiered_rules):
        for skill in (0, 7, 20):
            assert evaluate_priority(True, skill, tiered_rules) == 0

    def test_empty_set_is_disabled(self):
        assert evaluate_priority(False, 10, RuleSet()) == 0

    def test_first_match_wins_on_overlap(self):
        """Overlapping rules resolve to the one sorted first."""
        rule_set = RuleSet(rules=[
            RangeRule(min_skill=5, max_skill=20, priority=1),
            RangeRule(min_skill=0, max_skill=10, priority=4),
        ])
        # Sorted: (0-10, P4) then (5-20, P1)
        assert evaluate_priority(False, 7, rule_set) == 4
        assert evaluate_priority(False, 11, rule_set) == 1

    def test_edit_reorders_overlap(self):
        """Raising a rule's min past another hands the overlap to the other."""
        wide = RangeRule(min_skill=0, max_skill=20, priority=1)
        rule_set = RuleSet(rules=[wide, RangeRule(min_skill=5, max_skill=10, priority=2)])
        assert evaluate_priority(False, 9, rule_set) == 1

        rule_set.update(wide, min_skill=8)

        assert [r.min_skill for r in rule_set.rules] == [5, 8]
        assert evaluate_priority(False, 9, rule_set) == 2

    def test_deterministic(self, tiered_rules):
        results = {evaluate_priority(False, 9, tiered_rules) for _ in range(20)}
        assert results == {3}


class TestFindMatchingRule:
    """Test matched-rule lookup."""

    def test_returns_rule(self, tiered_rules):
        rule = find_matching_rule(12, tiered_rules)
        assert rule is tiered_rules.rules[2]

    def test_none_in_gap(self):
        rule_set = RuleSet(rules=[RangeRule(min_skill=0, max_skill=3)])
        assert find_matching_rule(4, rule_set) is None


class TestCoverageGaps:
    """Test uncovered-range reporting."""

    def test_full_coverage(self, tiered_rules):
        assert coverage_gaps(tiered_rules) == []

    def test_gaps_between_and_after(self):
        rule_set = RuleSet(rules=[
            RangeRule(min_skill=0, max_skill=5),
            RangeRule(min_skill=10, max_skill=15),
        ])
        assert coverage_gaps(rule_set) == [(6, 9), (16, 20)]

    def test_gap_before_first_rule(self):
        rule_set = RuleSet(rules=[RangeRule(min_skill=3, max_skill=20)])
        assert coverage_gaps(rule_set) == [(0, 2)]

    def test_empty_set_is_one_gap(self):
        assert coverage_gaps(RuleSet()) == [(0, 20)]
