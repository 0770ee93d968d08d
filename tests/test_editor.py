"""Tests for editor operations."""

from work_rules.interface import editor
from work_rules.state import EventType, get_event_bus


class TestQueries:
    """Test read-only operations."""

    def test_list_categories(self, manager, rulebook):
        rulebook.rules.get("Mining").add_default()
        rows = editor.list_categories(manager)
        by_key = {row["key"]: row for row in rows}

        assert by_key["Mining"]["rule_count"] == 1
        assert by_key["Cooking"]["rule_count"] == 0
        assert "Patient" not in by_key

    def test_list_categories_does_not_insert(self, manager, rulebook):
        editor.list_categories(manager)
        assert rulebook.rules.categories() == []

    def test_show_rules_with_gaps(self, manager, rulebook):
        editor.add_rule(manager, "Mining", 0, 5, 4)
        result = editor.show_rules(manager, "mine")

        assert result.success
        assert result.data["category"] == "Mining"
        assert result.data["rules"][0]["index"] == 1
        assert result.data["gaps"] == [(6, 20)]

    def test_show_unknown(self, manager, rulebook):
        assert not editor.show_rules(manager, "Spelunking").success

    def test_show_unconfigurable(self, manager, rulebook):
        assert not editor.show_rules(manager, "Patient").success

    def test_needs_rulebook(self, manager):
        result = editor.add_rule(manager, "Mining")
        assert not result.success
        assert "No rule book" in result.message


class TestMutations:
    """Test rule edits."""

    def test_add_default(self, manager, rulebook):
        result = editor.add_rule(manager, "Mining")
        assert result.success
        assert rulebook.rules.get("Mining").rules[0].as_tuple() == (0, 5, 3)

    def test_add_clamps(self, manager, rulebook):
        editor.add_rule(manager, "Mining", 15, 5, 9)
        assert rulebook.rules.get("Mining").rules[0].as_tuple() == (5, 5, 4)

    def test_update_by_index(self, manager, rulebook):
        editor.add_rule(manager, "Mining", 0, 5, 4)
        editor.add_rule(manager, "Mining", 6, 20, 2)

        result = editor.update_rule(manager, "Mining", "1", min_skill=12, max_skill=20)

        assert result.success
        rules = rulebook.rules.get("Mining").rules
        assert [r.as_tuple() for r in rules] == [(6, 20, 2), (12, 20, 4)]

    def test_update_by_id(self, manager, rulebook):
        rule_id = editor.add_rule(manager, "Mining").data["rule"]["id"]
        editor.update_rule(manager, "Mining", rule_id, priority=1)
        assert rulebook.rules.get("Mining").rules[0].priority == 1

    def test_update_missing_rule(self, manager, rulebook):
        assert not editor.update_rule(manager, "Mining", "3", priority=1).success

    def test_delete(self, manager, rulebook):
        editor.add_rule(manager, "Mining")
        assert editor.delete_rule(manager, "Mining", "1").success
        assert rulebook.rules.get("Mining").is_empty

    def test_clear(self, manager, rulebook):
        editor.add_rule(manager, "Mining")
        editor.add_rule(manager, "Mining")
        result = editor.clear_category(manager, "Mining")
        assert result.data["removed"] == 2
        assert not rulebook.rules.has_any_rules()

    def test_events(self, manager, rulebook):
        editor.add_rule(manager, "Mining")
        editor.update_rule(manager, "Mining", "1", priority=2)
        editor.delete_rule(manager, "Mining", "1")
        editor.clear_category(manager, "Mining")

        types = [e.type for e in get_event_bus().get_history()][-4:]
        assert types == [
            EventType.RULE_ADDED,
            EventType.RULE_UPDATED,
            EventType.RULE_REMOVED,
            EventType.CATEGORY_CLEARED,
        ]


class TestDryRun:
    """Test previews."""

    def test_preview_does_not_write(self, manager, rulebook, colony):
        editor.add_rule(manager, "Mining", 0, 20, 1)

        result = editor.dry_run(manager, colony, colony)

        assert len(result.data["changes"]) == 3
        assert colony.get("ada").priorities == {}
        assert get_event_bus().get_history(EventType.PRIORITY_CHANGED) == []

    def test_preview_without_rules(self, manager, rulebook, colony):
        result = editor.dry_run(manager, colony, colony)
        assert result.success
        assert result.data["changes"] == []
