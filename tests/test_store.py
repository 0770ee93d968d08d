"""Tests for rule book storage backends."""

import json

import pytest
from work_rules.state.schema import RuleBook, RuleBookMeta
from work_rules.state.store import (
    JsonRuleBookStore,
    MemoryRuleBookStore,
    RuleBookStore,
)


@pytest.fixture
def book():
    book = RuleBook(meta=RuleBookMeta(id="abcd1234", name="Stored"))
    book.rules.get("Mining").add_default()
    return book


class TestJsonRuleBookStore:
    """Test file-based storage."""

    def test_is_a_store(self, tmp_path):
        assert isinstance(JsonRuleBookStore(tmp_path), RuleBookStore)

    def test_save_and_load(self, tmp_path, book):
        store = JsonRuleBookStore(tmp_path)
        store.save(book)

        raw = store.load_raw("abcd1234")
        assert raw["meta"]["name"] == "Stored"
        assert len(raw["rules"]["Mining"]) == 1

    def test_backup_on_second_save(self, tmp_path, book):
        store = JsonRuleBookStore(tmp_path)
        store.save(book)
        book.meta.name = "Renamed"
        store.save(book)

        backup = json.loads((tmp_path / "abcd1234.json.bak").read_text(encoding="utf-8"))
        assert backup["meta"]["name"] == "Stored"
        assert store.load_raw("abcd1234")["meta"]["name"] == "Renamed"

    def test_partial_id(self, tmp_path, book):
        store = JsonRuleBookStore(tmp_path)
        store.save(book)
        assert store.load_raw("abcd")["meta"]["id"] == "abcd1234"

    def test_missing_returns_none(self, tmp_path):
        assert JsonRuleBookStore(tmp_path).load_raw("nothing") is None

    def test_corrupt_file_returns_none(self, tmp_path):
        (tmp_path / "broken01.json").write_text("{not json", encoding="utf-8")
        store = JsonRuleBookStore(tmp_path)
        assert store.load_raw("broken01") is None
        assert store.list_all() == []

    def test_list_and_delete(self, tmp_path, book):
        store = JsonRuleBookStore(tmp_path)
        store.save(book)

        listed = store.list_all()
        assert listed[0]["id"] == "abcd1234"
        assert listed[0]["categories"] == 1
        assert listed[0]["rule_count"] == 1

        assert store.exists("abcd1234")
        assert store.delete("abcd1234") is True
        assert store.delete("abcd1234") is False
        assert not store.exists("abcd1234")

    def test_config_file_not_listed(self, tmp_path, book):
        (tmp_path / ".work_rules_config.json").write_text("{}", encoding="utf-8")
        store = JsonRuleBookStore(tmp_path)
        store.save(book)
        assert [b["id"] for b in store.list_all()] == ["abcd1234"]


class TestMemoryRuleBookStore:
    """Test in-memory storage."""

    def test_is_a_store(self):
        assert isinstance(MemoryRuleBookStore(), RuleBookStore)

    def test_records_are_copies(self, book):
        """Mutating a loaded record does not change what is stored."""
        store = MemoryRuleBookStore()
        store.save(book)
        raw = store.load_raw("abcd1234")
        raw["rules"].clear()
        assert store.load_raw("abcd1234")["rules"]

    def test_list_skips_non_rulebooks(self, book):
        store = MemoryRuleBookStore()
        store.save(book)
        store.put_raw("junk", {"whatever": True})
        assert [b["id"] for b in store.list_all()] == ["abcd1234"]

    def test_clear(self, book):
        store = MemoryRuleBookStore()
        store.save(book)
        store.clear()
        assert store.list_all() == []

    def test_list_mixes_offset_and_local_stamps(self, book):
        """A hand-edited stamp with an offset sorts against local ones."""
        store = MemoryRuleBookStore()
        store.save(book)
        store.put_raw("edited01", {
            "meta": {"id": "edited01", "name": "Edited", "updated_at": "2001-01-01T00:00:00+00:00"},
            "rules": {},
        })

        listed = store.list_all()

        assert [b["id"] for b in listed] == ["abcd1234", "edited01"]
        assert listed[1]["updated_at"].tzinfo is None
