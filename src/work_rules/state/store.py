"""
Rule book storage abstraction.

Separates persistence from domain logic for testability. Stores hand back
raw records; normalization into a RuleBook happens in the loader so every
backend gets the same repair rules.
"""

import copy
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

from .schema import RuleBook

logger = logging.getLogger(__name__)


@runtime_checkable
class RuleBookStore(Protocol):
    """
    Abstract storage interface for rule books.

    Implementations:
    - JsonRuleBookStore: File-based persistence (production)
    - MemoryRuleBookStore: In-memory storage (testing)
    """

    def save(self, rulebook: RuleBook) -> None:
        """Persist a rule book."""
        ...

    def load_raw(self, rulebook_id: str) -> dict | None:
        """Load the raw record for a rule book. Returns None if not found."""
        ...

    def delete(self, rulebook_id: str) -> bool:
        """Delete a rule book. Returns True if deleted."""
        ...

    def list_all(self) -> list[dict]:
        """List all rule books with metadata."""
        ...

    def exists(self, rulebook_id: str) -> bool:
        """Check if a rule book exists."""
        ...


def _summarize(record: dict, fallback_id: str) -> dict | None:
    """Listing metadata from a raw record, or None if it isn't a rule book."""
    meta = record.get("meta")
    if not isinstance(meta, dict):
        return None

    rules = record.get("rules")
    if not isinstance(rules, dict):
        rules = {}

    try:
        updated = datetime.fromisoformat(meta.get("updated_at", "2000-01-01"))
    except (TypeError, ValueError):
        updated = datetime(2000, 1, 1)

    # Saved stamps are naive local time; hand-edited ones may carry an offset
    if updated.tzinfo is not None:
        updated = updated.astimezone().replace(tzinfo=None)

    return {
        "id": meta.get("id", fallback_id),
        "name": meta.get("name", "Unnamed"),
        "categories": sum(1 for v in rules.values() if isinstance(v, list) and v),
        "rule_count": sum(len(v) for v in rules.values() if isinstance(v, list)),
        "updated_at": updated,
    }


class JsonRuleBookStore:
    """
    File-based rule book storage using JSON.

    Features:
    - Automatic backup on save
    - Partial ID matching on load
    - Corrupt files load as None instead of raising
    """

    def __init__(self, rules_dir: Path | str = "rulebooks"):
        self.rules_dir = Path(rules_dir)
        self.rules_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, rulebook_id: str) -> Path:
        return self.rules_dir / f"{rulebook_id}.json"

    def save(self, rulebook: RuleBook) -> None:
        """Save rule book to JSON file with backup."""
        rulebook.save_checkpoint()

        rulebook_file = self._path(rulebook.meta.id)

        # Backup previous save
        if rulebook_file.exists():
            backup = rulebook_file.with_suffix(".json.bak")
            backup.write_text(rulebook_file.read_text(encoding="utf-8"), encoding="utf-8")

        rulebook_file.write_text(json.dumps(rulebook.to_record(), indent=2), encoding="utf-8")
        logger.debug(f"Saved rule book {rulebook.meta.id} to {rulebook_file}")

    def _find(self, rulebook_id: str) -> Path | None:
        rulebook_file = self._path(rulebook_id)
        if rulebook_file.exists():
            return rulebook_file

        # Try partial match
        for f in sorted(self.rules_dir.glob("*.json")):
            if f.name.startswith("."):
                continue
            if f.stem.startswith(rulebook_id):
                return f
        return None

    def load_raw(self, rulebook_id: str) -> dict | None:
        """
        Load a raw record by ID or partial match.

        Supports:
        - Full ID: "a1b2c3d4"
        - Partial prefix: "a1b2"
        """
        rulebook_file = self._find(rulebook_id)
        if rulebook_file is None:
            return None

        try:
            data = json.loads(rulebook_file.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Could not read rule book {rulebook_file}: {e}")
            return None

        if not isinstance(data, dict):
            logger.error(f"Rule book {rulebook_file} does not contain an object")
            return None
        return data

    def delete(self, rulebook_id: str) -> bool:
        """Delete rule book file."""
        rulebook_file = self._path(rulebook_id)

        if rulebook_file.exists():
            rulebook_file.unlink()
            return True

        return False

    def list_all(self) -> list[dict]:
        """
        List all rule books sorted by modification time.

        Returns list of dicts with: id, name, categories, rule_count, updated_at
        """
        rulebooks = []

        for f in sorted(
            self.rules_dir.glob("*.json"),
            key=lambda x: x.stat().st_mtime,
            reverse=True,
        ):
            if f.name.startswith("."):
                continue
            try:
                data = json.loads(f.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError):
                continue
            if not isinstance(data, dict):
                continue

            summary = _summarize(data, f.stem)
            if summary is not None:
                rulebooks.append(summary)

        return rulebooks

    def exists(self, rulebook_id: str) -> bool:
        """Check if rule book file exists."""
        return self._path(rulebook_id).exists()


class MemoryRuleBookStore:
    """
    In-memory rule book storage for testing.

    Keeps records (not live objects) so loads go through the same
    normalization path as the file store.
    """

    def __init__(self):
        self.records: dict[str, dict] = {}

    def save(self, rulebook: RuleBook) -> None:
        """Store a copy of the rule book record."""
        rulebook.save_checkpoint()
        self.records[rulebook.meta.id] = copy.deepcopy(rulebook.to_record())

    def put_raw(self, rulebook_id: str, record: dict) -> None:
        """Store an arbitrary record (test utility for corrupt data)."""
        self.records[rulebook_id] = copy.deepcopy(record)

    def load_raw(self, rulebook_id: str) -> dict | None:
        """Load a record from memory."""
        if rulebook_id in self.records:
            return copy.deepcopy(self.records[rulebook_id])

        # Partial match
        for rid, record in self.records.items():
            if rid.startswith(rulebook_id):
                return copy.deepcopy(record)

        return None

    def delete(self, rulebook_id: str) -> bool:
        """Remove rule book from memory."""
        if rulebook_id in self.records:
            del self.records[rulebook_id]
            return True
        return False

    def list_all(self) -> list[dict]:
        """List all rule books in memory, newest first."""
        rulebooks = []
        for rid, record in self.records.items():
            summary = _summarize(record, rid)
            if summary is not None:
                rulebooks.append(summary)

        rulebooks.sort(key=lambda x: x["updated_at"], reverse=True)
        return rulebooks

    def exists(self, rulebook_id: str) -> bool:
        """Check if rule book exists in memory."""
        return rulebook_id in self.records

    def clear(self) -> None:
        """Clear all rule books (test utility)."""
        self.records.clear()
