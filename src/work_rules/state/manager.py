"""
Rule book lifecycle management.

One rule book is the rule state of one game session. The manager owns the
current rule book and handles create, load, list, save, delete and ending
the session.
"""

import logging
from datetime import datetime, timedelta
from pathlib import Path

from .catalog import CategoryCatalog
from .event_bus import EventType, get_event_bus
from .loader import LoadReport, load_rulebook
from .schema import RuleBook, RuleBookMeta, RuleStore
from .store import JsonRuleBookStore, RuleBookStore

logger = logging.getLogger(__name__)


class RuleBookManager:
    """
    Manages the session-scoped rule book.

    Storage is delegated to a RuleBookStore implementation:
    - JsonRuleBookStore for production (file-based)
    - MemoryRuleBookStore for testing (in-memory)

    Lifecycle:
    - create_rulebook(name) -> new rule book, becomes current
    - load_rulebook(id) -> resume existing (normalized on load)
    - list_rulebooks() -> show available
    - save_rulebook() -> persist
    - delete_rulebook(id) -> remove
    - end_session() -> drop the current rule book
    """

    def __init__(
        self,
        store: RuleBookStore | Path | str = "rulebooks",
        catalog: CategoryCatalog | None = None,
    ):
        """
        Initialize with a store.

        Args:
            store: RuleBookStore instance, or path for JsonRuleBookStore
            catalog: Category lookup used to validate keys on load
        """
        if isinstance(store, (Path, str)):
            self.store = JsonRuleBookStore(Path(store))
        else:
            self.store = store

        self.catalog = catalog or CategoryCatalog()
        self.current: RuleBook | None = None
        self.last_load_report: LoadReport | None = None

    @property
    def rules(self) -> RuleStore | None:
        """Rule store of the current session, if any."""
        if self.current is None:
            return None
        return self.current.rules

    @property
    def session_id(self) -> str:
        return self.current.meta.id if self.current else ""

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def create_rulebook(self, name: str) -> RuleBook:
        """Create a new rule book and set it as current."""
        if self.current is not None:
            self.end_session()

        rulebook = RuleBook(meta=RuleBookMeta(name=name))
        self.current = rulebook
        self.last_load_report = None
        self.save_rulebook()

        get_event_bus().emit(
            EventType.SESSION_LOADED,
            session_id=rulebook.meta.id,
            name=name,
            created=True,
        )
        return rulebook

    def _resolve_identifier(self, identifier: str) -> str:
        """Turn a 1-based list index into an ID; anything else passes through."""
        if identifier.isdigit():
            rulebooks = self.list_rulebooks()
            idx = int(identifier) - 1
            if 0 <= idx < len(rulebooks):
                return rulebooks[idx]["id"]
        return identifier

    def load_rulebook(self, identifier: str) -> RuleBook | None:
        """
        Load a rule book by ID, partial ID, or list index.

        Supports:
        - Full ID: "a1b2c3d4"
        - Partial prefix: "a1b2"
        - Numeric index from list: "1", "2", etc.

        The record is always normalized; what was fixed is available as
        last_load_report.
        """
        rulebook_id = self._resolve_identifier(identifier)

        raw = self.store.load_raw(rulebook_id)
        if raw is None:
            logger.warning(f"Rule book not found: {identifier}")
            return None

        report = LoadReport()
        rulebook = load_rulebook(raw, self.catalog.resolve, report)

        if self.current is not None:
            self.end_session()

        self.current = rulebook
        self.last_load_report = report

        if not report.clean:
            logger.warning(
                f"Rule book {rulebook.meta.id} needed {len(report.issues)} correction(s) on load"
            )

        get_event_bus().emit(
            EventType.SESSION_LOADED,
            session_id=rulebook.meta.id,
            name=rulebook.meta.name,
            created=False,
            issues=len(report.issues),
        )
        return rulebook

    def save_rulebook(self) -> bool:
        """Save current rule book to store."""
        if not self.current:
            return False

        self.store.save(self.current)
        get_event_bus().emit(
            EventType.SESSION_SAVED,
            session_id=self.current.meta.id,
            rule_count=self.current.rules.rule_count(),
        )
        return True

    def delete_rulebook(self, identifier: str) -> str | None:
        """Delete a rule book by ID or list index. Returns deleted ID or None."""
        rulebook_id = self._resolve_identifier(identifier)

        if self.store.delete(rulebook_id):
            if self.current and self.current.meta.id == rulebook_id:
                self.end_session()
            return rulebook_id

        return None

    def list_rulebooks(self) -> list[dict]:
        """
        List all rule books with relative timestamps.

        Returns list of dicts with: id, name, categories, rule_count,
        updated_at, display_time
        """
        rulebooks = self.store.list_all()

        for rulebook in rulebooks:
            rulebook["display_time"] = self._format_relative_time(rulebook["updated_at"])

        return rulebooks

    def rename_rulebook(self, new_name: str) -> bool:
        """Rename current rule book."""
        if not self.current:
            return False

        self.current.meta.name = new_name
        self.save_rulebook()
        return True

    def end_session(self) -> str | None:
        """
        Close the current session. The rule book is not saved.

        Returns the ID of the ended session, or None if none was open.
        """
        if not self.current:
            return None

        session_id = self.current.meta.id
        self.current = None
        self.last_load_report = None

        get_event_bus().emit(EventType.SESSION_ENDED, session_id=session_id)
        return session_id

    def _format_relative_time(self, dt: datetime) -> str:
        """Format timestamp as relative time (Today, Yesterday, etc.)."""
        now = datetime.now()
        diff = now - dt

        if diff < timedelta(days=1) and dt.date() == now.date():
            return "Today"
        elif diff < timedelta(days=2) and (now.date() - dt.date()).days == 1:
            return "Yesterday"
        elif diff < timedelta(days=7):
            return dt.strftime("%A")
        else:
            return dt.strftime("%b %d")
