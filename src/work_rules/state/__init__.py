"""State management for work priority rule books."""

from .schema import (
    RangeRule,
    RuleSet,
    RuleStore,
    RuleBook,
    RuleBookMeta,
    SKILL_MIN,
    SKILL_MAX,
    PRIORITY_HIGHEST,
    PRIORITY_LOWEST,
    DISABLED_PRIORITY,
    DEFAULT_PRIORITY,
)
from .catalog import CategoryCatalog, WorkCategory, DEFAULT_CATEGORIES, load_catalog_yaml
from .loader import LoadReport, load_rule_store, load_rulebook
from .manager import RuleBookManager
from .store import RuleBookStore, JsonRuleBookStore, MemoryRuleBookStore
from .event_bus import (
    EventBus,
    EventType,
    EngineEvent,
    get_event_bus,
    reset_event_bus,
)

__all__ = [
    # Schema
    "RangeRule",
    "RuleSet",
    "RuleStore",
    "RuleBook",
    "RuleBookMeta",
    "SKILL_MIN",
    "SKILL_MAX",
    "PRIORITY_HIGHEST",
    "PRIORITY_LOWEST",
    "DISABLED_PRIORITY",
    "DEFAULT_PRIORITY",
    # Catalog
    "CategoryCatalog",
    "WorkCategory",
    "DEFAULT_CATEGORIES",
    "load_catalog_yaml",
    # Loader
    "LoadReport",
    "load_rule_store",
    "load_rulebook",
    # Manager
    "RuleBookManager",
    # Store
    "RuleBookStore",
    "JsonRuleBookStore",
    "MemoryRuleBookStore",
    # Event Bus
    "EventBus",
    "EventType",
    "EngineEvent",
    "get_event_bus",
    "reset_event_bus",
]
