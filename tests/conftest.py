"""
Pytest fixtures for work-rules tests.

Provides in-memory stores, a stock catalog and a small colony host.
"""

import pytest
from pathlib import Path

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from work_rules.state import (
    CategoryCatalog,
    MemoryRuleBookStore,
    RuleBookManager,
    RangeRule,
    RuleSet,
    reset_event_bus,
)
from work_rules.host import Colony, Pawn


@pytest.fixture(autouse=True)
def fresh_event_bus():
    """Every test gets its own event bus."""
    reset_event_bus()
    yield
    reset_event_bus()


@pytest.fixture
def memory_store():
    """In-memory rule book store for testing."""
    return MemoryRuleBookStore()


@pytest.fixture
def catalog():
    """Stock work categories."""
    return CategoryCatalog()


@pytest.fixture
def manager(memory_store, catalog):
    """Rule book manager with in-memory store."""
    return RuleBookManager(memory_store, catalog=catalog)


@pytest.fixture
def rulebook(manager):
    """Fresh rule book for testing."""
    return manager.create_rulebook("Test Colony Rules")


@pytest.fixture
def tiered_rules():
    """Three contiguous tiers covering the whole skill scale."""
    return RuleSet(rules=[
        RangeRule(min_skill=0, max_skill=5, priority=4),
        RangeRule(min_skill=6, max_skill=10, priority=3),
        RangeRule(min_skill=11, max_skill=20, priority=2),
    ])


@pytest.fixture
def colony(catalog):
    """Three eligible colonists and two that rules must never touch."""
    return Colony(
        pawns=[
            Pawn(id="ada", name="Ada", skills={"Mining": 12, "Cooking": 3, "Medicine": 7}),
            Pawn(id="bo", name="Bo", skills={"Mining": 4, "Cooking": 15}),
            Pawn(id="cy", name="Cy", skills={"Mining": 8, "Cooking": 9}, disabled_work=["Cooking"]),
            Pawn(id="dee", name="Dee", skills={"Mining": 20}, dead=True),
            Pawn(id="eli", name="Eli", skills={"Mining": 20}, host_faction="outlanders"),
        ],
        catalog=catalog,
    )
