"""
In-memory colony host.

A small stand-in for the simulation that owns pawns. Implements every host
protocol the engine needs, so rules can be exercised end to end from tests
and from the CLI (colonies load from and save to YAML).
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from ..state.catalog import CategoryCatalog
from ..state.schema import DEFAULT_PRIORITY, DISABLED_PRIORITY, generate_id

logger = logging.getLogger(__name__)

PLAYER_FACTION = "player"


class Pawn(BaseModel):
    """A colonist as the host sees it."""
    id: str = Field(default_factory=generate_id)
    name: str
    faction: str = PLAYER_FACTION
    host_faction: str | None = None           # Set for guests and prisoners
    dead: bool = False
    downed: bool = False
    baby: bool = False
    has_work_settings: bool = True
    skills: dict[str, int] = Field(default_factory=dict)       # Skill name -> level 0-20
    disabled_work: list[str] = Field(default_factory=list)     # Category keys the pawn is incapable of
    priorities: dict[str, int] = Field(default_factory=dict)   # Category key -> 0-4


class Colony:
    """
    Host simulation for one map.

    Eligibility mirrors the colony work filter: alive, not downed, player
    faction, not a guest or prisoner, has work settings, not a baby, and
    not on the exclusion list.
    """

    def __init__(
        self,
        pawns: list[Pawn] | None = None,
        catalog: CategoryCatalog | None = None,
        name: str = "Colony",
        excluded_ids: list[str] | None = None,
        default_priority: int = DEFAULT_PRIORITY,
    ):
        self.name = name
        self.pawns: list[Pawn] = list(pawns or [])
        self.catalog = catalog or CategoryCatalog()
        self.excluded_ids: set[str] = set(excluded_ids or [])
        self.default_priority = default_priority

        # Clock state
        self.active = True
        self.map_loaded = True
        self.paused = False

    def get(self, pawn_id: str) -> Pawn | None:
        for pawn in self.pawns:
            if pawn.id == pawn_id:
                return pawn
        return None

    def exclude(self, pawn_id: str) -> None:
        self.excluded_ids.add(pawn_id)

    def include(self, pawn_id: str) -> None:
        self.excluded_ids.discard(pawn_id)

    def _is_eligible(self, pawn: Pawn) -> bool:
        return (
            not pawn.dead
            and not pawn.downed
            and pawn.faction == PLAYER_FACTION
            and pawn.host_faction is None
            and pawn.has_work_settings
            and not pawn.baby
            and pawn.id not in self.excluded_ids
        )

    # -------------------------------------------------------------------------
    # EligibilityProvider
    # -------------------------------------------------------------------------

    def list_eligible(self) -> list[Pawn]:
        return [pawn for pawn in self.pawns if self._is_eligible(pawn)]

    # -------------------------------------------------------------------------
    # EntityAttributeSource
    # -------------------------------------------------------------------------

    def is_disabled(self, entity: Pawn, category: str) -> bool:
        return category in entity.disabled_work

    def attribute_value(self, entity: Pawn, category: str) -> int:
        """Level in the category's primary skill; 0 if it has none."""
        work = self.catalog.resolve(category)
        if work is None or work.primary_skill is None:
            return 0
        return entity.skills.get(work.primary_skill, 0)

    def current_priority(self, entity: Pawn, category: str) -> int:
        return entity.priorities.get(category, DISABLED_PRIORITY)

    def set_priority(self, entity: Pawn, category: str, priority: int) -> None:
        entity.priorities[category] = priority

    # -------------------------------------------------------------------------
    # HostClock
    # -------------------------------------------------------------------------

    def session_active(self) -> bool:
        return self.active

    def has_spatial_context(self) -> bool:
        return self.map_loaded

    def is_paused(self) -> bool:
        return self.paused

    # -------------------------------------------------------------------------
    # Host's own assignment pass
    # -------------------------------------------------------------------------

    def refresh_assignments(self) -> int:
        """
        Baseline assignment: every configurable category the pawn can do
        gets the colony default priority. Returns the number of writes.

        Rules applied afterwards override this for the categories they cover.
        """
        writes = 0
        for pawn in self.list_eligible():
            for work in self.catalog.configurable():
                target = DISABLED_PRIORITY if self.is_disabled(pawn, work.key) else self.default_priority
                if self.current_priority(pawn, work.key) != target:
                    self.set_priority(pawn, work.key, target)
                    writes += 1
        return writes

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_record(self) -> dict:
        return {
            "name": self.name,
            "default_priority": self.default_priority,
            "paused": self.paused,
            "excluded": sorted(self.excluded_ids),
            "pawns": [
                {"id": pawn.id, **pawn.model_dump(exclude_defaults=True)}
                for pawn in self.pawns
            ],
        }

    @classmethod
    def from_record(cls, data: dict, catalog: CategoryCatalog | None = None) -> "Colony":
        colony = cls(
            pawns=[Pawn.model_validate(p) for p in data.get("pawns") or []],
            catalog=catalog,
            name=data.get("name", "Colony"),
            excluded_ids=data.get("excluded") or [],
            default_priority=data.get("default_priority", DEFAULT_PRIORITY),
        )
        colony.paused = bool(data.get("paused", False))
        return colony


def load_colony_yaml(path: Path | str, catalog: CategoryCatalog | None = None) -> Colony:
    """Load a colony snapshot from YAML."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    colony = Colony.from_record(data, catalog)
    logger.info(f"Loaded colony '{colony.name}' with {len(colony.pawns)} pawns from {path}")
    return colony


def save_colony_yaml(colony: Colony, path: Path | str) -> None:
    """Write a colony snapshot to YAML."""
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(colony.to_record(), f, sort_keys=False, allow_unicode=True)
