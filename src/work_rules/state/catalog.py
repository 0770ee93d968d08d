"""
Work category catalog.

Categories are identified by stable string keys (e.g. "Mining") so saved
rules survive reordering or removal of catalog entries. Rule books resolve
their keys through a catalog at load time; keys that no longer resolve are
dropped.
"""

import logging
from pathlib import Path
from typing import Iterable

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class WorkCategory(BaseModel):
    """A category of work that rules can target."""
    key: str                                   # Stable identifier, persisted in rule books
    label: str
    label_short: str = ""
    relevant_skills: list[str] = Field(default_factory=list)  # First one drives rule matching
    work_tags: list[str] = Field(default_factory=list)        # Empty = not player-configurable

    def model_post_init(self, __context) -> None:
        if not self.label_short:
            self.label_short = self.label

    @property
    def primary_skill(self) -> str | None:
        """Skill whose level is matched against rule ranges."""
        return self.relevant_skills[0] if self.relevant_skills else None

    @property
    def configurable(self) -> bool:
        return bool(self.work_tags)


# Stock work types and the skill each one is judged by
DEFAULT_CATEGORIES: list[WorkCategory] = [
    WorkCategory(key="Firefighter", label="firefighting", label_short="firefight", work_tags=["Firefighting"]),
    WorkCategory(key="Patient", label="patient"),
    WorkCategory(key="Doctor", label="doctoring", label_short="doctor", relevant_skills=["Medicine"], work_tags=["Caring"]),
    WorkCategory(key="PatientBedRest", label="bed rest"),
    WorkCategory(key="BasicWorker", label="basic", work_tags=["ManualDumb"]),
    WorkCategory(key="Warden", label="warden", relevant_skills=["Social"], work_tags=["Social"]),
    WorkCategory(key="Handling", label="handling", label_short="handle", relevant_skills=["Animals"], work_tags=["Animals"]),
    WorkCategory(key="Cooking", label="cooking", label_short="cook", relevant_skills=["Cooking"], work_tags=["Cooking"]),
    WorkCategory(key="Hunting", label="hunting", label_short="hunt", relevant_skills=["Shooting"], work_tags=["Hunting", "Violent"]),
    WorkCategory(key="Construction", label="construction", label_short="construct", relevant_skills=["Construction"], work_tags=["Constructing"]),
    WorkCategory(key="Growing", label="growing", label_short="grow", relevant_skills=["Plants"], work_tags=["PlantWork"]),
    WorkCategory(key="Mining", label="mining", label_short="mine", relevant_skills=["Mining"], work_tags=["Mining"]),
    WorkCategory(key="PlantCutting", label="plant cutting", label_short="cut", relevant_skills=["Plants"], work_tags=["PlantWork"]),
    WorkCategory(key="Smithing", label="smithing", label_short="smith", relevant_skills=["Crafting"], work_tags=["Crafting"]),
    WorkCategory(key="Tailoring", label="tailoring", label_short="tailor", relevant_skills=["Crafting"], work_tags=["Crafting"]),
    WorkCategory(key="Art", label="art", relevant_skills=["Artistic"], work_tags=["Artistic"]),
    WorkCategory(key="Crafting", label="crafting", label_short="craft", relevant_skills=["Crafting"], work_tags=["Crafting"]),
    WorkCategory(key="Hauling", label="hauling", label_short="haul", work_tags=["Hauling"]),
    WorkCategory(key="Cleaning", label="cleaning", label_short="clean", work_tags=["Cleaning"]),
    WorkCategory(key="Research", label="research", relevant_skills=["Intellectual"], work_tags=["Intellectual"]),
]


class CategoryCatalog:
    """
    Lookup of the work categories that currently exist.

    Content can change between sessions (categories added or removed), so
    callers ask the catalog every time instead of caching its lists.
    """

    def __init__(self, categories: Iterable[WorkCategory] | None = None):
        if categories is None:
            categories = [c.model_copy(deep=True) for c in DEFAULT_CATEGORIES]
        self._categories: dict[str, WorkCategory] = {}
        for category in categories:
            self.add(category)

    def add(self, category: WorkCategory) -> None:
        """Register a category, replacing any with the same key."""
        self._categories[category.key] = category

    def remove(self, key: str) -> bool:
        """Unregister a category (e.g. its content was uninstalled)."""
        return self._categories.pop(key, None) is not None

    def resolve(self, key: str) -> WorkCategory | None:
        """Map a stable key to its category, or None if it no longer exists."""
        return self._categories.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._categories

    def __len__(self) -> int:
        return len(self._categories)

    def all(self) -> list[WorkCategory]:
        return list(self._categories.values())

    def configurable(self) -> list[WorkCategory]:
        """
        Categories a player can write rules for, sorted by short label.

        Built fresh on each call.
        """
        return sorted(
            (c for c in self._categories.values() if c.configurable),
            key=lambda c: c.label_short.lower(),
        )

    def find(self, name: str) -> WorkCategory | None:
        """Look up by key, label or short label (case-insensitive)."""
        if name in self._categories:
            return self._categories[name]
        lowered = name.strip().lower()
        for category in self._categories.values():
            if lowered in (category.key.lower(), category.label.lower(), category.label_short.lower()):
                return category
        return None


def load_catalog_yaml(path: Path | str) -> CategoryCatalog:
    """
    Load categories from a YAML file.

    Accepts either a list of category mappings or a mapping with a
    "categories" list.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or []

    if isinstance(data, dict):
        data = data.get("categories", [])

    categories = [WorkCategory.model_validate(item) for item in data]
    logger.info(f"Loaded {len(categories)} work categories from {path}")
    return CategoryCatalog(categories)
