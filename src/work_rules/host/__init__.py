"""Host-side interfaces and the in-memory colony host."""

from .protocols import (
    EntityHandle,
    EligibilityProvider,
    EntityAttributeSource,
    HostClock,
    clock_allows_run,
)
from .colony import Colony, Pawn, PLAYER_FACTION, load_colony_yaml, save_colony_yaml

__all__ = [
    "EntityHandle",
    "EligibilityProvider",
    "EntityAttributeSource",
    "HostClock",
    "clock_allows_run",
    "Colony",
    "Pawn",
    "PLAYER_FACTION",
    "load_colony_yaml",
    "save_colony_yaml",
]
