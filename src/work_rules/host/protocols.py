"""
Interfaces the engine consumes from the host simulation.

The host owns entities, their skills and their current priorities. The
engine only reads through these protocols and writes through
set_priority(); it never keeps entity state between passes.
"""

from typing import Protocol, Sequence, runtime_checkable


@runtime_checkable
class EntityHandle(Protocol):
    """Anything the host hands out for an entity; needs a stable id."""

    id: str


@runtime_checkable
class EligibilityProvider(Protocol):
    """
    Supplies the entities rules may be applied to.

    The host's filter (alive, not incapacitated, right owner, not
    excluded, able to take assignments) is already applied.
    """

    def list_eligible(self) -> Sequence[EntityHandle]:
        """Current candidates. Deterministic per call, may be empty."""
        ...


@runtime_checkable
class EntityAttributeSource(Protocol):
    """Live per-category state of an entity."""

    def is_disabled(self, entity: EntityHandle, category: str) -> bool:
        """True if the host forbids this work for the entity."""
        ...

    def attribute_value(self, entity: EntityHandle, category: str) -> int:
        """Skill level relevant to the category (0 if none applies)."""
        ...

    def current_priority(self, entity: EntityHandle, category: str) -> int:
        ...

    def set_priority(self, entity: EntityHandle, category: str, priority: int) -> None:
        ...


@runtime_checkable
class HostClock(Protocol):
    """What the periodic trigger asks before running a pass."""

    def session_active(self) -> bool:
        ...

    def has_spatial_context(self) -> bool:
        """True if a map (or equivalent) is loaded."""
        ...

    def is_paused(self) -> bool:
        ...


def clock_allows_run(clock: HostClock) -> bool:
    """Session running, a map exists and time is not paused."""
    return clock.session_active() and clock.has_spatial_context() and not clock.is_paused()
