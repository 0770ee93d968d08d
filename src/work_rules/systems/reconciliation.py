"""
Reconciliation loop: applies priority rules to eligible entities.

Two triggers share one pass body:
    tick()     -- periodic, every N host ticks when the host allows
    run_now()  -- explicit, e.g. right after the host's own assignment pass
                  so rule overrides land last

A pass:
    1. does nothing if no session is open or no category has rules
    2. asks the host for eligible entities
    3. for each entity x category-with-rules, evaluates the rules
    4. writes back only where the result differs from the current value

Passes are idempotent. A pass that fails halfway keeps the writes it made;
the next pass converges on the same target state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from ..host.protocols import EligibilityProvider, EntityAttributeSource
from ..rules.priority import evaluate_priority
from ..state.event_bus import EngineEvent, EventBus, EventType, get_event_bus
from .scheduler import DEFAULT_TICK_INTERVAL, IntervalScheduler

if TYPE_CHECKING:
    from ..state.manager import RuleBookManager
    from ..state.schema import RuleStore

logger = logging.getLogger(__name__)


class PassStatus(str, Enum):
    """How a reconciliation pass ended."""
    COMPLETED = "completed"
    NO_SESSION = "no_session"                      # No rule book loaded
    NO_RULES = "no_rules"                          # Nothing to apply
    MISSING_COLLABORATOR = "missing_collaborator"  # Host interface unavailable
    FAILED = "failed"                              # Unexpected error mid-pass


class MissingCollaboratorError(Exception):
    """A required host interface is not available."""
    def __init__(self, collaborator: str):
        self.collaborator = collaborator
        super().__init__(f"Required collaborator unavailable: {collaborator}")


@dataclass
class PriorityChange:
    """One write made by a pass."""
    entity_id: str
    category: str
    before: int
    after: int


@dataclass
class PassResult:
    """Outcome of one reconciliation pass."""
    status: PassStatus
    trigger: str = "manual"
    entities_checked: int = 0
    changes: list[PriorityChange] = field(default_factory=list)
    error: str = ""

    @property
    def write_count(self) -> int:
        return len(self.changes)

    @property
    def completed(self) -> bool:
        return self.status == PassStatus.COMPLETED

    @property
    def skipped(self) -> bool:
        return self.status in (
            PassStatus.NO_SESSION,
            PassStatus.NO_RULES,
            PassStatus.MISSING_COLLABORATOR,
        )


class ReconciliationLoop:
    """
    Applies the current rule book to the host's entities.

    Runs on the host's simulation thread. Both triggers run a pass to
    completion synchronously, so passes never overlap and no locking is
    needed as long as rule edits happen on the same thread.
    """

    def __init__(
        self,
        manager: "RuleBookManager",
        eligibility: EligibilityProvider | None = None,
        attributes: EntityAttributeSource | None = None,
        scheduler: IntervalScheduler | None = None,
    ):
        self.manager = manager
        self.eligibility = eligibility
        self.attributes = attributes
        self.scheduler = scheduler or IntervalScheduler()
        self.last_result: PassResult | None = None

        # Collaborators already reported missing this session
        self._reported_missing: set[str] = set()

        # Bus currently holding our SESSION_ENDED subscription
        self._bus: EventBus | None = None
        self._subscribe()

    @classmethod
    def for_host(
        cls,
        manager: "RuleBookManager",
        host,
        interval: int = DEFAULT_TICK_INTERVAL,
    ) -> "ReconciliationLoop":
        """Wire a host that implements all three host protocols."""
        return cls(
            manager,
            eligibility=host,
            attributes=host,
            scheduler=IntervalScheduler.for_clock(host, interval),
        )

    def attach(
        self,
        eligibility: EligibilityProvider | None = None,
        attributes: EntityAttributeSource | None = None,
    ) -> None:
        """Provide host interfaces that were unavailable at construction."""
        if eligibility is not None:
            self.eligibility = eligibility
        if attributes is not None:
            self.attributes = attributes

    def close(self) -> None:
        """Stop listening for session events. The loop can still run passes."""
        if self._bus is not None:
            self._bus.off(EventType.SESSION_ENDED, self._on_session_ended)
            self._bus = None

    def _subscribe(self) -> None:
        """Listen on the current global bus, moving off a replaced one."""
        bus = get_event_bus()
        if bus is self._bus:
            return
        self.close()
        bus.on(EventType.SESSION_ENDED, self._on_session_ended)
        self._bus = bus

    # -------------------------------------------------------------------------
    # Triggers
    # -------------------------------------------------------------------------

    def tick(self) -> PassResult | None:
        """
        Host tick hook. Returns the pass result when a pass ran, else None.
        """
        self._subscribe()
        if not self.scheduler.tick():
            return None
        return self._run("tick")

    def run_now(self) -> PassResult:
        """Run a pass immediately, regardless of the tick counter."""
        self._subscribe()
        return self._run("manual")

    # -------------------------------------------------------------------------
    # Pass
    # -------------------------------------------------------------------------

    def _run(self, trigger: str) -> PassResult:
        rules = self.manager.rules

        if rules is None:
            result = PassResult(PassStatus.NO_SESSION, trigger=trigger)
        elif not rules.has_any_rules():
            result = PassResult(PassStatus.NO_RULES, trigger=trigger)
        else:
            result = self._run_guarded(rules, trigger)

        self.last_result = result
        return result

    def _run_guarded(self, rules: "RuleStore", trigger: str) -> PassResult:
        try:
            self._require_collaborators()
        except MissingCollaboratorError as e:
            self._report_missing(e)
            get_event_bus().emit(
                EventType.PASS_SKIPPED,
                session_id=self.manager.session_id,
                reason=PassStatus.MISSING_COLLABORATOR.value,
                collaborator=e.collaborator,
            )
            return PassResult(PassStatus.MISSING_COLLABORATOR, trigger=trigger, error=str(e))

        result = PassResult(PassStatus.COMPLETED, trigger=trigger)
        try:
            self._apply(rules, result)
        except Exception as e:
            logger.exception(
                f"Rule pass failed after {result.write_count} write(s); "
                "next pass will retry"
            )
            result.status = PassStatus.FAILED
            result.error = f"{type(e).__name__}: {e}"
            get_event_bus().emit(
                EventType.PASS_FAILED,
                session_id=self.manager.session_id,
                error=result.error,
                writes=result.write_count,
            )
            return result

        if result.changes:
            logger.debug(
                f"Rule pass ({trigger}) checked {result.entities_checked} entities, "
                f"wrote {result.write_count} priorities"
            )
        get_event_bus().emit(
            EventType.PASS_COMPLETED,
            session_id=self.manager.session_id,
            trigger=trigger,
            entities=result.entities_checked,
            writes=result.write_count,
        )
        return result

    def _require_collaborators(self) -> None:
        if self.eligibility is None:
            raise MissingCollaboratorError("eligibility")
        if self.attributes is None:
            raise MissingCollaboratorError("attributes")

    def _report_missing(self, error: MissingCollaboratorError) -> None:
        """Log once per session per collaborator."""
        if error.collaborator in self._reported_missing:
            return
        self._reported_missing.add(error.collaborator)
        logger.error(f"{error}. Rule passes are skipped until it is available.")

    def _apply(self, rules: "RuleStore", result: PassResult) -> None:
        active = rules.active_items()
        entities = self.eligibility.list_eligible()

        for entity in entities:
            result.entities_checked += 1

            for category, rule_set in active:
                disabled = self.attributes.is_disabled(entity, category)
                skill = self.attributes.attribute_value(entity, category)
                target = evaluate_priority(disabled, skill, rule_set)

                current = self.attributes.current_priority(entity, category)
                if current == target:
                    continue

                self.attributes.set_priority(entity, category, target)
                change = PriorityChange(
                    entity_id=entity.id,
                    category=category,
                    before=current,
                    after=target,
                )
                result.changes.append(change)
                get_event_bus().emit(
                    EventType.PRIORITY_CHANGED,
                    session_id=self.manager.session_id,
                    entity=change.entity_id,
                    category=category,
                    before=current,
                    after=target,
                )

    def _on_session_ended(self, event: EngineEvent) -> None:
        self._reported_missing.clear()
        self.scheduler.reset()
        self.last_result = None
