"""
In-process notifications for rule edits, passes and session changes.

The reconciliation loop reports every priority write here, the editor
reports rule edits and the manager reports session boundaries. Anything
that wants to follow along (a shell refreshing its table, a host mirroring
changes into its own UI) listens instead of polling the rule book.

    bus = get_event_bus()
    bus.on(EventType.PRIORITY_CHANGED, show_change)

    def show_change(event: EngineEvent):
        data = event.data
        print(f"{data['entity']}: {data['category']} {data['before']} -> {data['after']}")
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    # Rule editing (editor)
    RULE_ADDED = "rule.added"
    RULE_UPDATED = "rule.updated"
    RULE_REMOVED = "rule.removed"
    CATEGORY_CLEARED = "category.cleared"

    # Reconciliation (one PRIORITY_CHANGED per write, then one pass outcome)
    PRIORITY_CHANGED = "priority.changed"
    PASS_COMPLETED = "pass.completed"
    PASS_SKIPPED = "pass.skipped"
    PASS_FAILED = "pass.failed"

    # Session lifecycle (manager)
    SESSION_LOADED = "session.loaded"
    SESSION_SAVED = "session.saved"
    SESSION_ENDED = "session.ended"


@dataclass
class EngineEvent:
    """
    One notification.

    session_id is the rule book the event concerns, empty when no
    rule book was open.
    """

    type: EventType
    data: dict = field(default_factory=dict)
    session_id: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.type.value}] {self.data}"


EventHandler = Callable[[EngineEvent], None]


class EventBus:
    """
    Synchronous fan-out on the emitter's thread.

    Handlers run inside emit(), so a PRIORITY_CHANGED handler runs while
    its pass is still in progress. A handler that raises is logged and
    skipped; it never fails the pass or edit that emitted.
    """

    def __init__(self):
        self._listeners: dict[EventType, list[EventHandler]] = {}
        self._history: list[EngineEvent] = []
        self._history_limit = 100

    def on(self, event_type: EventType, handler: EventHandler) -> None:
        """Subscribe. Registering the same handler twice is a no-op."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        if handler not in self._listeners[event_type]:
            self._listeners[event_type].append(handler)

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        if event_type in self._listeners and handler in self._listeners[event_type]:
            self._listeners[event_type].remove(handler)

    def emit(
        self,
        event_type: EventType,
        session_id: str = "",
        **data,
    ) -> EngineEvent:
        """
        Record an event and call its handlers in subscription order.

        Args:
            event_type: What happened
            session_id: Rule book the event concerns
            **data: Event payload, e.g. entity/category/before/after

        Returns:
            The recorded EngineEvent
        """
        event = EngineEvent(
            type=event_type,
            data=data,
            session_id=session_id,
        )

        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit :]

        for handler in list(self._listeners.get(event_type, [])):
            try:
                handler(event)
            except Exception:
                logger.exception(f"Handler for {event_type.value} failed")

        return event

    def clear(self) -> None:
        """Drop every handler. History is kept."""
        self._listeners.clear()

    def get_history(self, event_type: EventType | None = None) -> list[EngineEvent]:
        """The last 100 events, oldest first, optionally of one type."""
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if e.type == event_type]

    def listener_count(self, event_type: EventType) -> int:
        return len(self._listeners.get(event_type, []))


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """The process-wide bus, created on first use."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """
    Discard the process-wide bus.

    Listeners on the old bus stay attached to it; a ReconciliationLoop
    moves to the new bus on its next trigger.
    """
    global _event_bus
    _event_bus = None
