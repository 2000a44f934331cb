"""Event system for fieldcheck.

This module provides the event record and emitter for auditing validation
activity. When a model is given an EventEmitter, every value assignment,
field validation and whole-model validation emits a typed ValidationEvent.

Events are observational only: listeners never influence validation outcomes,
and a failing listener is logged and isolated from the validate() call.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import json
import logging
import uuid

from .types import EventType, FieldState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationEvent:
    """A single event in a model's validation history.

    Attributes:
        event_id: Unique event identifier (e.g., "evt_3f2a...")
        type: Event type from EventType enum
        model: Class name of the model the event relates to
        field: Field name, or None for model-level events
        ts: UTC timestamp when the event occurred
        state: Field lifecycle state after the event, or None for model-level events
        payload: Optional event-specific data (e.g., failures, validity)

    Examples:
        >>> event = ValidationEvent(
        ...     event_id="evt_001",
        ...     type=EventType.VALIDATION_FAILED,
        ...     model="Person",
        ...     field="name",
        ...     ts=datetime.now(timezone.utc),
        ...     state=FieldState.VALIDATED,
        ...     payload={"failures": {"isLongEnough": "Name is not long enough"}},
        ... )
    """
    event_id: str
    type: EventType
    model: str
    field: Optional[str]
    ts: datetime
    state: Optional[FieldState] = None
    payload: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        """Normalize string enum values."""
        if isinstance(self.type, str):
            object.__setattr__(self, "type", EventType(self.type))
        if isinstance(self.state, str):
            object.__setattr__(self, "state", FieldState(self.state))

    @classmethod
    def create(
        cls,
        type: EventType,
        model: str,
        field: Optional[str] = None,
        state: Optional[FieldState] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> "ValidationEvent":
        """Create an event with a fresh id and the current UTC time."""
        return cls(
            event_id=f"evt_{uuid.uuid4().hex[:16]}",
            type=type,
            model=model,
            field=field,
            ts=datetime.now(timezone.utc),
            state=state,
            payload=payload,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization.

        Timestamp is formatted as ISO 8601 string.
        """
        result: Dict[str, Any] = {
            "eventId": self.event_id,
            "type": self.type.value,
            "model": self.model,
            "ts": self.ts.isoformat(),
        }
        if self.field is not None:
            result["field"] = self.field
        if self.state is not None:
            result["state"] = self.state.value
        if self.payload is not None:
            result["payload"] = self.payload
        return result

    def to_jsonl(self) -> str:
        """Convert event to JSONL format (single-line JSON)."""
        return json.dumps(self.to_dict(), separators=(',', ':'), default=str)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValidationEvent":
        """Create ValidationEvent from dictionary (camelCase keys)."""
        ts = datetime.fromisoformat(data["ts"].replace('Z', '+00:00'))
        state = data.get("state")
        return cls(
            event_id=data["eventId"],
            type=EventType(data["type"]),
            model=data["model"],
            field=data.get("field"),
            ts=ts,
            state=FieldState(state) if state is not None else None,
            payload=data.get("payload"),
        )


EventListener = Callable[[ValidationEvent], None]
"""Type alias for event listener callbacks.

Listeners are called synchronously, inside the validate() call that emitted
the event. They should be fast and must not mutate the model.
"""


class EventEmitter:
    """Dispatches validation events to registered listeners.

    Features:
    - Type-specific subscriptions (listen to specific event types)
    - Wildcard subscriptions (listen to all events)
    - Synchronous dispatch (listeners called in registration order)
    - Error isolation (listener exceptions are logged, not propagated)

    Examples:
        >>> emitter = EventEmitter()
        >>> failures = []
        >>> emitter.on(EventType.VALIDATION_FAILED, failures.append)
        >>> emitter.listener_count()
        1
    """

    def __init__(self):
        self._listeners: Dict[EventType, List[EventListener]] = {}
        self._any_listeners: List[EventListener] = []

    def on(self, event_type: EventType, listener: EventListener) -> None:
        """Subscribe to a specific event type."""
        self._listeners.setdefault(event_type, []).append(listener)

    def on_any(self, listener: EventListener) -> None:
        """Subscribe to all event types (wildcard subscription)."""
        self._any_listeners.append(listener)

    def off(self, event_type: EventType, listener: EventListener) -> None:
        """Unsubscribe from a specific event type."""
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def off_any(self, listener: EventListener) -> None:
        """Unsubscribe from wildcard subscription."""
        if listener in self._any_listeners:
            self._any_listeners.remove(listener)

    def emit(self, event: ValidationEvent) -> None:
        """Dispatch an event to all registered listeners.

        Type-specific listeners run first, then wildcard listeners. A listener
        that raises is logged with its traceback; the remaining listeners
        still run and the exception does not reach the caller.
        """
        for listener in list(self._listeners.get(event.type, [])) + list(self._any_listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Listener %r failed handling %s event %s",
                    listener,
                    event.type.value,
                    event.event_id,
                )

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners.clear()
        self._any_listeners.clear()

    def listener_count(self, event_type: Optional[EventType] = None) -> int:
        """Get count of registered listeners.

        Args:
            event_type: If provided, count listeners for this type only.
                        If None, count all listeners (including wildcard).
        """
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return len(self._any_listeners) + sum(len(ls) for ls in self._listeners.values())


__all__ = [
    "ValidationEvent",
    "EventListener",
    "EventEmitter",
]
