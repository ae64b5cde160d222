"""
Event bus for Mega Sena Maluca.

Provides pub/sub messaging between the game session and front ends.
"""

from dataclasses import dataclass, field
from typing import Any, Callable
from enum import Enum, auto
import logging
import time
from collections import defaultdict

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Built-in event types."""
    # Player input
    TICKET_CHANGED = auto()
    CHAOS_LEVEL_CHANGED = auto()

    # Draw lifecycle
    DRAW_STARTED = auto()
    NUMBER_REVEALED = auto()
    DRAW_SETTLED = auto()
    GAME_RESET = auto()

    # AI events
    AI_REQUEST_START = auto()
    AI_REQUEST_COMPLETE = auto()
    AI_REQUEST_ERROR = auto()
    IMAGE_EDITED = auto()

    # Audio events
    SPEECH_PLAY = auto()

    ERROR = auto()


@dataclass
class Event:
    """
    Event data container.

    Attributes:
        type: Event type (EventType enum or custom string)
        data: Event payload
        source: Component that emitted the event
        timestamp: When event was created
    """
    type: EventType | str
    data: dict[str, Any] = field(default_factory=dict)
    source: str = "game"
    timestamp: float = field(default_factory=time.time)


Handler = Callable[[Event], None]


class EventBus:
    """
    Central event bus for component communication.

    Handlers run synchronously in subscription order; a failing handler is
    logged and does not stop the others.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType | str, list[Handler]] = defaultdict(list)
        self._global_handlers: list[Handler] = []

    def subscribe(
        self,
        event_type: EventType | str,
        handler: Handler
    ) -> Callable[[], None]:
        """
        Subscribe to an event type.

        Args:
            event_type: Type of event to listen for
            handler: Callback function

        Returns:
            Unsubscribe function
        """
        self._handlers[event_type].append(handler)
        logger.debug(f"Handler subscribed to {event_type}")

        def unsubscribe() -> None:
            if handler in self._handlers[event_type]:
                self._handlers[event_type].remove(handler)
                logger.debug(f"Handler unsubscribed from {event_type}")

        return unsubscribe

    def subscribe_all(self, handler: Handler) -> Callable[[], None]:
        """
        Subscribe to all events.

        Returns:
            Unsubscribe function
        """
        self._global_handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._global_handlers:
                self._global_handlers.remove(handler)

        return unsubscribe

    def emit(self, event: Event) -> None:
        """Deliver an event to its handlers and the global handlers."""
        handlers = self._handlers.get(event.type, []) + self._global_handlers

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler: {e}")


def revealed_event(revealed: tuple[int, ...], generation: int) -> Event:
    """Create a number-revealed event."""
    return Event(
        EventType.NUMBER_REVEALED,
        data={
            "revealed": revealed,
            "number": revealed[-1],
            "index": len(revealed),
            "generation": generation,
        },
    )


def ai_error_event(capability: str, error: str) -> Event:
    """Create an AI failure event."""
    return Event(
        EventType.AI_REQUEST_ERROR,
        data={"capability": capability, "error": error},
        source="ai",
    )
