# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Session change notifications."""

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class SessionEvent(str, Enum):
    """Changes the session store announces."""

    SESSION_SAVED = "session.saved"
    SESSION_CLEARED = "session.cleared"
    USER_UPDATED = "user.updated"
    TOKENS_UPDATED = "tokens.updated"


@dataclass
class SessionEventPayload:
    """Payload for a session event."""

    event_type: SessionEvent
    timestamp: datetime
    data: dict[str, Any]


# Type alias for event handlers
EventHandler = Callable[[SessionEventPayload], Any]


class SessionEventBus:
    """Delivers session events to subscribers.

    Handlers run synchronously in subscription order. A failing handler is
    logged and does not prevent delivery to the others.
    """

    def __init__(self) -> None:
        """Initialize the event bus."""
        self._handlers: dict[SessionEvent, list[EventHandler]] = defaultdict(list)

    def subscribe(
        self, event_type: SessionEvent, handler: EventHandler
    ) -> Callable[[], None]:
        """Subscribe to an event.

        Args:
            event_type: Event type to subscribe to
            handler: Function to call when the event fires

        Returns:
            Callable that removes the subscription
        """
        self._handlers[event_type].append(handler)
        logger.debug(f"Subscribed handler to session event {event_type.value}")

        def unsubscribe() -> None:
            self.unsubscribe(event_type, handler)

        return unsubscribe

    def subscribe_all(self, handler: EventHandler) -> Callable[[], None]:
        """Subscribe one handler to every session event."""
        removers = [self.subscribe(event_type, handler) for event_type in SessionEvent]

        def unsubscribe() -> None:
            for remove in removers:
                remove()

        return unsubscribe

    def unsubscribe(self, event_type: SessionEvent, handler: EventHandler) -> None:
        """Unsubscribe from an event. Unknown handlers are ignored."""
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)

    def publish(self, event_type: SessionEvent, data: dict[str, Any]) -> None:
        """Publish an event to all subscribers.

        Args:
            event_type: Type of event
            data: Event data payload
        """
        payload = SessionEventPayload(
            event_type=event_type,
            timestamp=datetime.now(timezone.utc),
            data=data,
        )

        for handler in list(self._handlers.get(event_type, [])):
            try:
                handler(payload)
            except Exception as e:
                logger.error(
                    f"Error in session event handler for {event_type.value}: {e}"
                )

    def get_subscriber_count(self, event_type: SessionEvent) -> int:
        """Get the number of subscribers for an event type."""
        return len(self._handlers.get(event_type, []))
