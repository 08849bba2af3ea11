# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Throttled user-activity tracking."""

from collections.abc import Callable

from session_lifecycle.config import now_ms
from session_lifecycle.services.session_store import SessionStore

QUALIFYING_EVENTS = frozenset(
    {"mousedown", "mousemove", "keypress", "scroll", "touchstart", "click"}
)


class ActivityTracker:
    """Forwards input events to the store at a bounded rate.

    Input listeners may call record() on every event; the activity timestamp
    is written at most once per throttle window.
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        throttle_seconds: float = 60.0,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._clock = clock
        self._throttle_ms = int(throttle_seconds * 1000)
        self._last_write: int | None = None

    def record(self, event_type: str) -> bool:
        """Handle one input event. Returns True when activity was written."""
        if event_type not in QUALIFYING_EVENTS:
            return False
        return self._touch()

    def tick(self) -> bool:
        """Polling-tick variant of record()."""
        return self._touch()

    def _touch(self) -> bool:
        now = self._clock()
        if self._last_write is not None and now - self._last_write < self._throttle_ms:
            return False
        self._last_write = now
        self._store.update_last_activity()
        return True
