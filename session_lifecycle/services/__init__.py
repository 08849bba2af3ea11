# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Services package."""
from session_lifecycle.services.activity import QUALIFYING_EVENTS, ActivityTracker
from session_lifecycle.services.session_monitor import SessionMonitor
from session_lifecycle.services.session_store import (
    Session,
    SessionError,
    SessionInfo,
    SessionLoadResult,
    SessionStorageError,
    SessionStore,
)
from session_lifecycle.services.session_validator import (
    SessionValidationResult,
    SessionValidator,
)

__all__ = [
    "QUALIFYING_EVENTS",
    "ActivityTracker",
    "Session",
    "SessionError",
    "SessionInfo",
    "SessionLoadResult",
    "SessionMonitor",
    "SessionStorageError",
    "SessionStore",
    "SessionValidationResult",
    "SessionValidator",
]
