# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Enumeration types for the session domain."""

from enum import Enum


class UserRole(str, Enum):
    """Marketplace account type.

    Ordered: guest < seller < dealer < admin. A higher role carries every
    privilege of the roles below it.
    """

    GUEST = "guest"
    SELLER = "seller"
    DEALER = "dealer"
    ADMIN = "admin"


class SessionState(str, Enum):
    """Outcome of a session validation pass."""

    VALID = "valid"
    EXPIRED = "expired"  # Hard expiry reached, refresh not attempted yet
    INACTIVE = "inactive"
    INVALID = "invalid"  # Revoked server-side or unreadable
    REFRESH_NEEDED = "refresh_needed"
    REFRESH_FAILED = "refresh_failed"
    NO_SESSION = "no_session"
