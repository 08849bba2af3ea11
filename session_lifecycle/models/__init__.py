# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Database models and enumerations."""

from session_lifecycle.models.base import Base, TimestampMixin
from session_lifecycle.models.enums import SessionState, UserRole
from session_lifecycle.models.storage_entry import StorageEntry

__all__ = [
    "Base",
    "SessionState",
    "StorageEntry",
    "TimestampMixin",
    "UserRole",
]
