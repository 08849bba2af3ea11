# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Pydantic schemas."""

from session_lifecycle.schemas.user import (
    SellerProfile,
    TokenResponse,
    User,
    UserPreferences,
)

__all__ = ["SellerProfile", "TokenResponse", "User", "UserPreferences"]
