# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Session API response schemas."""
from typing import Optional

from pydantic import BaseModel, Field

from session_lifecycle.models.enums import SessionState
from session_lifecycle.schemas.user import CamelModel, User


class SessionInfoResponse(BaseModel):
    """Diagnostic snapshot of the stored session."""

    has_session: bool
    is_expired: bool
    needs_refresh: bool
    is_inactive: bool
    expires_in: int
    last_activity: int


class SessionValidationResponse(BaseModel):
    """Outcome of a validation pass."""

    state: SessionState
    user: Optional[User] = None
    expires_at: Optional[int] = None
    message: str
    should_redirect: bool
    redirect_to: Optional[str] = None


class RouteAccessResponse(BaseModel):
    """Route protection decision for the current user."""

    path: str
    allowed: bool
    redirect_to: Optional[str] = None
    reason: Optional[str] = None


class SessionCreateRequest(CamelModel):
    """Login response to persist as the current session."""

    user: User
    token: str
    refresh_token: str = Field(..., alias="refreshToken")
    expires_in: int = Field(..., gt=0, alias="expiresIn")  # milliseconds
    remember_me: bool = Field(False, alias="rememberMe")


class ActivityRequest(BaseModel):
    """A user input event."""

    event: str


class ActivityResponse(BaseModel):
    """Whether the activity timestamp was written."""

    recorded: bool
