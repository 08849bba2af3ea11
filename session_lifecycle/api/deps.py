# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""API dependencies for dependency injection.

Services live on `app.state`, wired once by the composition root.
"""

from fastapi import Depends, HTTPException, Request, status

from session_lifecycle.models.enums import UserRole
from session_lifecycle.rbac.routes import RouteProtector
from session_lifecycle.services.activity import ActivityTracker
from session_lifecycle.services.session_store import SessionStore
from session_lifecycle.services.session_validator import (
    SessionValidationResult,
    SessionValidator,
)


def get_session_store(request: Request) -> SessionStore:
    """Get the application's session store."""
    return request.app.state.session_store


def get_session_validator(request: Request) -> SessionValidator:
    """Get the application's session validator."""
    return request.app.state.session_validator


def get_route_protector(request: Request) -> RouteProtector:
    """Get the application's route protector."""
    return request.app.state.route_protector


def get_activity_tracker(request: Request) -> ActivityTracker:
    """Get the application's activity tracker."""
    return request.app.state.activity_tracker


async def get_current_session(
    validator: SessionValidator = Depends(get_session_validator),
) -> SessionValidationResult:
    """Validate the stored session, rejecting signed-out states."""
    result = await validator.validate_session()
    if result.should_redirect or result.user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.message,
        )
    return result


def require_role(required_role: UserRole):
    """Dependency requiring at least the given role."""

    def dependency(
        session: SessionValidationResult = Depends(get_current_session),
        validator: SessionValidator = Depends(get_session_validator),
    ) -> SessionValidationResult:
        if not validator.has_permission(session.user, required_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{required_role.value.capitalize()} role required",
            )
        return session

    return dependency
