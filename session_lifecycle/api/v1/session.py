# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Session API endpoints."""

from dataclasses import asdict
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response, status

from session_lifecycle.api.deps import (
    get_activity_tracker,
    get_current_session,
    get_route_protector,
    get_session_store,
    get_session_validator,
    require_role,
)
from session_lifecycle.models.enums import SessionState, UserRole
from session_lifecycle.rbac.permissions import get_role_permissions
from session_lifecycle.rbac.routes import RouteProtector
from session_lifecycle.schemas.session import (
    ActivityRequest,
    ActivityResponse,
    RouteAccessResponse,
    SessionCreateRequest,
    SessionInfoResponse,
    SessionValidationResponse,
)
from session_lifecycle.schemas.user import User
from session_lifecycle.services.activity import ActivityTracker
from session_lifecycle.services.session_store import SessionStorageError, SessionStore
from session_lifecycle.services.session_validator import (
    SessionValidationResult,
    SessionValidator,
)

router = APIRouter()

# quick_validate states under which the stored session may be used as is
AUTHENTICATED_STATES = frozenset({SessionState.VALID, SessionState.REFRESH_NEEDED})


def build_validation_response(
    result: SessionValidationResult,
) -> SessionValidationResponse:
    """Build the public view of a validation result, without tokens."""
    return SessionValidationResponse(
        state=result.state,
        user=result.user,
        expires_at=result.expires_at,
        message=result.message,
        should_redirect=result.should_redirect,
        redirect_to=result.redirect_to,
    )


def set_session_cookies(response: Response, store: SessionStore) -> None:
    """Copy the store's cookie surface onto the response."""
    now = store.now()
    for name, cookie in store.get_cookies().items():
        if cookie is None:
            response.delete_cookie(key=name, path="/")
            continue
        response.set_cookie(
            key=name,
            value=cookie.value,
            max_age=max(0, (cookie.expires_at - now) // 1000),
            expires=datetime.fromtimestamp(cookie.expires_at / 1000, tz=timezone.utc),
            path=cookie.path,
            secure=cookie.secure,
            samesite=cookie.samesite,
        )


@router.post(
    "",
    response_model=SessionValidationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_session(
    data: SessionCreateRequest,
    response: Response,
    store: SessionStore = Depends(get_session_store),
    validator: SessionValidator = Depends(get_session_validator),
) -> SessionValidationResponse:
    """Persist a login response as the current session."""
    try:
        store.save_session(
            data.user,
            data.token,
            data.refresh_token,
            store.now() + data.expires_in,
            remember_me=data.remember_me,
        )
    except SessionStorageError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        ) from e
    set_session_cookies(response, store)
    return build_validation_response(validator.quick_validate())


@router.get("/info", response_model=SessionInfoResponse)
def get_session_info(
    store: SessionStore = Depends(get_session_store),
) -> SessionInfoResponse:
    """Diagnostic snapshot of the stored session."""
    return SessionInfoResponse(**asdict(store.get_session_info()))


@router.get("/quick", response_model=SessionValidationResponse)
def quick_validate(
    response: Response,
    store: SessionStore = Depends(get_session_store),
    validator: SessionValidator = Depends(get_session_validator),
) -> SessionValidationResponse:
    """Storage-only validation; never refreshes."""
    result = validator.quick_validate()
    set_session_cookies(response, store)
    return build_validation_response(result)


@router.post("/validate", response_model=SessionValidationResponse)
async def validate_session(
    response: Response,
    force_refresh: bool = False,
    verify_with_server: bool = False,
    store: SessionStore = Depends(get_session_store),
    validator: SessionValidator = Depends(get_session_validator),
) -> SessionValidationResponse:
    """Run a full validation pass, refreshing tokens when due."""
    result = await validator.validate_session(
        force_refresh, verify_with_server=verify_with_server
    )
    set_session_cookies(response, store)
    return build_validation_response(result)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    response: Response,
    store: SessionStore = Depends(get_session_store),
) -> None:
    """Clear the stored session and expire its cookies."""
    store.clear_session()
    set_session_cookies(response, store)


@router.post("/activity", response_model=ActivityResponse)
def record_activity(
    data: ActivityRequest,
    tracker: ActivityTracker = Depends(get_activity_tracker),
) -> ActivityResponse:
    """Forward a user input event to the activity tracker."""
    return ActivityResponse(recorded=tracker.record(data.event))


@router.get("/me", response_model=User)
def get_current_user(
    session: SessionValidationResult = Depends(get_current_session),
) -> User:
    """Get the user of a valid session."""
    return session.user


@router.get("/permissions")
def get_permissions(
    session: SessionValidationResult = Depends(get_current_session),
) -> dict:
    """Feature permissions granted by the current user's role."""
    permissions = get_role_permissions(session.user.user_type)
    return {
        "role": session.user.user_type.value,
        "permissions": sorted(p.value for p in permissions),
    }


@router.get("/access", response_model=RouteAccessResponse)
def check_route_access(
    path: str,
    validator: SessionValidator = Depends(get_session_validator),
    protector: RouteProtector = Depends(get_route_protector),
) -> RouteAccessResponse:
    """Decide whether the current user may open a page."""
    result = validator.quick_validate()
    access = protector.can_access(
        path, result.user, result.state in AUTHENTICATED_STATES
    )
    return RouteAccessResponse(
        path=path,
        allowed=access.allowed,
        redirect_to=access.redirect_to,
        reason=access.reason,
    )


@router.get("/routes")
def list_route_permissions(
    _: SessionValidationResult = Depends(require_role(UserRole.ADMIN)),
    protector: RouteProtector = Depends(get_route_protector),
) -> list[dict]:
    """List the route protection table (admin only)."""
    return [
        {
            "path": config.path,
            "protection": config.protection.value,
            "allowed_roles": sorted(r.value for r in config.allowed_roles or ()),
            "require_verification": config.require_verification,
            "require_payment": config.require_payment,
        }
        for config in protector.configs
    ]
