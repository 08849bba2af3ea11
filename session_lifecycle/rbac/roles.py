# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Role hierarchy and the static route permission table."""

from session_lifecycle.models.enums import UserRole
from session_lifecycle.schemas.user import User

# Higher level implies every privilege of the lower levels
ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.GUEST: 1,
    UserRole.SELLER: 2,
    UserRole.DEALER: 3,
    UserRole.ADMIN: 4,
}

# Routes absent from this table are public
ROUTE_PERMISSIONS: dict[str, frozenset[UserRole]] = {
    "/guest-dashboard": frozenset(
        {UserRole.GUEST, UserRole.SELLER, UserRole.DEALER, UserRole.ADMIN}
    ),
    "/seller-dashboard": frozenset({UserRole.SELLER, UserRole.DEALER, UserRole.ADMIN}),
    "/admin": frozenset({UserRole.ADMIN}),
    "/dealer": frozenset({UserRole.DEALER, UserRole.ADMIN}),
}


def role_level(role: UserRole | str) -> int:
    """Hierarchy ordinal of a role; unknown roles rank below guest."""
    try:
        return ROLE_HIERARCHY[UserRole(role)]
    except ValueError:
        return 0


def has_permission(user: User | None, required_role: UserRole | str) -> bool:
    """Check that the user's role is at least the required one.

    Unknown required roles are never granted.
    """
    required = role_level(required_role)
    if user is None or required == 0:
        return False
    return role_level(user.user_type) >= required


def can_access_route(user: User | None, route: str) -> bool:
    """Check the static route table. Unlisted routes are public."""
    allowed_roles = ROUTE_PERMISSIONS.get(route)
    if allowed_roles is None:
        return True
    if user is None:
        return False
    return user.user_type in allowed_roles
