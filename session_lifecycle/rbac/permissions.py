# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Feature permissions granted to each role."""

from enum import Enum

from session_lifecycle.models.enums import UserRole
from session_lifecycle.schemas.user import User


class Permission(str, Enum):
    """Marketplace feature permissions."""

    VIEW_DASHBOARD = "view_dashboard"
    MANAGE_LISTINGS = "manage_listings"
    VIEW_MESSAGES = "view_messages"
    SEND_MESSAGES = "send_messages"
    MANAGE_PROFILE = "manage_profile"
    VIEW_ANALYTICS = "view_analytics"
    MANAGE_USERS = "manage_users"
    MANAGE_SYSTEM = "manage_system"
    VERIFY_USERS = "verify_users"
    MANAGE_PAYMENTS = "manage_payments"
    VIEW_REPORTS = "view_reports"
    MANAGE_INSPECTIONS = "manage_inspections"
    MANAGE_APPRAISALS = "manage_appraisals"


_GUEST_PERMISSIONS = frozenset(
    {
        Permission.VIEW_DASHBOARD,
        Permission.VIEW_MESSAGES,
        Permission.SEND_MESSAGES,
        Permission.MANAGE_PROFILE,
    }
)

_SELLER_PERMISSIONS = _GUEST_PERMISSIONS | {
    Permission.MANAGE_LISTINGS,
    Permission.VIEW_ANALYTICS,
    Permission.MANAGE_INSPECTIONS,
    Permission.MANAGE_APPRAISALS,
}

_DEALER_PERMISSIONS = _SELLER_PERMISSIONS | {
    Permission.MANAGE_PAYMENTS,
    Permission.VIEW_REPORTS,
}

ROLE_PERMISSIONS: dict[UserRole, frozenset[Permission]] = {
    UserRole.GUEST: _GUEST_PERMISSIONS,
    UserRole.SELLER: _SELLER_PERMISSIONS,
    UserRole.DEALER: _DEALER_PERMISSIONS,
    # Admin holds every permission
    UserRole.ADMIN: frozenset(Permission),
}


def get_role_permissions(role: UserRole) -> frozenset[Permission]:
    return ROLE_PERMISSIONS.get(role, frozenset())


def user_has_permission(user: User | None, permission: Permission | str) -> bool:
    """Check whether the user's role grants a feature permission."""
    if user is None:
        return False
    try:
        permission = Permission(permission)
    except ValueError:
        return False
    return permission in get_role_permissions(user.user_type)
