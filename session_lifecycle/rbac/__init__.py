# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Role-based access control."""
from session_lifecycle.rbac.permissions import (
    ROLE_PERMISSIONS,
    Permission,
    user_has_permission,
)
from session_lifecycle.rbac.roles import (
    ROLE_HIERARCHY,
    ROUTE_PERMISSIONS,
    can_access_route,
    has_permission,
    role_level,
)
from session_lifecycle.rbac.routes import (
    ROUTE_CONFIGS,
    RouteAccess,
    RouteConfig,
    RouteProtection,
    RouteProtector,
    default_redirect_for,
)

__all__ = [
    "ROLE_HIERARCHY",
    "ROLE_PERMISSIONS",
    "ROUTE_CONFIGS",
    "ROUTE_PERMISSIONS",
    "Permission",
    "RouteAccess",
    "RouteConfig",
    "RouteProtection",
    "RouteProtector",
    "can_access_route",
    "default_redirect_for",
    "has_permission",
    "role_level",
    "user_has_permission",
]
