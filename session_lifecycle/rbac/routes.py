# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Route protection rules for the marketplace pages."""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote

from session_lifecycle.models.enums import UserRole
from session_lifecycle.schemas.user import User


class RouteProtection(str, Enum):
    """How a route is gated."""

    PUBLIC = "public"
    GUEST_ONLY = "guest_only"  # Only for visitors without a session
    AUTH_REQUIRED = "auth_required"
    ROLE_BASED = "role_based"


@dataclass(frozen=True)
class RouteConfig:
    """Protection rule for one path pattern.

    Patterns may contain `[param]` segments and a trailing `[...slug]`
    catch-all.
    """

    path: str
    protection: RouteProtection
    allowed_roles: frozenset[UserRole] | None = None
    require_verification: bool = False
    require_payment: bool = False


@dataclass
class RouteAccess:
    """Result of a route protection check."""

    allowed: bool
    redirect_to: str | None = None
    reason: str | None = None


_SELLER_ROLES = frozenset({UserRole.SELLER, UserRole.DEALER, UserRole.ADMIN})

# Left unescaped in the login redirect parameter
_URI_COMPONENT_SAFE = "!*'()"


def _public(path: str) -> RouteConfig:
    return RouteConfig(path, RouteProtection.PUBLIC)


ROUTE_CONFIGS: tuple[RouteConfig, ...] = (
    _public("/"),
    _public("/cars"),
    _public("/cars/[id]"),
    _public("/services"),
    _public("/about"),
    _public("/contact"),
    _public("/pricing"),
    _public("/terms"),
    _public("/privacy"),
    _public("/buyer-faqs"),
    _public("/vehicle-inspections-okinawa"),
    _public("/verification-info"),
    _public("/appraisal-info"),
    _public("/compliance-info"),
    _public("/financing"),
    _public("/inspection"),
    RouteConfig("/login", RouteProtection.GUEST_ONLY),
    RouteConfig("/signup", RouteProtection.GUEST_ONLY),
    RouteConfig("/request-listing", RouteProtection.GUEST_ONLY),
    RouteConfig("/profile", RouteProtection.AUTH_REQUIRED),
    RouteConfig("/guest-dashboard", RouteProtection.AUTH_REQUIRED),
    RouteConfig("/verification", RouteProtection.AUTH_REQUIRED),
    RouteConfig("/seller-dashboard", RouteProtection.ROLE_BASED, _SELLER_ROLES),
    RouteConfig(
        "/seller-dashboard/[...slug]", RouteProtection.ROLE_BASED, _SELLER_ROLES
    ),
    RouteConfig(
        "/seller-registration", RouteProtection.ROLE_BASED, frozenset({UserRole.GUEST})
    ),
    RouteConfig(
        "/seller-registration/[...slug]",
        RouteProtection.ROLE_BASED,
        frozenset({UserRole.GUEST}),
    ),
    RouteConfig(
        "/list-car",
        RouteProtection.ROLE_BASED,
        _SELLER_ROLES,
        require_verification=True,
    ),
    RouteConfig("/admin", RouteProtection.ROLE_BASED, frozenset({UserRole.ADMIN})),
    RouteConfig(
        "/admin/[...slug]", RouteProtection.ROLE_BASED, frozenset({UserRole.ADMIN})
    ),
    RouteConfig(
        "/verification/seller",
        RouteProtection.ROLE_BASED,
        frozenset({UserRole.SELLER, UserRole.DEALER}),
    ),
    RouteConfig(
        "/verification/dealer", RouteProtection.ROLE_BASED, frozenset({UserRole.DEALER})
    ),
)


def _is_param(segment: str) -> bool:
    return segment.startswith("[") and segment.endswith("]")


def _matches(pattern: str, path: str) -> bool:
    pattern_parts = pattern.split("/")
    path_parts = path.split("/")
    catch_all = "[..." in pattern

    if catch_all:
        if len(path_parts) < len(pattern_parts):
            return False
    elif len(pattern_parts) != len(path_parts):
        return False

    return all(
        _is_param(part) or part == path_parts[index]
        for index, part in enumerate(pattern_parts)
    )


def default_redirect_for(user: User | None) -> str:
    """Landing page for an authenticated user."""
    if user is None:
        return "/"
    if user.user_type == UserRole.ADMIN:
        return "/admin"
    if user.user_type in (UserRole.SELLER, UserRole.DEALER):
        return "/seller-dashboard"
    return "/guest-dashboard"


class RouteProtector:
    """Decides whether a user may open a page."""

    def __init__(
        self,
        configs: Iterable[RouteConfig] = ROUTE_CONFIGS,
        *,
        login_path: str = "/login",
        unauthorized_path: str = "/unauthorized",
    ) -> None:
        self._configs = tuple(configs)
        self.login_path = login_path
        self.unauthorized_path = unauthorized_path

    @property
    def configs(self) -> tuple[RouteConfig, ...]:
        return self._configs

    def get_route_config(self, path: str) -> RouteConfig | None:
        """Find the rule for a path: exact match first, then patterns."""
        for config in self._configs:
            if config.path == path:
                return config
        for config in self._configs:
            if "[" in config.path and _matches(config.path, path):
                return config
        return None

    def login_redirect(self, path: str) -> str:
        return f"{self.login_path}?redirect={quote(path, safe=_URI_COMPONENT_SAFE)}"

    def can_access(
        self, path: str, user: User | None, is_authenticated: bool
    ) -> RouteAccess:
        config = self.get_route_config(path)
        # Unconfigured routes are open
        if config is None or config.protection == RouteProtection.PUBLIC:
            return RouteAccess(allowed=True)

        if config.protection == RouteProtection.GUEST_ONLY:
            if is_authenticated:
                return RouteAccess(
                    allowed=False,
                    redirect_to=default_redirect_for(user),
                    reason="Already authenticated",
                )
            return RouteAccess(allowed=True)

        if not is_authenticated:
            return RouteAccess(
                allowed=False,
                redirect_to=self.login_redirect(path),
                reason="Authentication required",
            )

        if config.protection == RouteProtection.AUTH_REQUIRED:
            return RouteAccess(allowed=True)

        if user is None:
            return RouteAccess(
                allowed=False,
                redirect_to=self.unauthorized_path,
                reason="User data not available",
            )

        if config.allowed_roles is not None and user.user_type not in config.allowed_roles:
            return RouteAccess(
                allowed=False,
                redirect_to=self.unauthorized_path,
                reason="Insufficient role permissions",
            )

        profile = user.seller_profile
        if config.require_verification and user.user_type == UserRole.SELLER:
            if profile is None or profile.verification_status != "verified":
                return RouteAccess(
                    allowed=False,
                    redirect_to="/seller-dashboard/verify-identity",
                    reason="Verification required",
                )

        if config.require_payment and user.user_type == UserRole.SELLER:
            if profile is None or profile.payment_status != "active":
                return RouteAccess(
                    allowed=False,
                    redirect_to="/seller-registration/payment",
                    reason="Payment required",
                )

        return RouteAccess(allowed=True)
