# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Cookie-based route gate for server-rendered pages.

Reads only the cookie surface written by the session store, so pages can be
gated without parsing the durable store.
"""

from collections.abc import Iterable
from urllib.parse import quote

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from session_lifecycle.models.enums import UserRole
from session_lifecycle.services.session_store import (
    AUTH_TOKEN_COOKIE,
    USER_TYPE_COOKIE,
)

PUBLIC_ROUTES = frozenset(
    {
        "/",
        "/about",
        "/services",
        "/services/sellers",
        "/services/buyers",
        "/services/businesses",
        "/contact",
        "/cars",
        "/pricing",
        "/terms",
        "/privacy",
        "/buyer-faqs",
        "/vehicle-inspections-okinawa",
        "/verification-info",
        "/appraisal-info",
        "/compliance-info",
        "/financing",
        "/inspection",
        "/login",
        "/signup",
        "/forgot-password",
        "/unauthorized",
        "/request-listing",
    }
)

# API routes, static files and framework internals are never gated here
EXCLUDED_PREFIXES = (
    "/api",
    "/_next",
    "/favicon.ico",
    "/images",
    "/placeholder.svg",
    "/public",
    "/health",
)

ADMIN_PREFIX = "/admin"
SELLER_PREFIXES = ("/seller-dashboard", "/seller-registration", "/list-car")
SELLER_ROLES = frozenset(
    {UserRole.SELLER.value, UserRole.DEALER.value, UserRole.ADMIN.value}
)


class SessionCookieMiddleware(BaseHTTPMiddleware):
    """Redirects requests for protected pages that lack a suitable session."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        login_path: str = "/login",
        unauthorized_path: str = "/unauthorized",
        public_routes: Iterable[str] = PUBLIC_ROUTES,
        excluded_prefixes: Iterable[str] = EXCLUDED_PREFIXES,
    ) -> None:
        super().__init__(app)
        self.login_path = login_path
        self.unauthorized_path = unauthorized_path
        self.public_routes = frozenset(public_routes)
        self.excluded_prefixes = tuple(excluded_prefixes)

    def is_public(self, path: str) -> bool:
        if path.startswith(self.excluded_prefixes):
            return True
        return path in self.public_routes or path.startswith("/cars/")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if self.is_public(path):
            return await call_next(request)

        token = request.cookies.get(AUTH_TOKEN_COOKIE)
        user_type = request.cookies.get(USER_TYPE_COOKIE)

        if not token:
            return RedirectResponse(
                f"{self.login_path}?redirect={quote(path, safe='')}",
                status_code=307,
            )

        # Role checks only apply when the role cookie is present
        if user_type:
            if path.startswith(ADMIN_PREFIX) and user_type != UserRole.ADMIN.value:
                return RedirectResponse(self.unauthorized_path, status_code=307)
            if path.startswith(SELLER_PREFIXES) and user_type not in SELLER_ROLES:
                return RedirectResponse(self.unauthorized_path, status_code=307)

        return await call_next(request)
