# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""FastAPI application entry point."""

import logging
import platform
import time
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from session_lifecycle import __version__
from session_lifecycle.api.middleware import SessionCookieMiddleware
from session_lifecycle.api.v1.router import api_router
from session_lifecycle.config import Settings, get_settings, now_ms
from session_lifecycle.events import SessionEventBus
from session_lifecycle.integrations import AuthProvider, HttpAuthProvider
from session_lifecycle.rbac.routes import RouteProtector
from session_lifecycle.services import (
    ActivityTracker,
    SessionMonitor,
    SessionStore,
    SessionValidator,
)
from session_lifecycle.storage import (
    CookieJar,
    DeviceIdProvider,
    DeviceSignals,
    FingerprintDeviceIdProvider,
    MemoryCookieJar,
    SqlStorage,
    StoragePort,
    build_engine,
)

logger = logging.getLogger(__name__)


def host_device_signals() -> DeviceSignals:
    """Device signals for a process without a browser."""
    return DeviceSignals(
        user_agent=f"session-lifecycle/{__version__} ({platform.platform()})",
        language="en-US",
        screen_width=0,
        screen_height=0,
        timezone_offset=time.timezone // 60,
    )


def create_app(
    settings: Settings | None = None,
    *,
    storage: StoragePort | None = None,
    cookies: CookieJar | None = None,
    auth: AuthProvider | None = None,
    device_ids: DeviceIdProvider | None = None,
    clock: Callable[[], int] = now_ms,
    start_monitor: bool = True,
) -> FastAPI:
    """Build the application and wire the session services.

    Adapters not passed in are built from settings: SQL-backed durable
    storage, an in-process cookie jar and the HTTP auth backend.
    """
    settings = settings or get_settings()

    if storage is None:
        storage = SqlStorage(
            build_engine(settings.database_url), settings.storage_namespace
        )
    if cookies is None:
        cookies = MemoryCookieJar(clock)
    if auth is None:
        auth = HttpAuthProvider(settings.auth_api_url)
    if device_ids is None:
        device_ids = FingerprintDeviceIdProvider(storage, host_device_signals())

    store = SessionStore(
        storage,
        cookies,
        device_ids,
        clock=clock,
        secure_cookies=settings.secure_cookies,
        events=SessionEventBus(),
    )
    validator = SessionValidator(
        store,
        auth,
        clock=clock,
        refresh_timeout=settings.refresh_timeout_seconds,
        login_path=settings.login_path,
    )

    def on_redirect(target: str) -> None:
        logger.info(f"Session monitor requested redirect to {target}")

    monitor = SessionMonitor(
        validator,
        interval_seconds=settings.monitor_interval_seconds,
        on_redirect=on_redirect,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup and shutdown events."""
        if start_monitor:
            monitor.start()
        yield
        logger.info("Shutting down session services...")
        await monitor.aclose()
        await auth.close()

    app = FastAPI(
        title="Session Lifecycle",
        description="Client-side session persistence and validation",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.session_store = store
    app.state.session_validator = validator
    app.state.session_monitor = monitor
    app.state.activity_tracker = ActivityTracker(
        store,
        throttle_seconds=settings.activity_throttle_seconds,
        clock=clock,
    )
    app.state.route_protector = RouteProtector(
        login_path=settings.login_path,
        unauthorized_path=settings.unauthorized_path,
    )

    app.add_middleware(
        SessionCookieMiddleware,
        login_path=settings.login_path,
        unauthorized_path=settings.unauthorized_path,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "healthy"}

    app.include_router(api_router, prefix="/api/v1")
    return app
