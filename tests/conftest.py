# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
import asyncio
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from session_lifecycle.config import MINUTE_MS, Settings
from session_lifecycle.integrations.base import AuthProvider
from session_lifecycle.main import create_app
from session_lifecycle.models.enums import UserRole
from session_lifecycle.schemas.user import SellerProfile, TokenResponse, User
from session_lifecycle.services.session_store import SessionStore
from session_lifecycle.services.session_validator import SessionValidator
from session_lifecycle.storage.device import StaticDeviceIdProvider
from session_lifecycle.storage.memory import MemoryCookieJar, MemoryStorage

# Fixed start of every test clock: 2025-01-15 12:00:00 UTC
START_MS = 1_736_942_400_000

TEST_DEVICE_ID = "testdevice"


class FakeClock:
    """Deterministic epoch-millisecond clock."""

    def __init__(self, start: int = START_MS) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeAuthProvider(AuthProvider):
    """Auth backend stub with scripted answers and call counters."""

    def __init__(self) -> None:
        self.refresh_result: TokenResponse | None = TokenResponse(
            token="new-access", refresh_token="new-refresh", expires_in=86_400_000
        )
        self.refresh_error: Exception | None = None
        self.refresh_delay: float = 0.0
        self.user_result: User | None = None
        self.user_error: Exception | None = None
        self.refresh_calls: list[str] = []
        self.user_calls: list[str] = []
        self.closed = False

    async def refresh_token(self, refresh_token: str) -> TokenResponse | None:
        self.refresh_calls.append(refresh_token)
        if self.refresh_delay:
            await asyncio.sleep(self.refresh_delay)
        if self.refresh_error is not None:
            raise self.refresh_error
        return self.refresh_result

    async def get_current_user(self, token: str) -> User | None:
        self.user_calls.append(token)
        if self.user_error is not None:
            raise self.user_error
        return self.user_result

    async def close(self) -> None:
        self.closed = True


def make_user(role: UserRole = UserRole.GUEST, **overrides) -> User:
    """Build a user snapshot for tests."""
    data = {
        "id": f"user-{role.value}",
        "email": f"{role.value}@example.com",
        "name": f"Test {role.value.capitalize()}",
        "user_type": role,
        "is_verified": True,
        "created_at": datetime(2024, 6, 1, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return User(**data)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def cookies(clock) -> MemoryCookieJar:
    return MemoryCookieJar(clock)


@pytest.fixture
def store(storage, cookies, clock) -> SessionStore:
    """Session store over in-memory surfaces."""
    return SessionStore(
        storage, cookies, StaticDeviceIdProvider(TEST_DEVICE_ID), clock=clock
    )


@pytest.fixture
def auth() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture
def validator(store, auth, clock) -> SessionValidator:
    return SessionValidator(store, auth, clock=clock, refresh_timeout=0.5)


@pytest.fixture
def guest_user() -> User:
    return make_user(UserRole.GUEST)


@pytest.fixture
def seller_user() -> User:
    return make_user(
        UserRole.SELLER,
        seller_profile=SellerProfile(
            verification_status="verified", payment_status="active"
        ),
    )


@pytest.fixture
def admin_user() -> User:
    return make_user(UserRole.ADMIN)


@pytest.fixture
def saved_session(store, guest_user, clock):
    """A fresh guest session expiring in 24 hours."""
    return store.save_session(
        guest_user,
        "access-token",
        "refresh-token",
        clock() + store.policy.access_token_expiry,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        origin="http://localhost:3000",
        auth_api_url="http://auth.test/api",
        monitor_interval_seconds=3600,
    )


@pytest.fixture
def app(settings, storage, cookies, auth, clock):
    """Application wired to in-memory adapters."""
    return create_app(
        settings,
        storage=storage,
        cookies=cookies,
        auth=auth,
        device_ids=StaticDeviceIdProvider(TEST_DEVICE_ID),
        clock=clock,
        start_monitor=False,
    )


@pytest.fixture
def client(app):
    """Create a test client for the application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def authenticated_client(client, app, guest_user, clock):
    """Test client with a stored guest session."""
    app.state.session_store.save_session(
        guest_user, "access-token", "refresh-token", clock() + 60 * MINUTE_MS
    )
    return client


@pytest.fixture
def user_factory():
    """Factory building user snapshots for a given role."""
    return make_user


@pytest.fixture
def device_id() -> str:
    return TEST_DEVICE_ID
