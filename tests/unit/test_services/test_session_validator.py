# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Tests for the session validator."""

import asyncio

import pytest

from session_lifecycle.config import HOUR_MS, MINUTE_MS
from session_lifecycle.integrations.base import AuthProviderError
from session_lifecycle.models.enums import SessionState, UserRole
from session_lifecycle.services.session_store import USER_DATA_KEY


@pytest.fixture
def expires_at(saved_session) -> int:
    return saved_session.expires_at


class TestValidateSession:
    """Tests for validate_session state transitions."""

    @pytest.mark.asyncio
    async def test_no_session(self, validator, auth):
        result = await validator.validate_session()

        assert result.state == SessionState.NO_SESSION
        assert result.should_redirect is True
        assert result.redirect_to == "/login"
        assert result.user is None
        assert auth.refresh_calls == []

    @pytest.mark.asyncio
    async def test_valid_session_touches_activity(
        self, validator, store, saved_session, clock, auth
    ):
        clock.advance(10 * MINUTE_MS)

        result = await validator.validate_session()

        assert result.state == SessionState.VALID
        assert result.should_redirect is False
        assert result.user == saved_session.user
        assert result.access_token == "access-token"
        assert result.expires_at == saved_session.expires_at
        assert store.load_session().last_activity == clock()
        assert auth.refresh_calls == []

    @pytest.mark.asyncio
    async def test_expired_session_refreshes(
        self, validator, store, expires_at, clock, auth
    ):
        """A refresh past hard expiry reports refresh_needed with new tokens."""
        clock.now = expires_at + 1

        result = await validator.validate_session()

        assert result.state == SessionState.REFRESH_NEEDED
        assert result.access_token == "new-access"
        assert result.refresh_token == "new-refresh"
        assert result.expires_at == clock() + 24 * HOUR_MS
        assert auth.refresh_calls == ["refresh-token"]
        assert store.get_access_token() == "new-access"
        assert store.load_session().expires_at == result.expires_at

    @pytest.mark.asyncio
    async def test_expired_session_refresh_failure_clears(
        self, validator, store, expires_at, clock, auth
    ):
        clock.now = expires_at
        auth.refresh_result = None

        result = await validator.validate_session()

        assert result.state == SessionState.REFRESH_FAILED
        assert result.should_redirect is True
        assert result.redirect_to == "/login"
        assert store.has_session() is False

    @pytest.mark.asyncio
    async def test_expiry_wins_over_inactivity(
        self, validator, store, expires_at, clock, auth
    ):
        """An expired and idle session is still offered a refresh first."""
        clock.now = expires_at + HOUR_MS

        result = await validator.validate_session()

        assert result.state == SessionState.REFRESH_NEEDED
        assert len(auth.refresh_calls) == 1

    @pytest.mark.asyncio
    async def test_inactive_session_clears_without_refresh(
        self, validator, store, saved_session, clock, auth
    ):
        clock.advance(15 * MINUTE_MS + 1)

        result = await validator.validate_session()

        assert result.state == SessionState.INACTIVE
        assert result.should_redirect is True
        assert store.has_session() is False
        assert auth.refresh_calls == []

    @pytest.mark.asyncio
    async def test_inactivity_wins_over_refresh_window(
        self, validator, store, guest_user, clock, auth
    ):
        """An idle user is not silently re-authenticated."""
        store.save_session(guest_user, "a1", "r1", clock() + 20 * MINUTE_MS)
        clock.advance(16 * MINUTE_MS)

        result = await validator.validate_session()

        assert result.state == SessionState.INACTIVE
        assert auth.refresh_calls == []

    @pytest.mark.asyncio
    async def test_refresh_window_refreshes(
        self, validator, store, guest_user, clock, auth
    ):
        store.save_session(guest_user, "a1", "r1", clock() + 10 * MINUTE_MS)
        clock.advance(6 * MINUTE_MS)

        result = await validator.validate_session()

        assert result.state == SessionState.VALID
        assert result.message == "Token refreshed successfully"
        assert result.access_token == "new-access"
        assert auth.refresh_calls == ["r1"]
        assert store.get_refresh_token() == "new-refresh"

    @pytest.mark.asyncio
    async def test_refresh_failure_before_expiry_degrades_to_valid(
        self, validator, store, guest_user, clock, auth
    ):
        expires_at = clock() + 10 * MINUTE_MS
        store.save_session(guest_user, "a1", "r1", expires_at)
        clock.advance(6 * MINUTE_MS)
        auth.refresh_error = AuthProviderError("backend down")

        result = await validator.validate_session()

        assert result.state == SessionState.VALID
        assert result.message == "Token refresh failed but session still valid"
        assert result.access_token == "a1"
        assert result.expires_at == expires_at
        assert store.has_session() is True

    @pytest.mark.asyncio
    async def test_force_refresh_outside_window(
        self, validator, saved_session, auth
    ):
        result = await validator.validate_session(force_refresh=True)

        assert result.state == SessionState.VALID
        assert result.access_token == "new-access"
        assert auth.refresh_calls == ["refresh-token"]

    @pytest.mark.asyncio
    async def test_refresh_timeout_counts_as_failure(
        self, validator, store, expires_at, clock, auth
    ):
        clock.now = expires_at
        auth.refresh_delay = 5.0

        result = await validator.validate_session()

        assert result.state == SessionState.REFRESH_FAILED
        assert store.has_session() is False

    @pytest.mark.asyncio
    async def test_unexpected_error_clears_session(
        self, validator, store, saved_session, monkeypatch
    ):
        def boom():
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(store, "update_last_activity", boom)

        result = await validator.validate_session()

        assert result.state == SessionState.INVALID
        assert result.message == "Session validation failed"
        assert result.redirect_to == "/login"
        assert store.has_session() is False

    @pytest.mark.asyncio
    async def test_corrupt_session_reads_as_no_session(
        self, validator, store, storage, saved_session
    ):
        storage.set(USER_DATA_KEY, "not json")

        result = await validator.validate_session()

        assert result.state == SessionState.NO_SESSION
        assert store.has_session() is False


class TestVerifyWithServer:
    """Tests for the server re-check of validate_session."""

    @pytest.mark.asyncio
    async def test_revoked_session_is_invalid(
        self, validator, store, saved_session, auth
    ):
        auth.user_result = None

        result = await validator.validate_session(verify_with_server=True)

        assert result.state == SessionState.INVALID
        assert result.should_redirect is True
        assert auth.user_calls == ["access-token"]
        assert store.has_session() is False

    @pytest.mark.asyncio
    async def test_changed_user_is_stored(
        self, validator, store, saved_session, auth, user_factory
    ):
        upgraded = user_factory(UserRole.SELLER, id=saved_session.user.id)
        auth.user_result = upgraded

        result = await validator.validate_session(verify_with_server=True)

        assert result.state == SessionState.VALID
        assert result.user == upgraded
        assert store.get_current_user() == upgraded

    @pytest.mark.asyncio
    async def test_change_in_backend_only_field_is_stored(
        self, validator, store, saved_session, auth, user_factory
    ):
        auth.user_result = user_factory(UserRole.GUEST, status="suspended")

        result = await validator.validate_session(verify_with_server=True)

        assert result.state == SessionState.VALID
        assert store.get_current_user().model_extra["status"] == "suspended"

    @pytest.mark.asyncio
    async def test_backend_error_keeps_cached_user(
        self, validator, store, saved_session, auth
    ):
        auth.user_error = AuthProviderError("backend down")

        result = await validator.validate_session(verify_with_server=True)

        assert result.state == SessionState.VALID
        assert result.user == saved_session.user
        assert store.has_session() is True

    @pytest.mark.asyncio
    async def test_not_called_by_default(self, validator, saved_session, auth):
        await validator.validate_session()
        assert auth.user_calls == []


class TestSingleFlight:
    """Tests for concurrent validate_session calls."""

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_refresh(
        self, validator, store, expires_at, clock, auth
    ):
        clock.now = expires_at + 1
        auth.refresh_delay = 0.05

        results = await asyncio.gather(
            *(validator.validate_session() for _ in range(5))
        )

        assert auth.refresh_calls == ["refresh-token"]
        assert {r.state for r in results} == {SessionState.REFRESH_NEEDED}
        assert {r.access_token for r in results} == {"new-access"}

    @pytest.mark.asyncio
    async def test_is_validating_flag(self, validator, expires_at, clock, auth):
        clock.now = expires_at + 1
        auth.refresh_delay = 0.05

        task = asyncio.ensure_future(validator.validate_session())
        await asyncio.sleep(0)
        assert validator.is_validating is True

        await task
        assert validator.is_validating is False

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_pass(
        self, validator, expires_at, clock, auth
    ):
        clock.now = expires_at + 1
        auth.refresh_delay = 0.05

        first = asyncio.ensure_future(validator.validate_session())
        second = asyncio.ensure_future(validator.validate_session())
        await asyncio.sleep(0.01)
        first.cancel()

        result = await second

        assert result.state == SessionState.REFRESH_NEEDED
        assert len(auth.refresh_calls) == 1

    @pytest.mark.asyncio
    async def test_sequential_calls_run_separately(
        self, validator, saved_session, auth
    ):
        await validator.validate_session(force_refresh=True)
        await validator.validate_session(force_refresh=True)

        assert auth.refresh_calls == ["refresh-token", "new-refresh"]


class TestQuickValidate:
    """Tests for quick_validate."""

    def test_no_session(self, validator):
        result = validator.quick_validate()
        assert result.state == SessionState.NO_SESSION
        assert result.should_redirect is True

    def test_valid(self, validator, saved_session):
        result = validator.quick_validate()
        assert result.state == SessionState.VALID
        assert result.user == saved_session.user

    def test_expired_keeps_session(self, validator, store, expires_at, clock, auth):
        clock.now = expires_at

        result = validator.quick_validate()

        assert result.state == SessionState.EXPIRED
        assert result.should_redirect is False
        assert store.has_session() is True
        assert auth.refresh_calls == []

    def test_inactive_redirects(self, validator, store, saved_session, clock):
        clock.advance(16 * MINUTE_MS)

        result = validator.quick_validate()

        assert result.state == SessionState.INACTIVE
        assert result.should_redirect is True
        assert result.redirect_to == "/login"
        assert store.has_session() is True

    def test_refresh_needed(self, validator, expires_at, clock, store):
        clock.now = expires_at - 4 * MINUTE_MS
        store.update_last_activity()

        result = validator.quick_validate()

        assert result.state == SessionState.REFRESH_NEEDED
        assert result.should_redirect is False

    def test_does_not_touch_activity(self, validator, store, saved_session, clock):
        clock.advance(MINUTE_MS)
        validator.quick_validate()
        assert store.load_session().last_activity == saved_session.last_activity


class TestPermissions:
    """Tests for has_permission and can_access_route."""

    @pytest.mark.parametrize(
        "role,required,expected",
        [
            (UserRole.GUEST, UserRole.GUEST, True),
            (UserRole.GUEST, UserRole.SELLER, False),
            (UserRole.SELLER, UserRole.GUEST, True),
            (UserRole.DEALER, UserRole.SELLER, True),
            (UserRole.DEALER, UserRole.ADMIN, False),
            (UserRole.ADMIN, UserRole.DEALER, True),
        ],
    )
    def test_has_permission(self, validator, user_factory, role, required, expected):
        assert validator.has_permission(user_factory(role), required) is expected

    def test_has_permission_without_user(self, validator):
        assert validator.has_permission(None, UserRole.GUEST) is False

    def test_can_access_route(self, validator, user_factory):
        guest = user_factory(UserRole.GUEST)
        dealer = user_factory(UserRole.DEALER)

        assert validator.can_access_route(guest, "/guest-dashboard") is True
        assert validator.can_access_route(guest, "/seller-dashboard") is False
        assert validator.can_access_route(dealer, "/dealer") is True
        assert validator.can_access_route(dealer, "/admin") is False

    def test_unlisted_route_is_public(self, validator):
        assert validator.can_access_route(None, "/cars") is True
        assert validator.can_access_route(None, "/admin") is False
