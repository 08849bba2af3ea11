# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Session validation state machine.

A validation pass loads the stored session and settles on exactly one
SessionState, refreshing tokens through the auth backend when needed. The
checks always run in this order: hard expiry, inactivity, refresh window,
optional server re-check. Reordering them changes behaviour, e.g. an
inactive user would be silently re-authenticated.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from session_lifecycle.config import SessionPolicy, now_ms
from session_lifecycle.integrations.base import AuthProvider
from session_lifecycle.models.enums import SessionState, UserRole
from session_lifecycle.rbac import roles
from session_lifecycle.schemas.user import TokenResponse, User
from session_lifecycle.services.session_store import Session, SessionStore

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_TIMEOUT = 5.0


@dataclass
class SessionValidationResult:
    """Outcome of a validation pass."""

    state: SessionState
    message: str
    should_redirect: bool = False
    redirect_to: str | None = None
    user: User | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: int | None = None


class SessionValidator:
    """Coordinates validation and refresh of the stored session.

    Concurrent validate_session() calls share one in-flight pass, so a
    refresh token is never exchanged twice by racing callers.
    """

    def __init__(
        self,
        store: SessionStore,
        auth: AuthProvider,
        *,
        clock: Callable[[], int] = now_ms,
        policy: SessionPolicy | None = None,
        refresh_timeout: float = DEFAULT_REFRESH_TIMEOUT,
        login_path: str = "/login",
    ) -> None:
        """Initialize the validator.

        Args:
            store: Session store; the only way session state is written.
            auth: Auth backend used for refresh and server re-checks.
            clock: Returns the current time in epoch milliseconds.
            policy: Session lifetimes, defaults to the store's policy.
            refresh_timeout: Seconds to wait for the auth backend.
            login_path: Redirect destination for signed-out states.
        """
        self._store = store
        self._auth = auth
        self._clock = clock
        self.policy = policy or store.policy
        self.refresh_timeout = refresh_timeout
        self.login_path = login_path
        self._inflight: asyncio.Task | None = None

    @property
    def is_validating(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def validate_session(
        self, force_refresh: bool = False, *, verify_with_server: bool = False
    ) -> SessionValidationResult:
        """Validate the stored session, refreshing tokens when required.

        Args:
            force_refresh: Refresh the token pair even outside the refresh
                window.
            verify_with_server: Re-check the access token with the auth
                backend when no refresh is due.

        Calls without either flag join a pass that is already running.
        """
        joinable = not force_refresh and not verify_with_server
        if joinable and self.is_validating:
            return await asyncio.shield(self._inflight)

        task = asyncio.ensure_future(
            self._perform_validation(force_refresh, verify_with_server)
        )
        self._inflight = task
        task.add_done_callback(self._release)
        # Shielded so one cancelled caller does not cancel the shared pass
        return await asyncio.shield(task)

    def _release(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None

    async def _perform_validation(
        self, force_refresh: bool, verify_with_server: bool
    ) -> SessionValidationResult:
        try:
            session = self._store.load_session()
            if session is None:
                return self._signed_out(SessionState.NO_SESSION, "No session found")

            now = self._clock()

            if now >= session.expires_at:
                return await self._handle_expired_session(session)

            if now - session.last_activity > self.policy.activity_timeout:
                self._store.clear_session()
                return self._signed_out(
                    SessionState.INACTIVE, "Session expired due to inactivity"
                )

            needs_refresh = now >= session.expires_at - self.policy.refresh_threshold
            if needs_refresh or force_refresh:
                return await self._handle_token_refresh(session)

            user = session.user
            if verify_with_server:
                checked = await self._verify_with_server(session)
                if checked is None:
                    self._store.clear_session()
                    return self._signed_out(
                        SessionState.INVALID, "Session invalid on server"
                    )
                user = checked

            self._store.update_last_activity()
            return self._active(
                SessionState.VALID,
                "Session is valid",
                user,
                session.access_token,
                session.refresh_token,
                session.expires_at,
            )
        except Exception as e:
            logger.error(f"Session validation error: {e}")
            self._store.clear_session()
            return self._signed_out(SessionState.INVALID, "Session validation failed")

    async def _handle_expired_session(
        self, session: Session
    ) -> SessionValidationResult:
        tokens = await self._request_refresh(session.refresh_token)
        if tokens is not None:
            expires_at = self._store_tokens(tokens)
            return self._active(
                SessionState.REFRESH_NEEDED,
                "Session refreshed successfully",
                session.user,
                tokens.token,
                tokens.refresh_token,
                expires_at,
            )

        self._store.clear_session()
        return self._signed_out(
            SessionState.REFRESH_FAILED, "Session expired and refresh failed"
        )

    async def _handle_token_refresh(self, session: Session) -> SessionValidationResult:
        tokens = await self._request_refresh(session.refresh_token)
        if tokens is not None:
            expires_at = self._store_tokens(tokens)
            return self._active(
                SessionState.VALID,
                "Token refreshed successfully",
                session.user,
                tokens.token,
                tokens.refresh_token,
                expires_at,
            )

        # Keep the current token while it is still before hard expiry
        if self._clock() < session.expires_at:
            return self._active(
                SessionState.VALID,
                "Token refresh failed but session still valid",
                session.user,
                session.access_token,
                session.refresh_token,
                session.expires_at,
            )

        self._store.clear_session()
        return self._signed_out(
            SessionState.REFRESH_FAILED, "Token refresh failed and session expired"
        )

    async def _request_refresh(self, refresh_token: str) -> TokenResponse | None:
        """Exchange the refresh token once. Any failure yields None."""
        try:
            return await asyncio.wait_for(
                self._auth.refresh_token(refresh_token), timeout=self.refresh_timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"Token refresh timed out after {self.refresh_timeout}s")
        except Exception as e:
            logger.error(f"Token refresh failed: {e}")
        return None

    async def _verify_with_server(self, session: Session) -> User | None:
        """Re-check the access token; returns the current user or None if revoked.

        A backend that cannot be reached leaves the cached user in place.
        """
        try:
            server_user = await asyncio.wait_for(
                self._auth.get_current_user(session.access_token),
                timeout=self.refresh_timeout,
            )
        except asyncio.TimeoutError:
            logger.error("Server session check timed out")
            return session.user
        except Exception as e:
            logger.error(f"Server session check failed: {e}")
            return session.user

        if server_user is None:
            return None
        if server_user.model_dump() != session.user.model_dump():
            self._store.update_user(server_user)
        return server_user

    def _store_tokens(self, tokens: TokenResponse) -> int:
        expires_at = self._clock() + self.policy.access_token_expiry
        self._store.update_tokens(tokens.token, tokens.refresh_token, expires_at)
        return expires_at

    def quick_validate(self) -> SessionValidationResult:
        """Storage-only check for cheap per-render guards.

        Never contacts the auth backend. On EXPIRED or REFRESH_NEEDED the
        caller is responsible for awaiting validate_session() to refresh.
        """
        session = self._store.load_session()
        if session is None:
            return self._signed_out(SessionState.NO_SESSION, "No session found")

        now = self._clock()
        snapshot = (
            session.user,
            session.access_token,
            session.refresh_token,
            session.expires_at,
        )

        if now >= session.expires_at:
            # Left to the full validation, which can still refresh
            return self._active(SessionState.EXPIRED, "Session expired", *snapshot)

        if now - session.last_activity > self.policy.activity_timeout:
            result = self._active(SessionState.INACTIVE, "Session inactive", *snapshot)
            result.should_redirect = True
            result.redirect_to = self.login_path
            return result

        if now >= session.expires_at - self.policy.refresh_threshold:
            return self._active(
                SessionState.REFRESH_NEEDED, "Token refresh needed", *snapshot
            )

        return self._active(SessionState.VALID, "Session valid", *snapshot)

    def has_permission(self, user: User | None, required_role: UserRole | str) -> bool:
        return roles.has_permission(user, required_role)

    def can_access_route(self, user: User | None, route: str) -> bool:
        return roles.can_access_route(user, route)

    def _signed_out(self, state: SessionState, message: str) -> SessionValidationResult:
        return SessionValidationResult(
            state=state,
            message=message,
            should_redirect=True,
            redirect_to=self.login_path,
        )

    @staticmethod
    def _active(
        state: SessionState,
        message: str,
        user: User,
        access_token: str,
        refresh_token: str,
        expires_at: int,
    ) -> SessionValidationResult:
        return SessionValidationResult(
            state=state,
            message=message,
            user=user,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
        )
