# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Persistence of the authenticated session.

The store is the only writer of the two session surfaces: the durable
key/value store the application reads, and the cookie surface read by
server-rendered components. Each mutator writes both surfaces all-or-nothing.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from session_lifecycle.config import SESSION_POLICY, SessionPolicy, now_ms
from session_lifecycle.events import EventHandler, SessionEvent, SessionEventBus
from session_lifecycle.schemas.user import User
from session_lifecycle.storage.base import (
    Cookie,
    CookieJar,
    DeviceIdProvider,
    StorageError,
    StoragePort,
)

logger = logging.getLogger(__name__)

# Durable storage keys
AUTH_TOKEN_KEY = "auth_token"
REFRESH_TOKEN_KEY = "refresh_token"
USER_DATA_KEY = "user_data"
SESSION_EXPIRY_KEY = "session_expiry"
REMEMBER_ME_KEY = "remember_me"
LAST_ACTIVITY_KEY = "last_activity"

# Everything clear_session removes. The device id key is not listed and survives
SESSION_KEYS = (
    AUTH_TOKEN_KEY,
    REFRESH_TOKEN_KEY,
    USER_DATA_KEY,
    SESSION_EXPIRY_KEY,
    REMEMBER_ME_KEY,
    LAST_ACTIVITY_KEY,
)

# Cookie names
AUTH_TOKEN_COOKIE = "auth_token"
USER_TYPE_COOKIE = "user_type"
SESSION_EXPIRY_COOKIE = "session_expiry"

COOKIE_NAMES = (AUTH_TOKEN_COOKIE, USER_TYPE_COOKIE, SESSION_EXPIRY_COOKIE)


class SessionStorageError(Exception):
    """The session could not be persisted."""


class SessionError(str, Enum):
    """Why no session could be loaded."""

    MISSING = "missing"
    CORRUPT = "corrupt"


@dataclass
class Session:
    """The persisted session aggregate."""

    user: User
    access_token: str
    refresh_token: str
    expires_at: int
    remember_me: bool
    device_id: str
    last_activity: int


@dataclass
class SessionLoadResult:
    """Either a session or the reason there is none."""

    session: Session | None = None
    error: SessionError | None = None

    @property
    def ok(self) -> bool:
        return self.session is not None


@dataclass
class SessionInfo:
    """Diagnostic snapshot of the stored session."""

    has_session: bool
    is_expired: bool
    needs_refresh: bool
    is_inactive: bool
    expires_in: int
    last_activity: int


class SessionStore:
    """Single source of truth for the current session."""

    def __init__(
        self,
        storage: StoragePort,
        cookies: CookieJar,
        device_ids: DeviceIdProvider,
        *,
        clock: Callable[[], int] = now_ms,
        policy: SessionPolicy = SESSION_POLICY,
        secure_cookies: bool = False,
        events: SessionEventBus | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            storage: Durable key/value surface.
            cookies: Cookie surface.
            device_ids: Provider of the advisory device identifier.
            clock: Returns the current time in epoch milliseconds.
            policy: Session lifetimes.
            secure_cookies: Mark cookies Secure (HTTPS origins).
            events: Bus for change notifications; a private one by default.
        """
        self._storage = storage
        self._cookies = cookies
        self._clock = clock
        self.policy = policy
        self.secure_cookies = secure_cookies
        self.events = events or SessionEventBus()
        self._device_id = device_ids.get_device_id()

    @property
    def device_id(self) -> str:
        return self._device_id

    def now(self) -> int:
        """Current time on the store's clock, in epoch milliseconds."""
        return self._clock()

    def on_session_changed(self, handler: EventHandler) -> Callable[[], None]:
        """Subscribe to every session change. Returns an unsubscribe callable."""
        return self.events.subscribe_all(handler)

    # ---------------------------------------------------------------- writes

    def save_session(
        self,
        user: User,
        access_token: str,
        refresh_token: str,
        expires_at: int,
        remember_me: bool = False,
    ) -> Session:
        """Persist a freshly issued session.

        Raises:
            SessionStorageError: Nothing was persisted.
        """
        now = self._clock()
        durable = {
            AUTH_TOKEN_KEY: access_token,
            REFRESH_TOKEN_KEY: refresh_token,
            USER_DATA_KEY: user.to_storage(),
            SESSION_EXPIRY_KEY: str(expires_at),
            REMEMBER_ME_KEY: "true" if remember_me else "false",
            LAST_ACTIVITY_KEY: str(now),
        }
        cookies = {
            AUTH_TOKEN_COOKIE: access_token,
            USER_TYPE_COOKIE: user.user_type.value,
            SESSION_EXPIRY_COOKIE: str(expires_at),
        }
        try:
            self._write(durable, cookies, self._cookie_expiry(expires_at, remember_me))
        except StorageError as e:
            logger.error(f"Failed to save session: {e}")
            raise SessionStorageError("Failed to save session data") from e

        session = Session(
            user=user,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
            remember_me=remember_me,
            device_id=self._device_id,
            last_activity=now,
        )
        self.events.publish(SessionEvent.SESSION_SAVED, {"session": session})
        return session

    def update_user(self, user: User) -> None:
        """Replace the user snapshot and the role cookie."""
        expires_at = self._read_int(SESSION_EXPIRY_KEY)
        cookie_expiry = (
            self._cookie_expiry(expires_at, self._read_remember_me())
            if expires_at is not None
            else None
        )
        try:
            self._write(
                {USER_DATA_KEY: user.to_storage()},
                {USER_TYPE_COOKIE: user.user_type.value},
                cookie_expiry,
            )
        except StorageError as e:
            logger.error(f"Failed to update user data: {e}")
            return

        self.update_last_activity()
        self.events.publish(SessionEvent.USER_UPDATED, {"user": user})

    def update_tokens(
        self, access_token: str, refresh_token: str, expires_at: int
    ) -> None:
        """Replace both tokens and the expiry after a refresh."""
        try:
            self._write(
                {
                    AUTH_TOKEN_KEY: access_token,
                    REFRESH_TOKEN_KEY: refresh_token,
                    SESSION_EXPIRY_KEY: str(expires_at),
                },
                {
                    AUTH_TOKEN_COOKIE: access_token,
                    SESSION_EXPIRY_COOKIE: str(expires_at),
                },
                self._cookie_expiry(expires_at, self._read_remember_me()),
            )
        except StorageError as e:
            logger.error(f"Failed to update tokens: {e}")
            return

        self.update_last_activity()
        self.events.publish(
            SessionEvent.TOKENS_UPDATED,
            {
                "access_token": access_token,
                "refresh_token": refresh_token,
                "expires_at": expires_at,
            },
        )

    def update_last_activity(self) -> None:
        """Stamp the activity timestamp with the current time."""
        try:
            self._storage.set(LAST_ACTIVITY_KEY, str(self._clock()))
        except StorageError as e:
            logger.error(f"Failed to update last activity: {e}")

    def clear_session(self) -> None:
        """Remove every session key and cookie. The device id survives."""
        for key in SESSION_KEYS:
            try:
                self._storage.remove(key)
            except StorageError as e:
                logger.error(f"Failed to remove {key} while clearing session: {e}")
        for name in COOKIE_NAMES:
            try:
                self._cookies.delete(name)
            except StorageError as e:
                logger.error(f"Failed to delete cookie {name}: {e}")

        self.events.publish(SessionEvent.SESSION_CLEARED, {})

    # ----------------------------------------------------------------- reads

    def read_session(self) -> SessionLoadResult:
        """Load the session, distinguishing absence from corruption.

        Corrupt data clears the session before returning.
        """
        access_token = self._read(AUTH_TOKEN_KEY)
        refresh_token = self._read(REFRESH_TOKEN_KEY)
        user_data = self._read(USER_DATA_KEY)
        expiry = self._read(SESSION_EXPIRY_KEY)

        if not (access_token and refresh_token and user_data and expiry):
            return SessionLoadResult(error=SessionError.MISSING)

        last_activity_raw = self._read(LAST_ACTIVITY_KEY)
        try:
            user = User.model_validate_json(user_data)
            expires_at = int(expiry)
            last_activity = (
                int(last_activity_raw) if last_activity_raw else self._clock()
            )
        except ValueError as e:
            logger.error(f"Failed to load session: {e}")
            self.clear_session()
            return SessionLoadResult(error=SessionError.CORRUPT)

        return SessionLoadResult(
            session=Session(
                user=user,
                access_token=access_token,
                refresh_token=refresh_token,
                expires_at=expires_at,
                remember_me=self._read_remember_me(),
                device_id=self._device_id,
                last_activity=last_activity,
            )
        )

    def load_session(self) -> Session | None:
        return self.read_session().session

    def has_session(self) -> bool:
        return bool(
            self._read(AUTH_TOKEN_KEY)
            and self._read(REFRESH_TOKEN_KEY)
            and self._read(USER_DATA_KEY)
        )

    def get_access_token(self) -> str | None:
        return self._read(AUTH_TOKEN_KEY)

    def get_refresh_token(self) -> str | None:
        return self._read(REFRESH_TOKEN_KEY)

    def get_current_user(self) -> User | None:
        user_data = self._read(USER_DATA_KEY)
        if not user_data:
            return None
        try:
            return User.model_validate_json(user_data)
        except ValueError as e:
            logger.error(f"Failed to get current user: {e}")
            return None

    def is_session_expired(self) -> bool:
        expires_at = self._read_int(SESSION_EXPIRY_KEY)
        if expires_at is None:
            return True
        return self._clock() >= expires_at

    def needs_refresh(self) -> bool:
        expires_at = self._read_int(SESSION_EXPIRY_KEY)
        if expires_at is None:
            return False
        return self._clock() >= expires_at - self.policy.refresh_threshold

    def is_inactive(self) -> bool:
        last_activity = self._read_int(LAST_ACTIVITY_KEY)
        if last_activity is None:
            return False
        return self._clock() - last_activity > self.policy.activity_timeout

    def get_session_info(self) -> SessionInfo:
        expires_at = self._read_int(SESSION_EXPIRY_KEY) or 0
        return SessionInfo(
            has_session=self.has_session(),
            is_expired=self.is_session_expired(),
            needs_refresh=self.needs_refresh(),
            is_inactive=self.is_inactive(),
            expires_in=max(0, expires_at - self._clock()),
            last_activity=self._read_int(LAST_ACTIVITY_KEY) or 0,
        )

    def get_cookies(self) -> dict[str, Cookie | None]:
        """Live session cookie records by name; None for absent or expired."""
        now = self._clock()
        records: dict[str, Cookie | None] = {}
        for name in COOKIE_NAMES:
            cookie = self._cookies.get_cookie(name)
            records[name] = cookie if cookie and cookie.expires_at > now else None
        return records

    # --------------------------------------------------------------- helpers

    def _cookie_expiry(self, expires_at: int, remember_me: bool) -> int:
        if remember_me:
            return self._clock() + self.policy.remember_me_expiry
        return expires_at

    def _read(self, key: str) -> str | None:
        try:
            return self._storage.get(key)
        except StorageError as e:
            logger.error(f"Failed to read {key}: {e}")
            return None

    def _read_int(self, key: str) -> int | None:
        raw = self._read(key)
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            return None

    def _read_remember_me(self) -> bool:
        return self._read(REMEMBER_ME_KEY) == "true"

    def _write(
        self,
        durable: dict[str, str],
        cookies: dict[str, str],
        cookie_expiry: int | None,
    ) -> None:
        """Write both surfaces, restoring the previous state on failure.

        Cookies are skipped when cookie_expiry is None.
        """
        previous = {key: self._read(key) for key in durable}
        try:
            for key, value in durable.items():
                self._storage.set(key, value)
            if cookie_expiry is not None:
                for name, value in cookies.items():
                    self._cookies.set(
                        name,
                        value,
                        expires_at=cookie_expiry,
                        secure=self.secure_cookies,
                        samesite="lax",
                    )
        except StorageError:
            self._restore(previous)
            raise

    def _restore(self, previous: dict[str, str | None]) -> None:
        for key, value in previous.items():
            try:
                if value is None:
                    self._storage.remove(key)
                else:
                    self._storage.set(key, value)
            except StorageError as e:
                logger.error(f"Failed to restore {key}: {e}")
        self._sync_cookies()

    def _sync_cookies(self) -> None:
        """Rewrite the cookie surface from the durable state."""
        access_token = self._read(AUTH_TOKEN_KEY)
        expires_at = self._read_int(SESSION_EXPIRY_KEY)
        user = self.get_current_user()
        try:
            if not (access_token and expires_at is not None and user):
                for name in COOKIE_NAMES:
                    self._cookies.delete(name)
                return
            cookie_expiry = self._cookie_expiry(expires_at, self._read_remember_me())
            for name, value in (
                (AUTH_TOKEN_COOKIE, access_token),
                (USER_TYPE_COOKIE, user.user_type.value),
                (SESSION_EXPIRY_COOKIE, str(expires_at)),
            ):
                self._cookies.set(
                    name,
                    value,
                    expires_at=cookie_expiry,
                    secure=self.secure_cookies,
                    samesite="lax",
                )
        except StorageError as e:
            logger.error(f"Failed to resynchronise session cookies: {e}")
