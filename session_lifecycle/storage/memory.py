# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""In-process storage adapters."""
from collections.abc import Callable

from session_lifecycle.config import now_ms
from session_lifecycle.storage.base import Cookie, CookieJar, SameSite, StoragePort


class MemoryStorage(StoragePort):
    """Dict-backed storage, lost when the process exits."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class MemoryCookieJar(CookieJar):
    """Cookie jar that keeps full cookie records for inspection."""

    def __init__(self, clock: Callable[[], int] = now_ms) -> None:
        self._clock = clock
        self._cookies: dict[str, Cookie] = {}

    def get(self, name: str) -> str | None:
        cookie = self._cookies.get(name)
        if cookie is None or cookie.expires_at <= self._clock():
            return None
        return cookie.value

    def get_cookie(self, name: str) -> Cookie | None:
        """Return the raw record, expired or not."""
        return self._cookies.get(name)

    def set(
        self,
        name: str,
        value: str,
        *,
        expires_at: int,
        secure: bool = False,
        samesite: SameSite = "lax",
        path: str = "/",
    ) -> None:
        self._cookies[name] = Cookie(
            name=name,
            value=value,
            expires_at=expires_at,
            secure=secure,
            samesite=samesite,
            path=path,
        )

    def delete(self, name: str) -> None:
        self._cookies.pop(name, None)

    def as_dict(self) -> dict[str, str]:
        """Live cookies as name/value pairs, e.g. for an HTTP client."""
        return {
            name: value
            for name in list(self._cookies)
            if (value := self.get(name)) is not None
        }

