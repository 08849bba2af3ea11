# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Ports for the two session storage surfaces and the device identifier."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal

SameSite = Literal["lax", "strict", "none"]


class StorageError(Exception):
    """A storage surface rejected a read or write."""


class StoragePort(ABC):
    """Durable, namespaced string key/value storage."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value or None."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value. Raises StorageError when the write is rejected."""
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a key. Removing a missing key is a no-op."""
        ...


@dataclass
class Cookie:
    """A cookie as written by the session store."""

    name: str
    value: str
    expires_at: int  # epoch milliseconds
    secure: bool = False
    samesite: SameSite = "lax"
    path: str = "/"


class CookieJar(ABC):
    """Cookie surface readable by server-rendered components."""

    @abstractmethod
    def get(self, name: str) -> str | None:
        """Return the value of a live cookie or None."""
        ...

    @abstractmethod
    def get_cookie(self, name: str) -> Cookie | None:
        """Return the stored record, expired or not."""
        ...

    @abstractmethod
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
        """Write a cookie. Raises StorageError when the write is blocked."""
        ...

    @abstractmethod
    def delete(self, name: str) -> None:
        """Expire a cookie immediately."""
        ...


class DeviceIdProvider(ABC):
    """Source of the advisory device identifier."""

    @abstractmethod
    def get_device_id(self) -> str:
        """Return the stable identifier for this device."""
        ...
