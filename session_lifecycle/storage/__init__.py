# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Storage ports and adapters."""
from session_lifecycle.storage.base import (
    Cookie,
    CookieJar,
    DeviceIdProvider,
    StorageError,
    StoragePort,
)
from session_lifecycle.storage.device import (
    DeviceSignals,
    FingerprintDeviceIdProvider,
    StaticDeviceIdProvider,
)
from session_lifecycle.storage.memory import MemoryCookieJar, MemoryStorage
from session_lifecycle.storage.sql import SqlStorage, build_engine

__all__ = [
    "Cookie",
    "CookieJar",
    "DeviceIdProvider",
    "DeviceSignals",
    "FingerprintDeviceIdProvider",
    "MemoryCookieJar",
    "MemoryStorage",
    "SqlStorage",
    "StaticDeviceIdProvider",
    "StorageError",
    "StoragePort",
    "build_engine",
]
