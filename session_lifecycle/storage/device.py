# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Device identifier providers.

The identifier is an advisory continuity signal for repeated logins from the
same browser profile. It is not an authentication factor.
"""

import logging
import string
from dataclasses import dataclass

from session_lifecycle.storage.base import DeviceIdProvider, StorageError, StoragePort

logger = logging.getLogger(__name__)

DEVICE_ID_KEY = "device_id"

_BASE36_DIGITS = string.digits + string.ascii_lowercase


@dataclass(frozen=True)
class DeviceSignals:
    """Stable environment signals of a browser profile."""

    user_agent: str
    language: str
    screen_width: int
    screen_height: int
    timezone_offset: int  # minutes, as reported by the browser
    render_fingerprint: str = ""

    def fingerprint(self) -> str:
        return "|".join(
            [
                self.user_agent,
                self.language,
                f"{self.screen_width}x{self.screen_height}",
                str(self.timezone_offset),
                self.render_fingerprint,
            ]
        )


def string_hash(text: str) -> int:
    """32-bit rolling hash over UTF-16 code units, returned as a magnitude."""
    data = text.encode("utf-16-le")
    value = 0
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        value = ((value << 5) - value + code_unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def derive_device_id(signals: DeviceSignals) -> str:
    """Reduce device signals to a short base-36 identifier."""
    return to_base36(string_hash(signals.fingerprint()))


class FingerprintDeviceIdProvider(DeviceIdProvider):
    """Derives the identifier once and persists it under its own key."""

    def __init__(self, storage: StoragePort, signals: DeviceSignals) -> None:
        self._storage = storage
        self._signals = signals

    def get_device_id(self) -> str:
        device_id = self._storage.get(DEVICE_ID_KEY)
        if device_id:
            return device_id

        device_id = derive_device_id(self._signals)
        try:
            self._storage.set(DEVICE_ID_KEY, device_id)
        except StorageError as e:
            # Still usable for this process, just not remembered
            logger.error(f"Failed to persist device id: {e}")
        return device_id


class StaticDeviceIdProvider(DeviceIdProvider):
    """Fixed identifier for targets without browser signals."""

    def __init__(self, device_id: str) -> None:
        self._device_id = device_id

    def get_device_id(self) -> str:
        return self._device_id
