# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Session policy constants and deployment settings."""

import time
from dataclasses import dataclass
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

SECOND_MS = 1000
MINUTE_MS = 60 * SECOND_MS
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS


@dataclass(frozen=True)
class SessionPolicy:
    """Fixed session lifetimes, all in milliseconds."""

    access_token_expiry: int = 24 * HOUR_MS
    refresh_token_expiry: int = 7 * DAY_MS
    remember_me_expiry: int = 30 * DAY_MS
    activity_timeout: int = 15 * MINUTE_MS
    # Proactive refresh starts this long before hard expiry
    refresh_threshold: int = 5 * MINUTE_MS


SESSION_POLICY = SessionPolicy()


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


class Settings(BaseSettings):
    """Deployment settings, read from the environment or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    # Durable storage
    database_url: str = Field(
        default="sqlite:///./session.db", alias="SESSION_DATABASE_URL"
    )
    storage_namespace: str = Field(default="marketplace", alias="SESSION_NAMESPACE")

    # Cookies are marked Secure when the public origin is served over HTTPS
    origin: str = Field(default="http://localhost:3000", alias="SESSION_ORIGIN")

    # Auth collaborator
    auth_api_url: str = Field(
        default="http://localhost:8000/api", alias="SESSION_AUTH_API_URL"
    )
    refresh_timeout_seconds: float = Field(
        default=5.0, alias="SESSION_REFRESH_TIMEOUT"
    )

    # Background work
    monitor_interval_seconds: float = Field(
        default=300.0, alias="SESSION_MONITOR_INTERVAL"
    )
    activity_throttle_seconds: float = Field(
        default=60.0, alias="SESSION_ACTIVITY_THROTTLE"
    )

    # Redirect destinations
    login_path: str = Field(default="/login", alias="SESSION_LOGIN_PATH")
    unauthorized_path: str = Field(
        default="/unauthorized", alias="SESSION_UNAUTHORIZED_PATH"
    )

    @property
    def secure_cookies(self) -> bool:
        return self.origin.lower().startswith("https://")


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings()
