# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Port for the authentication backend the validator talks to."""
from abc import ABC, abstractmethod

from session_lifecycle.schemas.user import TokenResponse, User


class AuthProviderError(Exception):
    """The auth backend could not be reached or failed."""


class AuthProvider(ABC):
    """Narrow view of the auth backend used for session upkeep."""

    @abstractmethod
    async def refresh_token(self, refresh_token: str) -> TokenResponse | None:
        """Exchange a refresh token. None means it is no longer usable."""
        ...

    @abstractmethod
    async def get_current_user(self, token: str) -> User | None:
        """Re-validate an access token. None means it was revoked."""
        ...

    async def close(self) -> None:
        """Clean up resources."""
        pass
