# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""HTTP client for the marketplace auth backend."""
import logging

import httpx

from session_lifecycle.integrations.base import AuthProvider, AuthProviderError
from session_lifecycle.schemas.user import TokenResponse, User

logger = logging.getLogger(__name__)


class HttpAuthProvider(AuthProvider):
    """Talks to `POST /auth/refresh` and `GET /auth/me`.

    Client errors mean the credential was rejected and map to None. Server
    errors and transport failures raise AuthProviderError.
    """

    def __init__(self, base_url: str, timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response | None:
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise AuthProviderError(f"Auth backend timeout on {url}") from e
        except httpx.HTTPError as e:
            raise AuthProviderError(f"Auth backend unreachable: {e}") from e

        if resp.status_code >= 500:
            raise AuthProviderError(f"Auth backend error: HTTP {resp.status_code}")
        if resp.status_code >= 400:
            if resp.status_code not in (401, 403, 404):
                logger.warning(f"Auth backend rejected {url}: HTTP {resp.status_code}")
            return None
        return resp

    async def refresh_token(self, refresh_token: str) -> TokenResponse | None:
        """Exchange a refresh token for a new token pair."""
        resp = await self._send(
            "POST", "/auth/refresh", json={"refreshToken": refresh_token}
        )
        if resp is None:
            return None
        try:
            return TokenResponse.model_validate(resp.json())
        except ValueError as e:
            raise AuthProviderError(f"Malformed refresh response: {e}") from e

    async def get_current_user(self, token: str) -> User | None:
        """Fetch the user behind an access token."""
        resp = await self._send(
            "GET", "/auth/me", headers={"Authorization": f"Bearer {token}"}
        )
        if resp is None:
            return None
        try:
            data = resp.json()
            # Accept both a bare user and an {"user": {...}} envelope
            payload = data.get("user", data) if isinstance(data, dict) else data
            if payload is None:
                return None
            return User.model_validate(payload)
        except ValueError as e:
            raise AuthProviderError(f"Malformed user response: {e}") from e
