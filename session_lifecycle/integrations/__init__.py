# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Auth backend integrations."""
from session_lifecycle.integrations.base import AuthProvider, AuthProviderError
from session_lifecycle.integrations.http_auth import HttpAuthProvider

__all__ = ["AuthProvider", "AuthProviderError", "HttpAuthProvider"]
