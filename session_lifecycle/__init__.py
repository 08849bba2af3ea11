# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Session lifecycle management for the marketplace client.

Persists the authenticated session across a durable key/value store and a
cookie surface, decides whether a loaded session is usable, and gates
routes by role.
"""

__version__ = "0.1.0"
