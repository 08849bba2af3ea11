# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Main API router for v1 endpoints."""

from fastapi import APIRouter

from session_lifecycle.api.v1 import session

api_router = APIRouter()

# Session routes
api_router.include_router(session.router, prefix="/session", tags=["session"])
