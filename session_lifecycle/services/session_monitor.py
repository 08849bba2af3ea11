# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Periodic background validation of the stored session."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from session_lifecycle.services.session_validator import SessionValidator

logger = logging.getLogger(__name__)

RedirectHandler = Callable[[str], Any]


class SessionMonitor:
    """Runs validate_session() on a fixed interval.

    Proactively refreshes tokens and reports redirects without waiting for
    user interaction. start() returns the matching teardown callable.
    """

    def __init__(
        self,
        validator: SessionValidator,
        *,
        interval_seconds: float = 300.0,
        on_redirect: RedirectHandler | None = None,
    ) -> None:
        self._validator = validator
        self.interval_seconds = interval_seconds
        self._on_redirect = on_redirect
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> Callable[[], None]:
        """Start monitoring on the running event loop."""
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._run())
            logger.info(
                f"Session monitor started (interval {self.interval_seconds}s)"
            )
        return self.stop

    def stop(self) -> None:
        """Cancel the monitor. Safe to call more than once."""
        if self._task is None:
            return
        self._task.cancel()
        self._task = None
        logger.info("Session monitor stopped")

    async def aclose(self) -> None:
        """Cancel the monitor and wait for its task to finish."""
        task = self._task
        self.stop()
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.check_once()

    async def check_once(self) -> None:
        """Run a single validation tick."""
        try:
            result = await self._validator.validate_session()
            if result.should_redirect and result.redirect_to and self._on_redirect:
                outcome = self._on_redirect(result.redirect_to)
                if asyncio.iscoroutine(outcome):
                    await outcome
        except Exception as e:
            logger.error(f"Session monitoring error: {e}")
