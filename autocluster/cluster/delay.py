"""
Autocluster Startup Delay

Nodes booted together would all query and register with discovery at the
same instant. Each one first sleeps a random time in ``[0, max]`` to
spread them out.
"""

from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable, Optional

import structlog

logger = structlog.get_logger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class StartupDelay:
    """Randomized pre-start sleep with a process-local random source."""

    def __init__(
        self,
        max_seconds: int,
        *,
        rng: Optional[random.Random] = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        if max_seconds < 0:
            raise ValueError("max_seconds must be >= 0")
        self._max_ms = int(max_seconds * 1000)
        self._rng = rng if rng is not None else random.Random()
        self._sleep = sleep

    @property
    def max_ms(self) -> int:
        return self._max_ms

    def duration_ms(self) -> int:
        """Pick a delay in milliseconds, uniform over ``[0, max]``."""
        if self._max_ms == 0:
            return 0
        return self._rng.randint(0, self._max_ms)

    async def wait(self) -> int:
        """Sleep for a freshly chosen duration; returns it in milliseconds."""
        duration = self.duration_ms()
        if duration == 0:
            return 0
        logger.info("autocluster.delaying_startup", duration_ms=duration)
        await self._sleep(duration / 1000.0)
        return duration
