from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PeriodicTask:
    name: str
    period_s: float
    action: Callable[[], Awaitable[Any]]


class BackgroundScheduler:
    """Fixed-rate timers on the running event loop.

    Each firing runs as its own asyncio task, so a slow invocation never delays the
    next firing and two invocations of the same action may overlap.
    """

    def __init__(self, tasks: list[PeriodicTask]) -> None:
        self.tasks = list(tasks)
        self._timers: list[asyncio.Task[None]] = []
        self._inflight: set[asyncio.Task[Any]] = set()

    @property
    def started(self) -> bool:
        return bool(self._timers)

    def start(self) -> None:
        if self.started:
            return
        logger.info("Starting background tasks...")
        for task in self.tasks:
            self._timers.append(asyncio.create_task(self._timer(task), name=f"timer:{task.name}"))
        logger.info("Background tasks started")

    async def _timer(self, task: PeriodicTask) -> None:
        while True:
            await asyncio.sleep(task.period_s)
            fired = asyncio.create_task(self._invoke(task), name=f"tick:{task.name}")
            self._inflight.add(fired)
            fired.add_done_callback(self._inflight.discard)

    async def _invoke(self, task: PeriodicTask) -> None:
        try:
            await task.action()
        except Exception:
            logger.exception("Background task %s failed", task.name)

    async def shutdown(self) -> None:
        pending = [*self._timers, *self._inflight]
        for t in pending:
            t.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._timers.clear()
        self._inflight.clear()
