from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

import httpx

from roombot.bootstrap.strategies import (
    BootstrapStrategy,
    HostSurfaceStrategy,
    NativeInitializerStrategy,
    OfflineSimulationStrategy,
    RemoteScriptStrategy,
)
from roombot.core.config import Settings
from roombot.core.errors import BootstrapStrategyFailure
from roombot.session.handle import Initializer

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AcquiredInitializer:
    strategy: str
    init: Initializer


class BootstrapChain:
    """Ordered acquisition strategies; the first one that does not fail wins."""

    def __init__(self, strategies: Sequence[BootstrapStrategy]) -> None:
        if not strategies:
            raise ValueError("At least one bootstrap strategy is required")
        self.strategies = list(strategies)

    async def acquire(self) -> AcquiredInitializer:
        failures: list[BootstrapStrategyFailure] = []
        for strategy in self.strategies:
            try:
                init = await strategy.try_acquire()
            except BootstrapStrategyFailure as e:
                logger.info("Bootstrap strategy %s unavailable: %s", strategy.name, e.reason)
                failures.append(e)
                continue
            logger.info("Bootstrap strategy %s acquired an initializer", strategy.name)
            return AcquiredInitializer(strategy=strategy.name, init=init)

        # Only reachable when the chain was built without the offline fallback.
        raise failures[-1]


def default_chain(
    settings: Settings,
    *,
    host_surface: Any | None = None,
    client: httpx.AsyncClient | None = None,
) -> BootstrapChain:
    return BootstrapChain(
        [
            NativeInitializerStrategy(settings.native_initializer),
            HostSurfaceStrategy(host_surface),
            RemoteScriptStrategy(
                url=settings.headless_url,
                sandbox_command=settings.sandbox_command,
                client=client,
            ),
            OfflineSimulationStrategy(),
        ]
    )
