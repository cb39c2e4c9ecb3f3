from __future__ import annotations

import asyncio
import importlib
import logging
import shlex
from typing import Any, Protocol

import httpx

from roombot.core.errors import BootstrapStrategyFailure
from roombot.session.handle import Initializer
from roombot.session.mock_room import create_mock_initializer
from roombot.session.sandbox_room import ScriptSandbox, create_sandbox_initializer

logger = logging.getLogger(__name__)

# Name under which hosts expose the session initializer.
INITIALIZER_NAME = "HBInit"


class BootstrapStrategy(Protocol):
    name: str

    async def try_acquire(self) -> Initializer:  # pragma: no cover
        """Return an initializer or raise BootstrapStrategyFailure."""
        ...


class NativeInitializerStrategy:
    """Use an initializer that is already importable in this process (`module:attr`)."""

    name = "native"

    def __init__(self, target: str | None) -> None:
        self.target = target

    async def try_acquire(self) -> Initializer:
        if not self.target:
            raise BootstrapStrategyFailure(self.name, "no native initializer configured")

        module_name, _, attr = self.target.partition(":")
        attr = attr or INITIALIZER_NAME
        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise BootstrapStrategyFailure(self.name, f"cannot import {module_name!r}: {e}") from e

        init = getattr(module, attr, None)
        if not callable(init):
            raise BootstrapStrategyFailure(self.name, f"{self.target!r} is not callable")
        return init


class HostSurfaceStrategy:
    """Use the initializer exposed by an embedding host surface, if we run inside one."""

    name = "host-surface"

    def __init__(self, surface: Any | None) -> None:
        self.surface = surface

    async def try_acquire(self) -> Initializer:
        if self.surface is None:
            raise BootstrapStrategyFailure(self.name, "not running inside a host surface")
        init = getattr(self.surface, INITIALIZER_NAME, None)
        if not callable(init):
            raise BootstrapStrategyFailure(self.name, f"host surface does not expose {INITIALIZER_NAME}")
        return init


class RemoteScriptStrategy:
    """Fetch the host's initializer script and run it inside an isolated runner process.

    The runner is polled every `poll_interval_s` until the initializer is defined; the
    whole wait is bounded by `ready_timeout_s`.
    """

    name = "remote-script"

    def __init__(
        self,
        *,
        url: str,
        sandbox_command: str | None,
        client: httpx.AsyncClient | None = None,
        ready_timeout_s: float = 30.0,
        poll_interval_s: float = 0.1,
        sandbox_factory=ScriptSandbox,
    ) -> None:
        self.url = url
        self.sandbox_command = sandbox_command
        self.client = client
        self.ready_timeout_s = ready_timeout_s
        self.poll_interval_s = poll_interval_s
        self.sandbox_factory = sandbox_factory

    async def _fetch_script(self) -> str:
        if self.client is not None:
            resp = await self.client.get(self.url)
        else:
            async with httpx.AsyncClient(timeout=15.0, follow_redirects=True) as client:
                resp = await client.get(self.url)
        resp.raise_for_status()
        return resp.text

    async def try_acquire(self) -> Initializer:
        if not self.sandbox_command:
            raise BootstrapStrategyFailure(self.name, "no sandbox runner configured")

        logger.info("Loading headless API from %s", self.url)
        try:
            script = await self._fetch_script()
        except httpx.HTTPError as e:
            raise BootstrapStrategyFailure(self.name, f"fetch failed: {e}") from e

        try:
            command = shlex.split(self.sandbox_command)
        except ValueError as e:
            raise BootstrapStrategyFailure(self.name, f"invalid sandbox command: {e}") from e
        if not command:
            raise BootstrapStrategyFailure(self.name, "empty sandbox command")

        sandbox = self.sandbox_factory(command)
        try:
            # Launch, load and probing share one deadline.
            async with asyncio.timeout(self.ready_timeout_s):
                await sandbox.launch()
                await sandbox.load(html=script, url=self.url)
                await sandbox.wait_until_ready(timeout_s=self.ready_timeout_s, poll_interval_s=self.poll_interval_s)
        except TimeoutError as e:
            await sandbox.close()
            raise BootstrapStrategyFailure(self.name, "timeout loading headless API") from e
        except (OSError, RuntimeError) as e:
            await sandbox.close()
            raise BootstrapStrategyFailure(self.name, f"sandbox failed: {e}") from e

        logger.info("Headless API loaded successfully")
        return create_sandbox_initializer(sandbox, timeout_s=self.ready_timeout_s)


class OfflineSimulationStrategy:
    """Always succeeds with an in-memory mock room."""

    name = "offline-simulation"

    async def try_acquire(self) -> Initializer:
        logger.warning("Using mock room for development")
        return create_mock_initializer()
