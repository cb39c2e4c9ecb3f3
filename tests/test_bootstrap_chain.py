from __future__ import annotations

import asyncio
import shlex
import sys
from typing import Any

import httpx
import pytest

from roombot.bootstrap.chain import BootstrapChain, default_chain
from roombot.bootstrap.strategies import (
    HostSurfaceStrategy,
    NativeInitializerStrategy,
    OfflineSimulationStrategy,
    RemoteScriptStrategy,
)
from roombot.core.config import RoomConfig
from roombot.core.errors import BootstrapStrategyFailure
from roombot.session.mock_room import MockRoom
from roombot.session.sandbox_room import SandboxRoom
from roombot_testkit import RecordingStrategy, make_settings


@pytest.mark.asyncio
async def test_strategies_are_tried_in_order_until_one_succeeds() -> None:
    calls: list[str] = []
    chain = BootstrapChain(
        [
            RecordingStrategy("a", calls, fail=True),
            RecordingStrategy("b", calls, fail=True),
            RecordingStrategy("c", calls),
            RecordingStrategy("d", calls),
        ]
    )

    acquired = await chain.acquire()

    assert acquired.strategy == "c"
    assert calls == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_last_failure_is_raised_when_every_strategy_fails() -> None:
    calls: list[str] = []
    chain = BootstrapChain([RecordingStrategy("a", calls, fail=True), RecordingStrategy("b", calls, fail=True)])

    with pytest.raises(BootstrapStrategyFailure) as exc:
        await chain.acquire()
    assert exc.value.strategy == "b"


def test_chain_requires_strategies() -> None:
    with pytest.raises(ValueError):
        BootstrapChain([])


@pytest.mark.asyncio
async def test_offline_simulation_always_succeeds() -> None:
    init = await OfflineSimulationStrategy().try_acquire()
    room = init(RoomConfig(room_name="Sim"))
    assert isinstance(room, MockRoom)


@pytest.mark.asyncio
async def test_default_chain_falls_back_to_offline_simulation() -> None:
    chain = default_chain(make_settings())

    assert [s.name for s in chain.strategies] == ["native", "host-surface", "remote-script", "offline-simulation"]
    acquired = await chain.acquire()
    assert acquired.strategy == "offline-simulation"


@pytest.mark.asyncio
async def test_native_strategy_resolves_module_attribute() -> None:
    init = await NativeInitializerStrategy("roombot.session.mock_room:MockRoom").try_acquire()
    assert init is MockRoom


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "target",
    [None, "", "roombot.does_not_exist:HBInit", "roombot.session.mock_room:nothing_here"],
)
async def test_native_strategy_failures(target: str | None) -> None:
    with pytest.raises(BootstrapStrategyFailure):
        await NativeInitializerStrategy(target).try_acquire()


@pytest.mark.asyncio
async def test_host_surface_strategy() -> None:
    class _Surface:
        @staticmethod
        def HBInit(config: RoomConfig) -> MockRoom:  # noqa: N802
            return MockRoom(config)

    init = await HostSurfaceStrategy(_Surface()).try_acquire()
    assert isinstance(init(RoomConfig(room_name="x")), MockRoom)

    with pytest.raises(BootstrapStrategyFailure):
        await HostSurfaceStrategy(None).try_acquire()
    with pytest.raises(BootstrapStrategyFailure):
        await HostSurfaceStrategy(object()).try_acquire()


class _FakeSandbox:
    """In-memory stand-in for ScriptSandbox."""

    instances: list["_FakeSandbox"] = []

    def __init__(self, command: list[str], *, ready_after: int | None = 2) -> None:
        self.command = command
        self.ready_after = ready_after
        self.probes = 0
        self.loaded: str | None = None
        self.closed = False
        self.requests: list[tuple[str, dict[str, Any]]] = []
        self.on_event = None
        _FakeSandbox.instances.append(self)

    async def launch(self) -> None:
        return None

    async def load(self, *, html: str, url: str) -> None:
        self.loaded = html

    async def wait_until_ready(self, *, timeout_s: float, poll_interval_s: float) -> None:
        if self.ready_after is None:
            raise TimeoutError
        self.probes = self.ready_after

    async def request(self, op: str, **params: Any) -> Any:
        self.requests.append((op, params))
        return True

    async def close(self) -> None:
        self.closed = True


def _client(status: int = 200, text: str = "<script>HBInit</script>") -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, text=text)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_remote_strategy_requires_a_sandbox_runner() -> None:
    strategy = RemoteScriptStrategy(url="https://host.example/headless", sandbox_command=None, client=_client())
    with pytest.raises(BootstrapStrategyFailure) as exc:
        await strategy.try_acquire()
    assert "sandbox" in exc.value.reason


@pytest.mark.asyncio
async def test_remote_strategy_fetch_failure_falls_through() -> None:
    strategy = RemoteScriptStrategy(
        url="https://host.example/headless",
        sandbox_command="runner",
        client=_client(status=503),
        sandbox_factory=_FakeSandbox,
    )
    with pytest.raises(BootstrapStrategyFailure) as exc:
        await strategy.try_acquire()
    assert "fetch failed" in exc.value.reason


@pytest.mark.asyncio
async def test_remote_strategy_timeout_fails_only_this_strategy() -> None:
    def _never_ready(command: list[str]) -> _FakeSandbox:
        return _FakeSandbox(command, ready_after=None)

    remote = RemoteScriptStrategy(
        url="https://host.example/headless",
        sandbox_command="runner --headless",
        client=_client(),
        sandbox_factory=_never_ready,
    )
    chain = BootstrapChain([remote, OfflineSimulationStrategy()])

    acquired = await chain.acquire()

    assert acquired.strategy == "offline-simulation"
    assert _FakeSandbox.instances[-1].closed is True


@pytest.mark.asyncio
async def test_remote_strategy_builds_sandbox_room() -> None:
    strategy = RemoteScriptStrategy(
        url="https://host.example/headless",
        sandbox_command="node runner.js",
        client=_client(text="<html>headless</html>"),
        sandbox_factory=_FakeSandbox,
    )

    init = await strategy.try_acquire()
    sandbox = _FakeSandbox.instances[-1]
    assert sandbox.command == ["node", "runner.js"]
    assert sandbox.loaded == "<html>headless</html>"

    room = await init(RoomConfig(room_name="Remote", max_players=8))
    assert isinstance(room, SandboxRoom)
    op, params = sandbox.requests[-1]
    assert op == "init"
    assert params["config"]["roomName"] == "Remote"
    assert params["config"]["maxPlayers"] == 8


class _SilentSandbox(_FakeSandbox):
    """Runner that starts but never answers a request."""

    async def load(self, *, html: str, url: str) -> None:
        await asyncio.Event().wait()


@pytest.mark.asyncio
async def test_remote_strategy_silent_runner_falls_through_within_deadline() -> None:
    remote = RemoteScriptStrategy(
        url="https://host.example/headless",
        sandbox_command="runner",
        client=_client(),
        ready_timeout_s=0.05,
        sandbox_factory=_SilentSandbox,
    )
    chain = BootstrapChain([remote, OfflineSimulationStrategy()])

    acquired = await asyncio.wait_for(chain.acquire(), timeout=2.0)

    assert acquired.strategy == "offline-simulation"
    assert _FakeSandbox.instances[-1].closed is True


@pytest.mark.asyncio
async def test_remote_strategy_real_runner_that_never_replies_falls_through() -> None:
    command = shlex.join([sys.executable, "-c", "import time; time.sleep(30)"])
    remote = RemoteScriptStrategy(
        url="https://host.example/headless",
        sandbox_command=command,
        client=_client(),
        ready_timeout_s=0.5,
    )
    chain = BootstrapChain([remote, OfflineSimulationStrategy()])

    acquired = await asyncio.wait_for(chain.acquire(), timeout=5.0)

    assert acquired.strategy == "offline-simulation"


@pytest.mark.asyncio
@pytest.mark.parametrize("command", ["node 'unterminated", "   "])
async def test_malformed_runner_command_falls_through(command: str) -> None:
    remote = RemoteScriptStrategy(
        url="https://host.example/headless",
        sandbox_command=command,
        client=_client(),
        sandbox_factory=_FakeSandbox,
    )

    with pytest.raises(BootstrapStrategyFailure) as exc:
        await remote.try_acquire()
    assert "sandbox command" in exc.value.reason

    acquired = await BootstrapChain([remote, OfflineSimulationStrategy()]).acquire()
    assert acquired.strategy == "offline-simulation"
