from __future__ import annotations

import asyncio
import itertools
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Sequence

from roombot.core.config import RoomConfig
from roombot.core.events import ChatVerdict, RoomEvent
from roombot.session.handle import RoomHandleBase
from roombot.session.models import BallPosition, PlayerRecord, Scores

logger = logging.getLogger(__name__)


class SandboxClosed(RuntimeError):
    """The runner process exited while a request was outstanding."""


class ScriptSandbox:
    """Isolated runner process that executes the host's session-initializer script.

    The runner speaks newline-delimited JSON over stdin/stdout:

    - requests:  {"id": 7, "op": "probe" | "load" | "init" | "call", ...}
    - responses: {"id": 7, "result": ...} or {"id": 7, "error": "..."}
    - events:    {"event": "player-chat", "args": [...], "reply": 3}

    Events carrying a "reply" key expect {"reply": 3, "suppress": true|false} back.
    """

    def __init__(self, command: Sequence[str]) -> None:
        self.command = list(command)
        self._proc: asyncio.subprocess.Process | None = None
        self._reader: asyncio.Task[None] | None = None
        self._pending: dict[int, asyncio.Future[Any]] = {}
        self._ids = itertools.count(1)
        self._event_tasks: set[asyncio.Task[Any]] = set()
        self._write_lock = asyncio.Lock()
        self.on_event: Callable[[dict[str, Any]], Awaitable[None]] | None = None

    @property
    def running(self) -> bool:
        return self._proc is not None and self._proc.returncode is None

    async def launch(self) -> None:
        self._proc = await asyncio.create_subprocess_exec(
            *self.command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
        )
        self._reader = asyncio.create_task(self._read_loop())
        logger.info("Script sandbox started (pid=%s)", self._proc.pid)

    async def load(self, *, html: str, url: str) -> None:
        await self.request("load", html=html, url=url)

    async def wait_until_ready(self, *, timeout_s: float = 30.0, poll_interval_s: float = 0.1) -> None:
        """Poll the runner until the initializer is defined inside it.

        Raises TimeoutError when it does not appear within `timeout_s`.
        """

        async with asyncio.timeout(timeout_s):
            while not await self.request("probe"):
                await asyncio.sleep(poll_interval_s)

    async def request(self, op: str, **params: Any) -> Any:
        if not self.running:
            raise SandboxClosed("Script sandbox is not running")

        req_id = next(self._ids)
        fut: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[req_id] = fut
        try:
            await self._write({"id": req_id, "op": op, **params})
            return await fut
        finally:
            self._pending.pop(req_id, None)

    async def reply(self, reply_id: int, **fields: Any) -> None:
        await self._write({"reply": reply_id, **fields})

    async def close(self) -> None:
        if self._proc is not None and self._proc.returncode is None:
            self._proc.terminate()
            await self._proc.wait()
        if self._reader is not None:
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
        self._fail_pending(SandboxClosed("Script sandbox closed"))

    async def _write(self, message: dict[str, Any]) -> None:
        if self._proc is None or self._proc.stdin is None:
            raise SandboxClosed("Script sandbox was never launched")
        line = json.dumps(message, separators=(",", ":")) + "\n"
        async with self._write_lock:
            self._proc.stdin.write(line.encode("utf-8"))
            await self._proc.stdin.drain()

    async def _read_loop(self) -> None:
        if self._proc is None or self._proc.stdout is None:
            raise SandboxClosed("Script sandbox was never launched")
        while True:
            raw = await self._proc.stdout.readline()
            if not raw:
                break
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Ignoring non-JSON sandbox output: %r", raw[:200])
                continue
            if not isinstance(message, dict):
                continue

            if "event" in message:
                # Handlers may issue requests of their own, so never run them on the reader.
                if self.on_event is not None:
                    task = asyncio.create_task(self.on_event(message))
                    self._event_tasks.add(task)
                    task.add_done_callback(self._event_tasks.discard)
                continue

            fut = self._pending.get(message.get("id", -1))
            if fut is None or fut.done():
                continue
            if "error" in message:
                fut.set_exception(RuntimeError(str(message["error"])))
            else:
                fut.set_result(message.get("result"))

        logger.warning("Script sandbox output closed")
        self._fail_pending(SandboxClosed("Script sandbox exited"))

    def _fail_pending(self, exc: Exception) -> None:
        for fut in self._pending.values():
            if not fut.done():
                fut.set_exception(exc)


def _coerce_arg(value: Any) -> Any:
    if isinstance(value, dict) and "id" in value and "name" in value:
        return PlayerRecord.model_validate(value)
    return value


class SandboxRoom(RoomHandleBase):
    """Session handle backed by a room created inside a `ScriptSandbox`."""

    def __init__(self, sandbox: ScriptSandbox) -> None:
        super().__init__()
        self.sandbox = sandbox
        sandbox.on_event = self._on_sandbox_event

    async def _call(self, method: str, *args: Any) -> Any:
        return await self.sandbox.request("call", method=method, args=list(args))

    async def get_player_list(self) -> Sequence[PlayerRecord]:
        raw = await self._call("getPlayerList") or []
        return [PlayerRecord.model_validate(p) for p in raw]

    async def get_max_players(self) -> int:
        return int(await self._call("getMaxPlayers"))

    async def set_player_team(self, player_id: int, team: int) -> None:
        await self._call("setPlayerTeam", player_id, int(team))

    async def kick_player(self, player_id: int, reason: str, ban: bool) -> None:
        await self._call("kickPlayer", player_id, reason, ban)

    async def send_announcement(
        self,
        message: str,
        target_id: int | None = None,
        color: int | None = None,
        style: str = "normal",
    ) -> None:
        await self._call("sendAnnouncement", message, target_id, color, style)

    async def start_game(self) -> None:
        await self._call("startGame")

    async def stop_game(self) -> None:
        await self._call("stopGame")

    async def pause_game(self, paused: bool) -> None:
        await self._call("pauseGame", paused)

    async def get_ball_position(self) -> BallPosition:
        return BallPosition.model_validate(await self._call("getBallPosition") or {})

    async def get_scores(self) -> Scores:
        return Scores.model_validate(await self._call("getScores") or {})

    async def close(self) -> None:
        await self.sandbox.close()

    async def _on_sandbox_event(self, message: dict[str, Any]) -> None:
        try:
            event = RoomEvent(message["event"])
        except ValueError:
            logger.debug("Ignoring unknown sandbox event %r", message.get("event"))
            return

        args = [_coerce_arg(a) for a in message.get("args", [])]
        try:
            result = await self.emit(event, *args)
        except Exception:
            logger.exception("Handler for %s failed", event)
            result = None

        reply_id = message.get("reply")
        if reply_id is not None:
            await self.sandbox.reply(reply_id, suppress=result == ChatVerdict.suppress)


def create_sandbox_initializer(sandbox: ScriptSandbox, *, timeout_s: float = 30.0):
    """Return an initializer that creates the room inside an already-loaded sandbox.

    The sandbox is closed whenever no room comes back, including when the runner
    does not answer within `timeout_s`.
    """

    async def _init(config: RoomConfig) -> SandboxRoom | None:
        try:
            async with asyncio.timeout(timeout_s):
                created = await sandbox.request("init", config=config.to_host_payload())
        except TimeoutError:
            logger.warning("Script sandbox did not create a room within %ss", timeout_s)
            created = None
        except Exception:
            await sandbox.close()
            raise

        if not created:
            await sandbox.close()
            return None
        return SandboxRoom(sandbox)

    return _init
