from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, Sequence

from roombot.core.config import RoomConfig
from roombot.core.events import RoomEvent
from roombot.session.models import BallPosition, PlayerRecord, Scores

EventHandler = Callable[..., Awaitable[Any]]


class SessionHandle(Protocol):
    """Operation surface of a live room, whether hosted, sandboxed or simulated."""

    async def get_player_list(self) -> Sequence[PlayerRecord]:  # pragma: no cover
        ...

    async def set_player_team(self, player_id: int, team: int) -> None:  # pragma: no cover
        ...

    async def kick_player(self, player_id: int, reason: str, ban: bool) -> None:  # pragma: no cover
        ...

    async def send_announcement(
        self,
        message: str,
        target_id: int | None = None,
        color: int | None = None,
        style: str = "normal",
    ) -> None:  # pragma: no cover
        ...

    async def start_game(self) -> None:  # pragma: no cover
        ...

    async def stop_game(self) -> None:  # pragma: no cover
        ...

    async def pause_game(self, paused: bool) -> None:  # pragma: no cover
        ...

    async def get_ball_position(self) -> BallPosition:  # pragma: no cover
        ...

    async def get_scores(self) -> Scores:  # pragma: no cover
        ...

    async def get_max_players(self) -> int:  # pragma: no cover
        ...

    def bind(self, event: RoomEvent, handler: EventHandler) -> None:  # pragma: no cover
        ...

    def handler_for(self, event: RoomEvent) -> EventHandler | None:  # pragma: no cover
        ...

    async def emit(self, event: RoomEvent, *args: Any) -> Any:  # pragma: no cover
        ...

    async def close(self) -> None:  # pragma: no cover
        ...


# Initializers may be plain callables (in-process hosts) or coroutines (sandboxed hosts).
Initializer = Callable[[RoomConfig], SessionHandle | None | Awaitable[SessionHandle | None]]


class RoomHandleBase:
    """Event slot table shared by every handle implementation.

    Exactly one handler per event name; binding again replaces the previous handler.
    """

    def __init__(self) -> None:
        self._handlers: dict[RoomEvent, EventHandler] = {}

    def bind(self, event: RoomEvent, handler: EventHandler) -> None:
        self._handlers[RoomEvent(event)] = handler

    def handler_for(self, event: RoomEvent) -> EventHandler | None:
        return self._handlers.get(RoomEvent(event))

    @property
    def bound_events(self) -> frozenset[RoomEvent]:
        return frozenset(self._handlers)

    async def emit(self, event: RoomEvent, *args: Any) -> Any:
        """Deliver a host event to its bound handler and return the handler's result.

        Events without a handler are ignored, which only happens before the dispatch
        table has been installed.
        """

        handler = self._handlers.get(RoomEvent(event))
        if handler is None:
            return None
        return await handler(*args)

    async def close(self) -> None:
        """Release host resources; the in-process handles hold none."""
