from __future__ import annotations

import logging
from typing import Any

from roombot.core.errors import DispatchBindingError
from roombot.core.events import RoomEvent
from roombot.room_events import RoomEvents
from roombot.session.handle import EventHandler, SessionHandle

logger = logging.getLogger(__name__)


EVENT_BINDINGS: dict[RoomEvent, str] = {
    RoomEvent.player_join: "on_player_join",
    RoomEvent.player_leave: "on_player_leave",
    RoomEvent.player_chat: "on_player_chat",
    RoomEvent.team_change: "on_player_team_change",
    RoomEvent.team_goal: "on_team_goal",
    RoomEvent.game_start: "on_game_start",
    RoomEvent.game_stop: "on_game_stop",
    RoomEvent.game_pause: "on_game_pause",
    RoomEvent.game_unpause: "on_game_unpause",
    RoomEvent.ball_kick: "on_player_ball_kick",
    RoomEvent.admin_change: "on_player_admin_change",
}


def _forwarder(target: EventHandler) -> EventHandler:
    async def _forward(*args: Any) -> Any:
        return await target(*args)

    return _forward


class EventDispatchTable:
    """Binds every room event on a session handle to its `RoomEvents` handler."""

    def __init__(self, events: RoomEvents) -> None:
        self.events = events

    def install(self, room: SessionHandle) -> None:
        logger.info("Setting up event handlers...")
        for event, attr in EVENT_BINDINGS.items():
            room.bind(event, _forwarder(getattr(self.events, attr)))

        missing = [event.value for event in RoomEvent if room.handler_for(event) is None]
        if missing:
            raise DispatchBindingError(missing)
        logger.info("Event handlers set up successfully")
