from __future__ import annotations

import logging
from typing import Sequence

from roombot.core.config import RoomConfig
from roombot.core.events import RoomEvent
from roombot.session.handle import RoomHandleBase
from roombot.session.models import BallPosition, PlayerRecord, Scores, Team

logger = logging.getLogger(__name__)


class MockRoom(RoomHandleBase):
    """Self-contained stand-in for a hosted room.

    Every operation is logged and has no network or game effect. The roster lives in
    memory so that simulation helpers (`add_player`, `remove_player`) can drive the
    same events a real host would raise.
    """

    def __init__(self, config: RoomConfig) -> None:
        super().__init__()
        self.config = config
        self._players: dict[int, PlayerRecord] = {}
        self._next_id = 1
        self.announcements: list[tuple[str, int | None]] = []
        self.running = False
        self.paused = False
        logger.info("[MOCK] Creating offline room %r", config.room_name)

    async def get_player_list(self) -> Sequence[PlayerRecord]:
        return list(self._players.values())

    async def get_max_players(self) -> int:
        return self.config.max_players

    async def set_player_team(self, player_id: int, team: int) -> None:
        logger.info("[MOCK] Player %s moved to team %s", player_id, team)
        player = self._players.get(player_id)
        if player is not None:
            self._players[player_id] = player.model_copy(update={"team": int(team)})

    async def kick_player(self, player_id: int, reason: str, ban: bool) -> None:
        logger.info("[MOCK] Player %s %s: %s", player_id, "banned" if ban else "kicked", reason)
        self._players.pop(player_id, None)

    async def send_announcement(
        self,
        message: str,
        target_id: int | None = None,
        color: int | None = None,
        style: str = "normal",
    ) -> None:
        logger.info("[MOCK] %s", message)
        self.announcements.append((message, target_id))

    async def start_game(self) -> None:
        logger.info("[MOCK] Game started")
        self.running = True

    async def stop_game(self) -> None:
        logger.info("[MOCK] Game stopped")
        self.running = False

    async def pause_game(self, paused: bool) -> None:
        logger.info("[MOCK] Game %s", "paused" if paused else "unpaused")
        self.paused = paused

    async def get_ball_position(self) -> BallPosition:
        return BallPosition(x=0, y=0)

    async def get_scores(self) -> Scores:
        return Scores(
            red=0,
            blue=0,
            time=0,
            time_limit=self.config.time_limit,
            score_limit=self.config.score_limit,
        )

    # ---- simulation helpers ----

    async def add_player(self, name: str, *, team: int = Team.spectators, admin: bool = False) -> PlayerRecord:
        player = PlayerRecord(id=self._next_id, name=name, team=int(team), admin=admin)
        self._next_id += 1
        self._players[player.id] = player
        await self.emit(RoomEvent.player_join, player)
        return player

    async def remove_player(self, player_id: int) -> None:
        player = self._players.pop(player_id, None)
        if player is not None:
            await self.emit(RoomEvent.player_leave, player)


def create_mock_initializer():
    """Return an initializer that builds a `MockRoom` for the given room config."""

    def _init(config: RoomConfig) -> MockRoom:
        return MockRoom(config)

    return _init
