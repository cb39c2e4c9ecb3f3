from __future__ import annotations

from enum import StrEnum


class RoomEvent(StrEnum):
    player_join = "player-join"
    player_leave = "player-leave"
    player_chat = "player-chat"
    team_change = "team-change"
    team_goal = "team-goal"
    game_start = "game-start"
    game_stop = "game-stop"
    game_pause = "game-pause"
    game_unpause = "game-unpause"
    ball_kick = "ball-kick"
    admin_change = "admin-change"


class ChatVerdict(StrEnum):
    """What the host should do with a chat message after the handler saw it."""

    continue_ = "continue"
    suppress = "suppress"

    @classmethod
    def from_suppress(cls, suppress: bool) -> "ChatVerdict":
        return cls.suppress if suppress else cls.continue_
