from __future__ import annotations

import logging
from typing import Any, Protocol

from roombot.core.events import ChatVerdict
from roombot.registry import ManualMoveRegistry
from roombot.session.models import PlayerRecord

logger = logging.getLogger(__name__)


class ChatProcessor(Protocol):
    async def process(self, player: PlayerRecord, message: str) -> bool:  # pragma: no cover
        """Handle a chat line; return True to suppress it."""
        ...


class MatchStatsSink(Protocol):
    def record(self, kind: str, **payload: Any) -> None:  # pragma: no cover
        ...


class PassthroughChatProcessor:
    async def process(self, player: PlayerRecord, message: str) -> bool:
        return False


class LoggingStatsSink:
    def record(self, kind: str, **payload: Any) -> None:
        logger.debug("match event %s %s", kind, payload)


class RoomEvents:
    """Default handlers behind the dispatch table.

    Keeps the manual-move registry in sync with admin actions and forwards everything
    else to the chat and statistics collaborators.
    """

    def __init__(
        self,
        *,
        registry: ManualMoveRegistry,
        chat: ChatProcessor | None = None,
        stats: MatchStatsSink | None = None,
    ) -> None:
        self.registry = registry
        self.chat = chat or PassthroughChatProcessor()
        self.stats = stats or LoggingStatsSink()

    async def on_player_join(self, player: PlayerRecord) -> None:
        logger.info("Player joined: %s (#%s)", player.name, player.id)
        self.stats.record("join", player=player)

    async def on_player_leave(self, player: PlayerRecord) -> None:
        logger.info("Player left: %s (#%s)", player.name, player.id)
        self.registry.clear_tracking(player.id)
        self.stats.record("leave", player=player)

    async def on_player_chat(self, player: PlayerRecord, message: str) -> ChatVerdict:
        suppress = await self.chat.process(player, message)
        return ChatVerdict.from_suppress(bool(suppress))

    async def on_player_team_change(self, changed: PlayerRecord, by_player: PlayerRecord | None) -> None:
        # by_player is None when the host (or this bot) moved the player.
        if by_player is not None and by_player.admin:
            self.registry.mark_manually_moved(changed.id)

    async def on_team_goal(self, team: int) -> None:
        self.stats.record("goal", team=team)

    async def on_game_start(self, by_player: PlayerRecord | None) -> None:
        self.stats.record("game_start", by_player=by_player)

    async def on_game_stop(self, by_player: PlayerRecord | None) -> None:
        self.stats.record("game_stop", by_player=by_player)

    async def on_game_pause(self, by_player: PlayerRecord | None) -> None:
        self.stats.record("game_pause", by_player=by_player)

    async def on_game_unpause(self, by_player: PlayerRecord | None) -> None:
        self.stats.record("game_unpause", by_player=by_player)

    async def on_player_ball_kick(self, player: PlayerRecord) -> None:
        self.stats.record("kick", player=player)

    async def on_player_admin_change(self, changed: PlayerRecord, by_player: PlayerRecord | None) -> None:
        self.stats.record("admin_change", player=changed, by_player=by_player)
