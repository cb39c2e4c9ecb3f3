from __future__ import annotations

import logging
from collections.abc import Callable

from roombot.registry import ManualMoveRegistry
from roombot.session.handle import SessionHandle
from roombot.session.models import PlayerRecord, Team

logger = logging.getLogger(__name__)

WARNING_COLOR = 0xFF6600


def needs_correction(player: PlayerRecord, registry: ManualMoveRegistry) -> bool:
    return not player.is_spectator and not player.admin and not registry.is_exempt(player.id)


class AutoJoinCorrector:
    """Hold self-joined players in spectators until an administrator places them."""

    def __init__(self, *, room: Callable[[], SessionHandle | None], registry: ManualMoveRegistry) -> None:
        self._room = room
        self.registry = registry
        self._correcting = False

    async def tick(self) -> list[int]:
        """Run one correction pass over a fresh roster.

        Returns the ids of players moved to spectators. A tick that fires while the
        previous pass is still running does nothing. Errors are logged and swallowed
        so the next tick still runs.
        """

        room = self._room()
        if room is None or self._correcting:
            return []

        self._correcting = True
        moved: list[int] = []
        try:
            for player in await room.get_player_list():
                if not needs_correction(player, self.registry):
                    continue
                await room.set_player_team(player.id, Team.spectators)
                await room.send_announcement(
                    f"⚠️ {player.name} moved to spectators. Wait for admin to assign you to a team.",
                    player.id,
                    WARNING_COLOR,
                    "normal",
                )
                moved.append(player.id)
        except Exception:
            logger.exception("Error in auto-join correction")
        finally:
            self._correcting = False
        return moved
