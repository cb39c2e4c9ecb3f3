from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class ManualMoveRegistry:
    """Players an administrator has placed on a team since they last joined.

    Registered players are exempt from auto-join correction. Entries are dropped when
    the player leaves, so a rejoin with the same id starts unexempted.
    """

    def __init__(self) -> None:
        self._ids: set[int] = set()

    def mark_manually_moved(self, player_id: int) -> None:
        self._ids.add(player_id)
        logger.info("Player %s marked as manually moved", player_id)

    def clear_tracking(self, player_id: int) -> None:
        self._ids.discard(player_id)

    def clear(self) -> None:
        self._ids.clear()

    def is_exempt(self, player_id: int) -> bool:
        return player_id in self._ids

    def __contains__(self, player_id: object) -> bool:
        return player_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)
