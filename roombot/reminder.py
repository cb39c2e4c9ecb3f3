from __future__ import annotations

import logging
import time
from collections.abc import Callable

from roombot.session.handle import SessionHandle

logger = logging.getLogger(__name__)

REMINDER_INTERVAL_MS = 180_000
REMINDER_COLOR = 0x7289DA


def monotonic_ms() -> float:
    return time.monotonic() * 1000


class ReminderTask:
    """Broadcast the community invite at most once per interval.

    The elapsed-time check is what enforces the spacing; the timer period only
    decides how often the check runs.
    """

    def __init__(
        self,
        *,
        room: Callable[[], SessionHandle | None],
        invite: str | None,
        interval_ms: int = REMINDER_INTERVAL_MS,
        clock: Callable[[], float] = monotonic_ms,
        last_sent_ms: float | None = None,
    ) -> None:
        self._room = room
        self.invite = invite
        self.interval_ms = interval_ms
        self._clock = clock
        self.last_sent_ms = clock() if last_sent_ms is None else last_sent_ms
        self._sending = False

    @property
    def message(self) -> str:
        return f"📢 Join our Discord server: {self.invite}"

    async def tick(self) -> bool:
        if not self.invite or self._sending:
            return False

        now = self._clock()
        if now - self.last_sent_ms < self.interval_ms:
            return False

        room = self._room()
        if room is None:
            return False

        self._sending = True
        try:
            await room.send_announcement(self.message, None, REMINDER_COLOR, "bold")
        finally:
            self._sending = False
        self.last_sent_ms = max(self.last_sent_ms, now)
        logger.debug("Reminder sent")
        return True
