from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any

from roombot.bootstrap.chain import BootstrapChain, default_chain
from roombot.core.config import Settings, require_access_token
from roombot.core.errors import SessionCreationFailure
from roombot.corrector import AutoJoinCorrector
from roombot.dispatch import EventDispatchTable
from roombot.lifecycle import SessionLifecycle, SessionPhase
from roombot.notifier import DiscordWebhookNotifier, Notification, NotificationField
from roombot.registry import ManualMoveRegistry
from roombot.reminder import REMINDER_INTERVAL_MS, ReminderTask, monotonic_ms
from roombot.room_events import ChatProcessor, MatchStatsSink, RoomEvents
from roombot.scheduler import BackgroundScheduler, PeriodicTask
from roombot.session.handle import SessionHandle

logger = logging.getLogger(__name__)

CORRECTION_PERIOD_S = 1.0
HEALTH_CHECK_PERIOD_S = 30.0


class RoomOrchestrator:
    """Owns the session handle and everything that keeps it alive.

    Constructed once at process entry. Components that need the handle receive
    `current_room` and read it on every tick; nothing caches it.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        chain: BootstrapChain | None = None,
        notifier: DiscordWebhookNotifier | None = None,
        chat: ChatProcessor | None = None,
        stats: MatchStatsSink | None = None,
        host_surface: Any | None = None,
        clock: Callable[[], float] = monotonic_ms,
        reminder_period_s: float = REMINDER_INTERVAL_MS / 1000,
        correction_period_s: float = CORRECTION_PERIOD_S,
        health_period_s: float = HEALTH_CHECK_PERIOD_S,
    ) -> None:
        self.settings = settings
        self.room: SessionHandle | None = None
        self.strategy: str | None = None
        self.bootstrap_attempts = 0

        self.lifecycle = SessionLifecycle()
        self.registry = ManualMoveRegistry()
        self.events = RoomEvents(registry=self.registry, chat=chat, stats=stats)
        self.dispatch = EventDispatchTable(self.events)
        self.chain = chain or default_chain(settings, host_surface=host_surface)
        self.notifier = notifier or DiscordWebhookNotifier(settings.discord_webhook_url)

        self.corrector = AutoJoinCorrector(room=self.current_room, registry=self.registry)
        self.reminder = ReminderTask(room=self.current_room, invite=settings.discord_invite, clock=clock)
        self.scheduler = BackgroundScheduler(
            [
                PeriodicTask("reminder", reminder_period_s, self.reminder.tick),
                PeriodicTask("auto-join", correction_period_s, self.corrector.tick),
                PeriodicTask("health-check", health_period_s, self.health_check),
            ]
        )

        self._retry: asyncio.Task[None] | None = None

    def current_room(self) -> SessionHandle | None:
        return self.room

    @property
    def phase(self) -> SessionPhase:
        return self.lifecycle.phase

    @property
    def retry_pending(self) -> bool:
        return self._retry is not None and not self._retry.done()

    async def start(self) -> "RoomOrchestrator":
        """Bootstrap a session and bring the room online.

        A missing access token raises ConfigurationError before any strategy runs and
        schedules nothing. Any other failure is logged, a full retry is scheduled after
        `settings.retry_delay_s`, and the error is re-raised to the caller.
        """

        require_access_token(self.settings)

        if self.lifecycle.phase is SessionPhase.bootstrapping:
            logger.info("Bootstrap already in progress; ignoring start request")
            return self
        if self.lifecycle.phase is SessionPhase.ready:
            if self.room is not None:
                return self
            self.lifecycle.dropped()

        self.lifecycle.begin()
        self.bootstrap_attempts += 1
        room: SessionHandle | None = None
        try:
            logger.info("Starting room bot (attempt %s)...", self.bootstrap_attempts)

            acquired = await self.chain.acquire()
            created = acquired.init(self.settings.room)
            room = await created if inspect.isawaitable(created) else created
            if not room:
                raise SessionCreationFailure("Failed to create room")
            logger.info("Room initialized successfully via %s", acquired.strategy)

            self.dispatch.install(room)
            self.registry.clear()
            self.room = room
            self.strategy = acquired.strategy
            self.lifecycle.established()

            self.scheduler.start()
            self._cancel_retry()

            await self.notifier.send(self._startup_notification())
            logger.info("%s is now live!", self.settings.room.room_name)
            return self

        except Exception:
            logger.exception("Failed to start room bot")
            self.room = None
            if self.lifecycle.phase is SessionPhase.bootstrapping:
                self.lifecycle.failed()
            elif self.lifecycle.phase is SessionPhase.ready:
                self.lifecycle.dropped()
            self._schedule_retry()
            if room:
                await self._discard(room)
            raise

    async def _discard(self, room: SessionHandle) -> None:
        try:
            await room.close()
        except Exception:
            logger.exception("Failed to close abandoned room session")

    def launch(self) -> asyncio.Task[None]:
        """Start in the background; failures are already logged and retried by `start`."""

        async def _run() -> None:
            try:
                await self.start()
            except Exception as e:
                logger.debug("Background start failed: %s", e)

        return asyncio.create_task(_run(), name="room-bootstrap")

    async def health_check(self) -> bool:
        """Restart the session when no handle is present.

        Only the presence of the handle is checked; a handle that exists but no longer
        responds is not detected here. Returns True when a bootstrap was triggered.
        """

        if self.room is not None:
            return False
        if self.lifecycle.phase is SessionPhase.bootstrapping:
            return False

        logger.warning("Room not active, attempting restart...")
        try:
            await self.start()
        except Exception as e:
            logger.error("Health-check restart failed: %s", e)
        return True

    async def stop(self) -> None:
        """Drop the current session. The health check will bring up a new one."""

        room, self.room = self.room, None
        if self.lifecycle.phase is SessionPhase.ready:
            self.lifecycle.dropped()
        if room is not None:
            await room.close()
            logger.info("Room session closed")

    async def shutdown(self) -> None:
        self._cancel_retry()
        await self.scheduler.shutdown()
        await self.stop()
        await self.notifier.aclose()

    def _schedule_retry(self) -> None:
        if self.retry_pending:
            return
        delay = self.settings.retry_delay_s
        logger.info("Retrying in %s seconds...", delay)
        self._retry = asyncio.create_task(self._retry_after(delay), name="room-retry")

    async def _retry_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        # Clear first so a failure inside start() can schedule the next retry.
        self._retry = None
        try:
            await self.start()
        except Exception as e:
            logger.debug("Retry attempt failed: %s", e)

    def _cancel_retry(self) -> None:
        task = self._retry
        self._retry = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def _startup_notification(self) -> Notification:
        room = self.settings.room
        return Notification(
            title=f"🎮 {room.room_name} Room Started",
            description="Room is now online and ready for players!",
            color=0x00FF00,
            fields=[
                NotificationField("Room Name", room.room_name),
                NotificationField("Max Players", str(room.max_players)),
                NotificationField("Location", self.settings.location),
            ],
        )
