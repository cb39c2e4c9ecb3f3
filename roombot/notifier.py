from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NotificationField:
    name: str
    value: str
    inline: bool = True


@dataclass(frozen=True, slots=True)
class Notification:
    title: str
    description: str
    color: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    fields: list[NotificationField] = field(default_factory=list)

    def as_embed(self) -> dict[str, object]:
        return {
            "title": self.title,
            "description": self.description,
            "color": self.color,
            "timestamp": self.timestamp.isoformat(),
            "fields": [{"name": f.name, "value": f.value, "inline": f.inline} for f in self.fields],
        }


class DiscordWebhookNotifier:
    """Deliver notifications to a Discord webhook.

    Without a webhook URL every send is a no-op. Delivery errors are logged, never
    raised: the room keeps running when the channel is unreachable.
    """

    def __init__(self, webhook_url: str | None, *, client: httpx.AsyncClient | None = None) -> None:
        self.webhook_url = webhook_url
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=10.0)
        return self._client

    async def send(self, notification: Notification) -> bool:
        if not self.webhook_url:
            logger.debug("No webhook configured; skipping %r", notification.title)
            return False

        client = await self._get_client()
        try:
            resp = await client.post(self.webhook_url, json={"embeds": [notification.as_embed()]})
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Failed to deliver notification %r: %s", notification.title, e)
            return False
        return True

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
