from __future__ import annotations

import os
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from roombot.core.errors import ConfigurationError


DEFAULT_HEADLESS_URL = "https://www.haxball.com/headless"


class RoomConfig(BaseModel):
    """Room configuration handed to the host initializer.

    Field names are snake_case in Python; `to_host_payload()` renders the camelCase
    keys the host initializer expects (roomName, maxPlayers, ...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    room_name: str = Field(..., min_length=1)
    max_players: int = Field(default=16, ge=2, le=30)
    public: bool = True
    time_limit: int = Field(default=5, ge=0)
    score_limit: int = Field(default=3, ge=0)
    token: str = ""
    no_player: bool = True

    def to_host_payload(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)


@dataclass(frozen=True, slots=True)
class Settings:
    haxball_token: str
    room: RoomConfig
    location: str = "Egypt"
    discord_webhook_url: str | None = None
    discord_invite: str | None = None
    headless_url: str = DEFAULT_HEADLESS_URL
    # Command line for the isolated script runner (e.g. "node headless-runner.js").
    sandbox_command: str | None = None
    # "module:attr" of an initializer already importable in this process.
    native_initializer: str | None = None
    retry_delay_s: float = 30.0
    log_level: str = "INFO"


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def _float_from_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


def _bool_from_env(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().casefold() in {"1", "true", "yes", "on"}


def settings_from_env() -> Settings:
    """Build settings from the process environment.

    The access token is read but not validated here; an empty token is reported as a
    ConfigurationError when the orchestrator starts, before any bootstrap strategy runs.
    """

    token = os.environ.get("HAXBALL_TOKEN", "").strip()
    try:
        room = RoomConfig(
            room_name=os.environ.get("ROOMBOT_ROOM_NAME", "RHL TOURNAMENT"),
            max_players=_int_from_env("ROOMBOT_MAX_PLAYERS", 16),
            public=_bool_from_env("ROOMBOT_PUBLIC", True),
            time_limit=_int_from_env("ROOMBOT_TIME_LIMIT", 5),
            score_limit=_int_from_env("ROOMBOT_SCORE_LIMIT", 3),
            token=token,
        )
    except ValueError as e:
        # pydantic.ValidationError is a ValueError subclass.
        raise ConfigurationError(f"Invalid room configuration: {e}") from e

    return Settings(
        haxball_token=token,
        room=room,
        location=os.environ.get("ROOMBOT_LOCATION", "Egypt"),
        discord_webhook_url=os.environ.get("DISCORD_WEBHOOK_URL") or None,
        discord_invite=os.environ.get("DISCORD_INVITE") or None,
        headless_url=os.environ.get("ROOMBOT_HEADLESS_URL", DEFAULT_HEADLESS_URL),
        sandbox_command=os.environ.get("ROOMBOT_SANDBOX_COMMAND") or None,
        native_initializer=os.environ.get("ROOMBOT_NATIVE_INITIALIZER") or None,
        retry_delay_s=_float_from_env("ROOMBOT_RETRY_DELAY_S", 30.0),
        log_level=os.environ.get("ROOMBOT_LOG_LEVEL", "INFO").upper(),
    )


def require_access_token(settings: Settings) -> str:
    if not settings.haxball_token:
        raise ConfigurationError("HAXBALL_TOKEN is required")
    return settings.haxball_token
