from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Team(IntEnum):
    spectators = 0
    red = 1
    blue = 2


class PlayerRecord(BaseModel):
    """One entry of the room roster as reported by the host."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int
    name: str
    team: int = Team.spectators
    admin: bool = False

    @property
    def is_spectator(self) -> bool:
        return self.team == Team.spectators


class BallPosition(BaseModel):
    x: float = 0.0
    y: float = 0.0


class Scores(BaseModel):
    # Host reports camelCase keys (timeLimit, scoreLimit).
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    red: int = 0
    blue: int = 0
    time: float = 0.0
    time_limit: int = Field(default=0, ge=0)
    score_limit: int = Field(default=0, ge=0)
