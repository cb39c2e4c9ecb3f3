from __future__ import annotations

from pydantic import BaseModel

from roombot.lifecycle import SessionPhase


class SessionStatus(BaseModel):
    phase: SessionPhase
    connected: bool
    strategy: str | None = None
    room_name: str
    bootstrap_attempts: int
    retry_pending: bool
    manually_moved_count: int
    last_reminder_ms: float
    background_tasks_started: bool


class InfoResponse(BaseModel):
    name: str
    version: str
