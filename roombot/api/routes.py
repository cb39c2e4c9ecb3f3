from __future__ import annotations

from fastapi import APIRouter, Depends

from roombot.api.deps import get_orchestrator
from roombot.api.models import InfoResponse, SessionStatus
from roombot.orchestrator import RoomOrchestrator

router = APIRouter()


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/info", response_model=InfoResponse)
async def info() -> InfoResponse:
    return InfoResponse(name="roombot", version="0.1.0")


@router.get("/session", response_model=SessionStatus)
async def session_status(orchestrator: RoomOrchestrator = Depends(get_orchestrator)) -> SessionStatus:
    """Operator view of the session lifecycle. Read-only."""

    return SessionStatus(
        phase=orchestrator.phase,
        connected=orchestrator.room is not None,
        strategy=orchestrator.strategy,
        room_name=orchestrator.settings.room.room_name,
        bootstrap_attempts=orchestrator.bootstrap_attempts,
        retry_pending=orchestrator.retry_pending,
        manually_moved_count=len(orchestrator.registry),
        last_reminder_ms=orchestrator.reminder.last_sent_ms,
        background_tasks_started=orchestrator.scheduler.started,
    )
