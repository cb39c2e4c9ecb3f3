from __future__ import annotations

from fastapi import HTTPException, Request, status

from roombot.orchestrator import RoomOrchestrator


def get_orchestrator(request: Request) -> RoomOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Room bot not started")
    return orchestrator
