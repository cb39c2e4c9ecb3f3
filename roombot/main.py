from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI

from roombot.api.routes import router
from roombot.core.config import require_access_token, settings_from_env
from roombot.orchestrator import RoomOrchestrator

# Real environment variables win over .env values.
load_dotenv(override=False)

app = FastAPI(title="roombot", version="0.1.0")
app.include_router(router)

logger = logging.getLogger(__name__)


@app.on_event("startup")
async def _startup() -> None:
    settings = settings_from_env()
    logging.basicConfig(level=settings.log_level)
    # A missing token aborts startup here; it is never retried.
    require_access_token(settings)
    orchestrator = RoomOrchestrator(settings)
    app.state.orchestrator = orchestrator
    orchestrator.launch()


@app.on_event("shutdown")
async def _shutdown() -> None:
    orchestrator: RoomOrchestrator | None = getattr(app.state, "orchestrator", None)
    if orchestrator is not None:
        await orchestrator.shutdown()
