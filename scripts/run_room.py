"""Run the room bot without the status API.

Usage:
    python scripts/run_room.py

Reads configuration from the environment (and `.env` if present). Runs until
interrupted; a failed first bootstrap keeps retrying in the background.
"""

from __future__ import annotations

import asyncio
import logging

from dotenv import load_dotenv

from roombot.core.config import settings_from_env
from roombot.core.errors import ConfigurationError
from roombot.orchestrator import RoomOrchestrator

logger = logging.getLogger("roombot")


async def main() -> None:
    settings = settings_from_env()
    logging.basicConfig(level=settings.log_level)

    orchestrator = RoomOrchestrator(settings)
    try:
        await orchestrator.start()
    except ConfigurationError:
        raise
    except Exception:
        # Already logged; the delayed retry keeps running.
        pass

    try:
        await asyncio.Event().wait()
    finally:
        await orchestrator.shutdown()


if __name__ == "__main__":
    load_dotenv(override=False)
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down")
