"""
Scheduled/periodic tasks.
"""

import asyncio

import structlog
from celery import shared_task

from accessgate.core.config import settings
from accessgate.models.database import build_engine, build_session_factory
from accessgate.services.admin import sweep_expired_grants

logger = structlog.get_logger()


async def _sweep() -> int:
    # Each task run owns its event loop, so it needs its own engine
    engine = build_engine(settings.database)
    try:
        return await sweep_expired_grants(build_session_factory(engine))
    finally:
        await engine.dispose()


@shared_task
def sweep_expired_grants_task():
    """Delete temporal grants whose expiry has passed."""
    removed = asyncio.run(_sweep())
    logger.info("Expired grants swept", removed=removed)
    return {"status": "completed", "removed": removed}
