# app/tanks/tasks.py

import asyncio
from datetime import datetime, timezone

from celery import shared_task

from app.core.db import async_engine, async_session_scope
from app.tanks.repository import TankRepository
from app.tanks.services import TankService
from app.utils.logger import get_logger

logger = get_logger(__name__)


@shared_task(bind=True, name="app.tanks.tasks.refresh_tank_levels")
def refresh_tank_levels(self):
    """Store the latest reading of every tracked tank"""
    task_id = self.request.id
    logger.info("[Task ID: %s] Refreshing tank levels", task_id)

    async def _run():
        try:
            async with async_session_scope() as db:
                return await TankService(repo=TankRepository(db)).refresh()
        finally:
            await async_engine.dispose()

    try:
        updated = asyncio.run(_run())
    except Exception as e:
        logger.error("[Task ID: %s] Tank refresh failed: %s", task_id, str(e), exc_info=True)
        raise

    logger.info("[Task ID: %s] %s tanks updated", task_id, updated)
    return {
        "status": "success",
        "task_id": task_id,
        "actualizados": updated,
        "processed_at": datetime.now(timezone.utc).isoformat(),
    }
