# app/closures/tasks.py

"""
Celery tasks for shift closures
"""

import asyncio
from datetime import datetime, timezone

from celery import shared_task

from app.catalog.registry import station_registry
from app.closures.repository import ClosureRepository
from app.closures.services import ClosureService
from app.core.db import async_engine, async_session_scope
from app.utils.logger import get_logger

logger = get_logger(__name__)


@shared_task(bind=True, name="app.closures.tasks.sync_closures_auto")
def sync_closures_auto(self):
    """
    Daily catch-up of shift closures, from the newest stored day to today.
    """
    task_id = self.request.id
    logger.info("[Task ID: %s] Starting automatic closure sync", task_id)

    async def _run():
        try:
            async with async_session_scope() as db:
                service = ClosureService(repo=ClosureRepository(db), registry=station_registry)
                return await service.sync_auto()
        finally:
            await async_engine.dispose()

    try:
        result = asyncio.run(_run())
    except Exception as e:
        logger.error("[Task ID: %s] Automatic closure sync failed: %s", task_id, str(e), exc_info=True)
        raise

    logger.info(
        "[Task ID: %s] Closure sync finished: %s closures over %s days, %s errors",
        task_id, result.total_cierres, result.dias, result.errores
    )
    return {
        "status": "success",
        "task_id": task_id,
        **result.model_dump(mode="json"),
        "processed_at": datetime.now(timezone.utc).isoformat(),
    }
