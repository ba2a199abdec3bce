# app/catalog/tasks.py

"""
Celery tasks for the product catalog
"""

import asyncio
from datetime import datetime, timezone

from celery import shared_task

from app.catalog.repository import CatalogRepository
from app.catalog.services import CatalogService
from app.core.db import async_engine, async_session_scope
from app.utils.logger import get_logger

logger = get_logger(__name__)


@shared_task(bind=True, name="app.catalog.tasks.refresh_product_catalog")
def refresh_product_catalog(self):
    """
    Import new articles into dim_producto and re-run the category rules.
    """
    task_id = self.request.id
    logger.info("[Task ID: %s] Refreshing product catalog", task_id)

    async def _run():
        try:
            async with async_session_scope() as db:
                service = CatalogService(repo=CatalogRepository(db))
                synced = await service.sync_products()
                recategorized = await service.recategorize()
                return synced, recategorized
        finally:
            await async_engine.dispose()

    try:
        synced, recategorized = asyncio.run(_run())
    except Exception as e:
        logger.error("[Task ID: %s] Product catalog refresh failed: %s", task_id, str(e), exc_info=True)
        raise

    logger.info(
        "[Task ID: %s] Product catalog refreshed: %s new, %s recategorized",
        task_id, synced.insertados, recategorized.actualizados
    )
    return {
        "status": "success",
        "task_id": task_id,
        "insertados": synced.insertados,
        "recategorizados": recategorized.actualizados,
        "processed_at": datetime.now(timezone.utc).isoformat(),
    }
