# app/invoicing/tasks.py

"""
Celery tasks for invoices and receipts
"""

import asyncio
from datetime import datetime, timezone

from celery import shared_task

from app.core.db import async_engine, async_session_scope
from app.invoicing.repository import InvoicingRepository
from app.invoicing.services import InvoicingService
from app.invoicing.utils import last_hour_range
from app.utils.logger import get_logger

logger = get_logger(__name__)


@shared_task(bind=True, name="app.invoicing.tasks.sync_last_hour")
def sync_last_hour(self):
    """
    Hourly sync of invoices and receipts issued during the previous hour.
    """
    task_id = self.request.id
    desde, hasta = last_hour_range()
    logger.info("[Task ID: %s] Syncing invoicing from %s to %s", task_id, desde, hasta)

    async def _run():
        try:
            async with async_session_scope() as db:
                service = InvoicingService(repo=InvoicingRepository(db))
                return await service.sync_all(desde, hasta)
        finally:
            await async_engine.dispose()

    try:
        result = asyncio.run(_run())
    except Exception as e:
        logger.error("[Task ID: %s] Invoicing sync failed: %s", task_id, str(e), exc_info=True)
        raise

    logger.info(
        "[Task ID: %s] Invoices: %s new, %s updated. Receipts: %s new, %s updated",
        task_id,
        result.facturas.insertados, result.facturas.actualizados,
        result.recibos.insertados, result.recibos.actualizados,
    )
    return {
        "status": "success",
        "task_id": task_id,
        "desde": desde,
        "hasta": hasta,
        **result.model_dump(),
        "processed_at": datetime.now(timezone.utc).isoformat(),
    }
