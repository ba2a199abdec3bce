# app/invoicing/services.py

"""
Invoice and receipt synchronisation.

Each sync pulls one date range from the vendor, upserts every document with
its child rows in a single transaction and writes a logs_ingesta row with
the outcome. An error status from the vendor is not a failure: the range
is treated as empty.
"""

import asyncio
import time
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.caldenon import api_client
from app.caldenon.exceptions import CaldenonAPIException, CaldenonHTMLResponseException, is_unreachable
from app.caldenon.xml_parser import is_html
from app.core.config import settings
from app.core.db import get_async_db
from app.ingestion.models import LogIngesta
from app.ingestion.repository import IngestionLogRepository
from app.ingestion.schemas import IngestionKind, error_status, success_status
from app.invoicing.exceptions import InvoicingValidationException
from app.invoicing.repository import InvoicingRepository
from app.invoicing.schemas import FullSyncData, HistoryPeriod, HistoryResponse, SyncCounts
from app.invoicing.utils import (
    map_card_coupons, map_invoice_details, map_invoice_header, map_invoice_summaries,
    map_invoice_values, map_receipt, map_receipt_children, map_receipt_summaries,
    monthly_periods, parse_invoices, parse_receipts, to_vendor_date,
)
from app.utils.logger import get_logger
from app.utils.retry import retry_async

logger = get_logger(__name__)


def get_invoicing_repository(db: AsyncSession = Depends(get_async_db)) -> InvoicingRepository:
    return InvoicingRepository(db)


class InvoicingService:
    """Service layer for invoices and receipts"""

    def __init__(self, repo: InvoicingRepository = Depends(get_invoicing_repository)):
        self.repo = repo
        self.logs = IngestionLogRepository(repo.db)

    async def _sync(
        self,
        kind: IngestionKind,
        fetcher: Callable[[str, str], Awaitable[str]],
        parser: Callable[[str], List[Dict[str, Any]]],
        store: Callable[[Dict[str, Any]], Awaitable[Optional[bool]]],
        desde: str,
        hasta: str,
    ) -> SyncCounts:
        started = time.monotonic()
        counts = SyncCounts()
        logger.info("Starting sync", tipo=kind.value, desde=desde, hasta=hasta)

        try:
            try:
                body = await retry_async(
                    fetcher, desde, hasta, operation_name=kind.value, should_retry=is_unreachable,
                )
            except CaldenonAPIException as e:
                if e.upstream_status is None:
                    raise
                logger.warning(
                    "Vendor answered with an error status, nothing synced",
                    tipo=kind.value,
                    status_code=e.upstream_status,
                )
                return counts

            if not body or not body.strip():
                logger.info("Empty vendor response, nothing synced", tipo=kind.value)
                return counts

            documents = parser(body)
            logger.info("Documents received", tipo=kind.value, total=len(documents))

            for document in documents:
                inserted = await store(document)
                if inserted is None:
                    continue
                counts.registros += 1
                if inserted:
                    counts.insertados += 1
                else:
                    counts.actualizados += 1

            elapsed = time.monotonic() - started
            await self.logs.add(
                success_status(kind),
                counts.registros,
                f"Insertados: {counts.insertados}, Actualizados: {counts.actualizados}, Duración: {elapsed:.1f}s",
            )
            await self.repo.db.commit()
        except Exception as e:
            await self.repo.db.rollback()
            logger.error("Sync failed", tipo=kind.value, desde=desde, hasta=hasta, error_message=str(e), exc_info=True)
            await self.logs.add(error_status(kind), counts.registros, str(e))
            await self.repo.db.commit()
            raise

        logger.info(
            "Sync finished",
            tipo=kind.value,
            insertados=counts.insertados,
            actualizados=counts.actualizados,
            duracion=round(elapsed, 1),
        )
        return counts

    # === Invoices ===

    async def _store_invoice(self, document: Dict[str, Any]) -> Optional[bool]:
        cab = document.get("cabecera")
        if not isinstance(cab, dict):
            logger.warning("Invoice without header skipped")
            return None

        id_factura, inserted = await self.repo.upsert_invoice(map_invoice_header(cab))
        await self.repo.upsert_invoice_values(id_factura, map_invoice_values(document.get("valores")))
        await self.repo.insert_invoice_details(id_factura, map_invoice_details(document.get("detalle")))
        await self.repo.insert_card_coupons(id_factura, map_card_coupons(cab))
        return inserted

    async def sync_invoices(self, desde: str, hasta: str) -> SyncCounts:
        return await self._sync(
            IngestionKind.FACTURAS, api_client.fetch_sales_invoices, parse_invoices,
            self._store_invoice, desde, hasta,
        )

    # === Receipts ===

    async def _store_receipt(self, document: Dict[str, Any]) -> Optional[bool]:
        id_recibo, inserted = await self.repo.upsert_receipt(map_receipt(document))
        await self.repo.insert_receipt_children(id_recibo, map_receipt_children(document))
        return inserted

    async def sync_receipts(self, desde: str, hasta: str) -> SyncCounts:
        return await self._sync(
            IngestionKind.RECIBOS, api_client.fetch_receipts, parse_receipts,
            self._store_receipt, desde, hasta,
        )

    # === Orchestration ===

    async def sync_all(self, desde: str, hasta: str) -> FullSyncData:
        """Invoices then receipts for the same range, one after the other"""
        facturas = await self.sync_invoices(desde, hasta)
        recibos = await self.sync_receipts(desde, hasta)
        return FullSyncData(facturas=facturas, recibos=recibos)

    async def sync_history(self, today: Optional[date] = None) -> HistoryResponse:
        """
        Re-import everything since history_start_date, one calendar month at a
        time. A failing month is reported and the next one is attempted.
        """
        today = today or date.today()
        periods = monthly_periods(date.fromisoformat(settings.history_start_date), today)
        logger.info("Starting history download", periodos=len(periods))

        results = []
        errors = 0
        for index, (start, end) in enumerate(periods):
            label = f"{start} - {end}"
            try:
                data = await self.sync_all(start, end)
                results.append(HistoryPeriod(periodo=label, facturas=data.facturas, recibos=data.recibos))
            except Exception as e:
                errors += 1
                logger.error("History period failed", periodo=label, error_message=str(e))
                results.append(HistoryPeriod(periodo=label, error=str(e)))

            if index < len(periods) - 1 and settings.history_period_pause > 0:
                await asyncio.sleep(settings.history_period_pause)

        return HistoryResponse(
            message="Descarga de historia completada",
            periodos=len(results),
            errores=errors,
            data=results,
        )

    async def list_logs(self, kind: Optional[IngestionKind], limit: int = 50) -> List[LogIngesta]:
        return await self.logs.list_logs(kind, limit)

    # === Vendor passthrough ===

    @staticmethod
    def _vendor_range(desde: Optional[str], hasta: Optional[str]):
        if not desde or not hasta:
            raise InvoicingValidationException(
                "desdeFecha and hastaFecha are required (YYYY-MM-DD)"
            )
        return to_vendor_date(desde), to_vendor_date(hasta)

    async def get_invoice_summaries(self, desde: Optional[str], hasta: Optional[str]) -> List[Dict[str, Any]]:
        desde_api, hasta_api = self._vendor_range(desde, hasta)
        body = await api_client.fetch_sales_invoices(desde_api, hasta_api)
        if is_html(body):
            raise CaldenonHTMLResponseException("/Facturacion/GetFacturasVenta")
        invoices = map_invoice_summaries(body)
        logger.debug("Invoice summaries fetched", total=len(invoices))
        return invoices

    async def get_receipt_summaries(self, desde: Optional[str], hasta: Optional[str]) -> List[Dict[str, Any]]:
        desde_api, hasta_api = self._vendor_range(desde, hasta)
        body = await api_client.fetch_receipts(desde_api, hasta_api)
        if is_html(body):
            raise CaldenonHTMLResponseException("/CtaCte/GetRecibosEntreFechas")
        receipts = map_receipt_summaries(body)
        logger.debug("Receipt summaries fetched", total=len(receipts))
        return receipts
