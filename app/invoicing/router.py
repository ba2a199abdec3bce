# app/invoicing/router.py

"""
Invoice and receipt endpoints: synchronisation, ingestion logs and vendor
passthrough queries.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.caldenon.exceptions import CaldenonBaseException
from app.caldenon.exceptions import convert_to_http_exception as vendor_http_exception
from app.ingestion.schemas import IngestionKind, LogIngestaList, LogIngestaResponse
from app.invoicing.exceptions import InvoicingBaseException, convert_to_http_exception
from app.invoicing.schemas import (
    FullSyncResponse, HistoryResponse, InvoiceSummary, ReceiptSummary, SyncResponse,
)
from app.invoicing.services import InvoicingService
from app.invoicing.utils import resolve_range, yesterday
from app.users.models import User
from app.users.utils import get_current_user, require_sync
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Invoicing"])


def _sync_failed(what: str, e: Exception) -> HTTPException:
    if isinstance(e, CaldenonBaseException):
        return vendor_http_exception(e)
    return HTTPException(status_code=500, detail=f"Failed to sync {what}: {str(e)}")


# ===================== Synchronisation =====================

@router.api_route("/facturas/sync", methods=["GET", "POST"], response_model=SyncResponse)
async def sync_invoices(
    fecha_inicio: Optional[str] = Query(None, alias="fechaInicio"),
    fecha_fin: Optional[str] = Query(None, alias="fechaFin"),
    invoicing_service: InvoicingService = Depends(),
    current_user: User = Depends(require_sync),
):
    """Sync invoices for a range, yesterday when no dates are given"""
    desde, hasta = resolve_range(fecha_inicio, fecha_fin)
    try:
        data = await invoicing_service.sync_invoices(desde, hasta)
    except Exception as e:
        logger.error("Error syncing invoices", error=str(e))
        raise _sync_failed("invoices", e) from e
    return SyncResponse(message="Sincronización de facturas completada", data=data)


@router.api_route("/recibos/sync", methods=["GET", "POST"], response_model=SyncResponse)
async def sync_receipts(
    fecha_inicio: Optional[str] = Query(None, alias="fechaInicio"),
    fecha_fin: Optional[str] = Query(None, alias="fechaFin"),
    invoicing_service: InvoicingService = Depends(),
    current_user: User = Depends(require_sync),
):
    desde, hasta = resolve_range(fecha_inicio, fecha_fin)
    try:
        data = await invoicing_service.sync_receipts(desde, hasta)
    except Exception as e:
        logger.error("Error syncing receipts", error=str(e))
        raise _sync_failed("receipts", e) from e
    return SyncResponse(message="Sincronización de recibos completada", data=data)


@router.api_route("/sync-facturacion", methods=["GET", "POST"], response_model=FullSyncResponse)
async def sync_invoicing(
    fecha_inicio: Optional[str] = Query(None, alias="fechaInicio"),
    fecha_fin: Optional[str] = Query(None, alias="fechaFin"),
    invoicing_service: InvoicingService = Depends(),
    current_user: User = Depends(require_sync),
):
    """Invoices and receipts for the same range"""
    desde, hasta = resolve_range(fecha_inicio, fecha_fin)
    try:
        data = await invoicing_service.sync_all(desde, hasta)
    except Exception as e:
        logger.error("Error in full invoicing sync", error=str(e))
        raise _sync_failed("invoicing", e) from e
    return FullSyncResponse(message="Sincronización completa exitosa", data=data)


@router.post("/test-sync", response_model=FullSyncResponse)
async def manual_sync(
    fecha_inicio: Optional[str] = Query(None, alias="fechaInicio"),
    fecha_fin: Optional[str] = Query(None, alias="fechaFin"),
    invoicing_service: InvoicingService = Depends(),
    current_user: User = Depends(require_sync),
):
    """Run a sync without waiting for the scheduler, each missing bound is yesterday"""
    desde, hasta = fecha_inicio or yesterday(), fecha_fin or yesterday()
    try:
        data = await invoicing_service.sync_all(desde, hasta)
    except Exception as e:
        logger.error("Error in manual invoicing sync", error=str(e))
        raise _sync_failed("invoicing", e) from e
    return FullSyncResponse(message="Sincronización manual completada", data=data)


@router.post("/sync-historia", response_model=HistoryResponse)
async def sync_history(
    invoicing_service: InvoicingService = Depends(),
    current_user: User = Depends(require_sync),
):
    """Download every month since the configured history start"""
    return await invoicing_service.sync_history()


@router.get("/logs-facturacion", response_model=LogIngestaList)
async def get_invoicing_logs(
    tipo: Optional[IngestionKind] = Query(None, description="FACTURAS or RECIBOS"),
    limit: int = Query(50, ge=1, le=1000),
    invoicing_service: InvoicingService = Depends(),
    current_user: User = Depends(get_current_user),
):
    logs = await invoicing_service.list_logs(tipo, limit)
    return LogIngestaList(logs=[LogIngestaResponse.model_validate(log) for log in logs])


# ===================== Vendor passthrough =====================

@router.get("/Facturacion/GetFacturasVenta", response_model=List[InvoiceSummary])
async def get_sales_invoices(
    desde_fecha: Optional[str] = Query(None, alias="desdeFecha", description="YYYY-MM-DD"),
    hasta_fecha: Optional[str] = Query(None, alias="hastaFecha", description="YYYY-MM-DD"),
    invoicing_service: InvoicingService = Depends(),
    current_user: User = Depends(get_current_user),
):
    try:
        return await invoicing_service.get_invoice_summaries(desde_fecha, hasta_fecha)
    except InvoicingBaseException as e:
        raise convert_to_http_exception(e) from e
    except CaldenonBaseException as e:
        logger.error("Error fetching sales invoices", error=e.message)
        raise vendor_http_exception(e) from e


@router.get("/CtaCte/GetRecibosEntreFechas", response_model=List[ReceiptSummary])
async def get_receipts_between_dates(
    desde_fecha: Optional[str] = Query(None, alias="desdeFecha", description="YYYY-MM-DD"),
    hasta_fecha: Optional[str] = Query(None, alias="hastaFecha", description="YYYY-MM-DD"),
    invoicing_service: InvoicingService = Depends(),
    current_user: User = Depends(get_current_user),
):
    try:
        return await invoicing_service.get_receipt_summaries(desde_fecha, hasta_fecha)
    except InvoicingBaseException as e:
        raise convert_to_http_exception(e) from e
    except CaldenonBaseException as e:
        logger.error("Error fetching receipts", error=e.message)
        raise vendor_http_exception(e) from e
