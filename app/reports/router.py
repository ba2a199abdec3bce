# app/reports/router.py

from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.reports.exceptions import ReportBaseException, convert_to_http_exception
from app.reports.schemas import ReportResponse
from app.reports.services import report_service
from app.users.models import User
from app.users.utils import require_reports
from app.utils.exporter_utils import EXPORT_FORMATS, ExporterFactory
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Reports"])

FechaInicio = Annotated[Optional[date], Query(alias="fechaInicio")]
FechaFin = Annotated[Optional[date], Query(alias="fechaFin")]


# ===================== Closures and metrics =====================

@router.get("/reportes/subdiario", response_model=ReportResponse)
def get_subdiario(
    fecha_inicio: FechaInicio = None,
    fecha_fin: FechaFin = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reports),
):
    """Litres and amount per day, station, register and product"""
    return ReportResponse(data=report_service.subdiario(db, fecha_inicio, fecha_fin))


@router.get("/reportes/subdiario/resumen-diario", response_model=ReportResponse)
def get_subdiario_resumen_diario(
    fecha_inicio: FechaInicio = None,
    fecha_fin: FechaFin = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reports),
):
    return ReportResponse(data=report_service.subdiario_resumen_diario(db, fecha_inicio, fecha_fin))


@router.get("/reportes/mensual", response_model=ReportResponse)
def get_mensual(
    fecha_inicio: FechaInicio = None,
    fecha_fin: FechaFin = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reports),
):
    return ReportResponse(data=report_service.mensual(db, fecha_inicio, fecha_fin))


@router.get("/pcMensual", response_model=ReportResponse)
def get_pc_mensual(
    fecha_inicio: FechaInicio = None,
    fecha_fin: FechaFin = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reports),
):
    return ReportResponse(data=report_service.pc_mensual(db, fecha_inicio, fecha_fin))


@router.get("/pcMensual/resumen", response_model=ReportResponse)
def get_pc_mensual_resumen(
    fecha_inicio: FechaInicio = None,
    fecha_fin: FechaFin = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reports),
):
    """Totals and average price per product type"""
    return ReportResponse(data=report_service.pc_mensual_resumen(db, fecha_inicio, fecha_fin))


@router.get("/reportes", response_model=ReportResponse)
def get_report_by_type(
    tipo: Optional[str] = Query(None),
    fecha_inicio: FechaInicio = None,
    fecha_fin: FechaFin = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reports),
):
    try:
        return ReportResponse(data=report_service.by_type(db, tipo, fecha_inicio, fecha_fin))
    except ReportBaseException as e:
        raise convert_to_http_exception(e) from e


# ===================== Invoicing and receipts =====================

@router.get("/reportes/facturacion-diaria-cliente", response_model=ReportResponse)
def get_facturacion_diaria_cliente(
    fecha_inicio: FechaInicio = None,
    fecha_fin: FechaFin = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reports),
):
    return ReportResponse(data=report_service.facturacion_diaria_cliente(db, fecha_inicio, fecha_fin))


@router.get("/reportes/recibo-diario-cliente", response_model=ReportResponse)
def get_recibo_diario_cliente(
    fecha_inicio: FechaInicio = None,
    fecha_fin: FechaFin = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reports),
):
    return ReportResponse(data=report_service.recibo_diario_cliente(db, fecha_inicio, fecha_fin))


@router.get("/reportes/facturacion-diaria-{tipo}", response_model=ReportResponse)
def get_facturacion_diaria_tipo(
    tipo: str,
    fecha_inicio: FechaInicio = None,
    fecha_fin: FechaFin = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reports),
):
    """Invoiced articles per day for gnc, liquidos, otros or shop"""
    try:
        return ReportResponse(data=report_service.facturacion_diaria_tipo(db, tipo, fecha_inicio, fecha_fin))
    except ReportBaseException as e:
        raise convert_to_http_exception(e) from e


# ===================== Export =====================

@router.get("/reportes/{nombre}/export")
def export_report(
    nombre: str,
    formato: str = Query("excel", description="excel, csv, pdf or json"),
    fecha_inicio: FechaInicio = None,
    fecha_fin: FechaFin = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reports),
):
    if formato not in EXPORT_FORMATS:
        raise HTTPException(status_code=400, detail=f"Invalid format, use one of {list(EXPORT_FORMATS)}")

    try:
        rows = report_service.run_named(db, nombre, fecha_inicio, fecha_fin)
    except ReportBaseException as e:
        raise convert_to_http_exception(e) from e

    if not rows:
        raise HTTPException(status_code=404, detail="No data to export for the selected range")

    try:
        file = ExporterFactory.get_exporter(formato, rows, title=nombre).export()
    except ValueError as e:
        logger.error("Error exporting report", report=nombre, formato=formato, error=str(e))
        raise HTTPException(status_code=400, detail=str(e)) from e

    media_type, extension = EXPORT_FORMATS[formato]
    return StreamingResponse(
        file,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={nombre}.{extension}"},
    )
