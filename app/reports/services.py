# app/reports/services.py

from datetime import date
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from app.reports import queries
from app.reports.exceptions import UnknownReportException, UnknownReportTypeException
from app.reports.utils import (
    INVOICE_TYPES, add_average_price, month_to_date, pivot_daily_summary, rows_to_dicts,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)

Rows = List[Dict[str, Any]]


class ReportService:
    """Read-only aggregations over the synchronised tables"""

    REPORT_TYPES = ("unidades-empresa",)

    def _run(
        self, db: Session, sql: str,
        fecha_inicio: Optional[date], fecha_fin: Optional[date], **params: Any
    ) -> Rows:
        try:
            result = db.execute(
                text(sql),
                {"fecha_inicio": fecha_inicio, "fecha_fin": fecha_fin, **params},
            )
            return rows_to_dicts(result.mappings().all())
        except Exception as e:
            logger.error("Error running report query", error=str(e), fecha_inicio=fecha_inicio, fecha_fin=fecha_fin)
            raise

    def subdiario(self, db: Session, fecha_inicio: Optional[date] = None, fecha_fin: Optional[date] = None) -> Rows:
        return self._run(db, queries.SUBDIARIO, fecha_inicio, fecha_fin)

    def subdiario_resumen_diario(
        self, db: Session, fecha_inicio: Optional[date] = None, fecha_fin: Optional[date] = None
    ) -> Rows:
        return pivot_daily_summary(self.subdiario(db, fecha_inicio, fecha_fin))

    def mensual(self, db: Session, fecha_inicio: Optional[date] = None, fecha_fin: Optional[date] = None) -> Rows:
        fecha_inicio, fecha_fin = month_to_date(fecha_inicio, fecha_fin)
        return self._run(db, queries.MENSUAL, fecha_inicio, fecha_fin)

    def pc_mensual(self, db: Session, fecha_inicio: Optional[date] = None, fecha_fin: Optional[date] = None) -> Rows:
        fecha_inicio, fecha_fin = month_to_date(fecha_inicio, fecha_fin)
        return self._run(db, queries.PC_MENSUAL, fecha_inicio, fecha_fin)

    def pc_mensual_resumen(
        self, db: Session, fecha_inicio: Optional[date] = None, fecha_fin: Optional[date] = None
    ) -> Rows:
        fecha_inicio, fecha_fin = month_to_date(fecha_inicio, fecha_fin)
        return add_average_price(self._run(db, queries.PC_MENSUAL_RESUMEN, fecha_inicio, fecha_fin))

    def by_type(
        self, db: Session, tipo: Optional[str],
        fecha_inicio: Optional[date] = None, fecha_fin: Optional[date] = None
    ) -> Rows:
        """Dispatch ``GET /reportes?tipo=``"""
        if tipo == "unidades-empresa":
            return self._run(db, queries.UNIDADES_EMPRESA, fecha_inicio, fecha_fin)
        raise UnknownReportTypeException(tipo, self.REPORT_TYPES)

    def facturacion_diaria_cliente(
        self, db: Session, fecha_inicio: Optional[date] = None, fecha_fin: Optional[date] = None
    ) -> Rows:
        return self._run(db, queries.FACTURACION_DIARIA_CLIENTE, fecha_inicio, fecha_fin)

    def facturacion_diaria_tipo(
        self, db: Session, tipo: str,
        fecha_inicio: Optional[date] = None, fecha_fin: Optional[date] = None
    ) -> Rows:
        if tipo not in INVOICE_TYPES:
            raise UnknownReportException(f"facturacion-diaria-{tipo}")
        return self._run(db, queries.FACTURACION_DIARIA_TIPO, fecha_inicio, fecha_fin, tipo=tipo)

    def recibo_diario_cliente(
        self, db: Session, fecha_inicio: Optional[date] = None, fecha_fin: Optional[date] = None
    ) -> Rows:
        return self._run(db, queries.RECIBO_DIARIO_CLIENTE, fecha_inicio, fecha_fin)

    def exportable(self) -> Dict[str, Callable[..., Rows]]:
        """Tabular reports that can be exported, by name"""
        reports: Dict[str, Callable[..., Rows]] = {
            "subdiario": self.subdiario,
            "subdiario-resumen-diario": self.subdiario_resumen_diario,
            "mensual": self.mensual,
            "pcMensual": self.pc_mensual,
            "pcMensual-resumen": self.pc_mensual_resumen,
            "unidades-empresa": lambda db, fi, ff: self.by_type(db, "unidades-empresa", fi, ff),
            "facturacion-diaria-cliente": self.facturacion_diaria_cliente,
            "recibo-diario-cliente": self.recibo_diario_cliente,
        }
        for tipo in INVOICE_TYPES:
            reports[f"facturacion-diaria-{tipo}"] = (
                lambda db, fi, ff, tipo=tipo: self.facturacion_diaria_tipo(db, tipo, fi, ff)
            )
        return reports

    def run_named(
        self, db: Session, nombre: str,
        fecha_inicio: Optional[date] = None, fecha_fin: Optional[date] = None
    ) -> Rows:
        report = self.exportable().get(nombre)
        if report is None:
            raise UnknownReportException(nombre)
        return report(db, fecha_inicio, fecha_fin)


report_service = ReportService()
