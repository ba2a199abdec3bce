# app/reports/exceptions.py

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class ReportBaseException(Exception):
    """Base exception for reports"""
    def __init__(
        self, message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        extra: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.extra = extra or {}
        super().__init__(self.message)


class UnknownReportTypeException(ReportBaseException):
    def __init__(self, tipo: Optional[str], available):
        super().__init__(
            message="Parámetro 'tipo' requerido o no válido",
            status_code=status.HTTP_400_BAD_REQUEST,
            extra={
                "tipos_disponibles": list(available),
                "ejemplo": "/api/reportes?tipo=unidades-empresa&fechaInicio=2023-01-01&fechaFin=2023-01-31",
            },
        )
        self.tipo = tipo


class UnknownReportException(ReportBaseException):
    def __init__(self, nombre: str):
        super().__init__(
            message=f"Unknown report: {nombre}",
            status_code=status.HTTP_404_NOT_FOUND,
        )


def convert_to_http_exception(exc: ReportBaseException) -> HTTPException:
    detail: Any = exc.message
    if exc.extra:
        detail = {"error": exc.message, **exc.extra}
    return HTTPException(status_code=exc.status_code, detail=detail)
