# app/ingestion/schemas.py

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class IngestionKind(str, Enum):
    FACTURAS = "FACTURAS"
    RECIBOS = "RECIBOS"
    CIERRES = "CIERRES"


def success_status(kind: IngestionKind) -> str:
    return f"EXITO - {kind.value}"


def error_status(kind: IngestionKind) -> str:
    return f"ERROR - {kind.value}"


class LogIngestaResponse(BaseModel):
    id: int
    fecha: datetime
    registros_insertados: int
    estado: str
    mensaje_error: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class LogIngestaList(BaseModel):
    ok: bool = True
    logs: List[LogIngestaResponse]
