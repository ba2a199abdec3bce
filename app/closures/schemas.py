# app/closures/schemas.py

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class DateRange(BaseModel):
    desde: Optional[date] = None
    hasta: Optional[date] = None


class ClosureSyncResult(BaseModel):
    ok: bool = True
    message: str
    total_cierres: int = 0
    dias: int = 0
    errores: int = 0
    rango: DateRange


class ClosureListResponse(BaseModel):
    ok: bool = True
    cantidad: int
    data: List[Dict[str, Any]]
