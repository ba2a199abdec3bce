# app/positions/schemas.py

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PositionResponse(BaseModel):
    lat: float
    lng: float
    date: datetime
    speed: float = 0
    direction: float = 0
    event_code: Optional[str] = None
    event: Optional[str] = None
    plate: str
    imei: Optional[str] = None
    odometer: int = 0
    hourmeter: int = 0
    driver_key: Optional[str] = None
    driver_name: Optional[str] = None
    driver_document: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class LivePositionsResponse(BaseModel):
    ok: bool = True
    cantidad: int
    data: List[Dict[str, Any]]


class LatestPositionResponse(BaseModel):
    ok: bool = True
    data: Dict[str, Any]


class PositionHistoryResponse(BaseModel):
    ok: bool = True
    placa: str
    cantidad: int
    data: List[PositionResponse]


class PositionSyncResult(BaseModel):
    insertados: int = 0
    actualizados: int = 0
    total: int = 0
    errores: List[str] = Field(default_factory=list)


class PositionSyncResponse(BaseModel):
    ok: bool = True
    message: str
    data: PositionSyncResult
