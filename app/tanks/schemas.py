# app/tanks/schemas.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class TankReading(BaseModel):
    id_tanque: int
    producto: str
    capacidad: float
    nivel_actual: float
    temperatura: Optional[float] = None
    fecha_actualizacion: datetime

    model_config = ConfigDict(from_attributes=True)


class TankListResponse(BaseModel):
    ok: bool = True
    data: List[TankReading]


class TankRefreshResponse(BaseModel):
    ok: bool = True
    message: str
    actualizados: int
