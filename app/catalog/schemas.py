# app/catalog/schemas.py

from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class StationItem(BaseModel):
    id: int
    nombre: str


class RegisterItem(BaseModel):
    id: int
    nombre: str
    id_estacion: Optional[int] = None


class StationMapResponse(BaseModel):
    ok: bool = True
    estaciones: List[StationItem]
    cajas: List[RegisterItem]


class ProductResponse(BaseModel):
    producto_id: int
    nombre: str
    origen: Optional[str] = None
    categoria: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CatalogSyncResult(BaseModel):
    ok: bool = True
    total: int
    insertados: int


class RecategorizeResult(BaseModel):
    ok: bool = True
    total: int
    actualizados: int
