# app/invoicing/schemas.py

from typing import List, Optional

from pydantic import BaseModel


class SyncCounts(BaseModel):
    registros: int = 0
    insertados: int = 0
    actualizados: int = 0


class SyncResponse(BaseModel):
    ok: bool = True
    message: str
    data: SyncCounts


class FullSyncData(BaseModel):
    facturas: SyncCounts
    recibos: SyncCounts


class FullSyncResponse(BaseModel):
    ok: bool = True
    message: str
    data: FullSyncData


class HistoryPeriod(BaseModel):
    periodo: str
    facturas: Optional[SyncCounts] = None
    recibos: Optional[SyncCounts] = None
    error: Optional[str] = None


class HistoryResponse(BaseModel):
    ok: bool = True
    message: str
    periodos: int
    errores: int
    data: List[HistoryPeriod]


class InvoiceSummary(BaseModel):
    IdFactura: Optional[int] = None
    FechaEmision: Optional[str] = None
    MontoTotal: float = 0
    NombreCliente: str = "Sin nombre"


class ReceiptSummary(BaseModel):
    IdRecibo: Optional[int] = None
    FechaEmision: Optional[str] = None
    Monto: float = 0
    IdCliente: Optional[int] = None
    NombreCliente: str = "Sin nombre"
