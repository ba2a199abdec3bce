# app/invoicing/repository.py

"""
Upserts for invoices, receipts and their child rows.

Headers report whether the statement inserted or updated the row through
Postgres' ``xmax`` system column, which is 0 only for freshly inserted
tuples.
"""

from typing import Any, Dict, List, Tuple, Type

from sqlalchemy import literal_column
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import Base
from app.invoicing.models import (
    FacturaVenta, FacturaVentaCuponTarjeta, FacturaVentaDetalle, FacturaVentaValores,
    Recibo, ReciboChequeTercero, ReciboComprobanteImputado, ReciboRetencion,
    ReciboTarjeta, ReciboTransferencia,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)

INSERTED = literal_column("(xmax = 0)").label("insertado")

INVOICE_UPDATE_COLUMNS = (
    "fecha", "razon_social", "total", "id_movimiento_fac", "id_movimiento_cancelado",
)
RECEIPT_UPDATE_COLUMNS = ("razon_social", "total_efectivo", "total_sin_imputar")

RECEIPT_CHILD_MODELS: Dict[str, Type[Base]] = {
    "comprobantes": ReciboComprobanteImputado,
    "cheques": ReciboChequeTercero,
    "tarjetas": ReciboTarjeta,
    "transferencias": ReciboTransferencia,
    "retenciones": ReciboRetencion,
}


class InvoicingRepository:
    """Data access for facturas_venta*, recibos* tables"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _insert_children(self, model, parent_column: str, parent_id: int, rows: List[Dict[str, Any]]) -> int:
        """Insert child rows that are not stored yet, keyed by parent and line number"""
        if not rows:
            return 0
        stmt = (
            pg_insert(model)
            .values([{parent_column: parent_id, **row} for row in rows])
            .on_conflict_do_nothing(index_elements=[parent_column, "renglon"])
        )
        result = await self.db.execute(stmt)
        return result.rowcount or 0

    # === Invoices ===

    async def upsert_invoice(self, header: Dict[str, Any]) -> Tuple[int, bool]:
        """
        Insert or update an invoice header.

        Returns:
            (id_factura, inserted)
        """
        insert_stmt = pg_insert(FacturaVenta).values(**header)
        stmt = insert_stmt.on_conflict_do_update(
            index_elements=["tipo_comprobante", "punto_venta", "numero"],
            set_={column: insert_stmt.excluded[column] for column in INVOICE_UPDATE_COLUMNS},
        ).returning(FacturaVenta.id_factura, INSERTED)
        row = (await self.db.execute(stmt)).one()
        return row.id_factura, bool(row.insertado)

    async def upsert_invoice_values(self, id_factura: int, values: Dict[str, Any]) -> None:
        insert_stmt = pg_insert(FacturaVentaValores).values(id_factura=id_factura, **values)
        stmt = insert_stmt.on_conflict_do_update(
            index_elements=["id_factura"],
            set_={column: insert_stmt.excluded[column] for column in values},
        )
        await self.db.execute(stmt)

    async def insert_invoice_details(self, id_factura: int, rows: List[Dict[str, Any]]) -> int:
        return await self._insert_children(FacturaVentaDetalle, "id_factura", id_factura, rows)

    async def insert_card_coupons(self, id_factura: int, rows: List[Dict[str, Any]]) -> int:
        return await self._insert_children(FacturaVentaCuponTarjeta, "id_factura", id_factura, rows)

    # === Receipts ===

    async def upsert_receipt(self, receipt: Dict[str, Any]) -> Tuple[int, bool]:
        """
        Insert or update a receipt header.

        Returns:
            (id_recibo, inserted)
        """
        insert_stmt = pg_insert(Recibo).values(**receipt)
        stmt = insert_stmt.on_conflict_do_update(
            index_elements=["punto_venta_recibo", "numero_recibo"],
            set_={column: insert_stmt.excluded[column] for column in RECEIPT_UPDATE_COLUMNS},
        ).returning(Recibo.id_recibo, INSERTED)
        row = (await self.db.execute(stmt)).one()
        return row.id_recibo, bool(row.insertado)

    async def insert_receipt_children(self, id_recibo: int, children: Dict[str, List[Dict[str, Any]]]) -> int:
        inserted = 0
        for kind, rows in children.items():
            inserted += await self._insert_children(RECEIPT_CHILD_MODELS[kind], "id_recibo", id_recibo, rows)
        return inserted
