# app/catalog/repository.py

from typing import Any, Dict, List

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.models import ArticuloCombustible, DimProducto
from app.utils.logger import get_logger

logger = get_logger(__name__)

# asyncpg accepts at most 32767 bind parameters per statement
INSERT_CHUNK_SIZE = 1000


class CatalogRepository:
    """Data access for dim_producto and articulos_combustibles"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _insert_missing(self, model, key, rows: List[Dict[str, Any]]) -> int:
        inserted = 0
        for start in range(0, len(rows), INSERT_CHUNK_SIZE):
            stmt = (
                pg_insert(model)
                .values(rows[start:start + INSERT_CHUNK_SIZE])
                .on_conflict_do_nothing(index_elements=[key])
                .returning(key)
            )
            result = await self.db.execute(stmt)
            inserted += len(result.scalars().all())
        return inserted

    async def insert_missing_products(self, rows: List[Dict[str, Any]]) -> int:
        """Insert products that are not there yet, existing rows are left alone"""
        return await self._insert_missing(DimProducto, DimProducto.producto_id, rows)

    async def insert_missing_fuels(self, rows: List[Dict[str, Any]]) -> int:
        return await self._insert_missing(ArticuloCombustible, ArticuloCombustible.id_articulo, rows)

    async def list_products(self) -> List[DimProducto]:
        result = await self.db.execute(select(DimProducto).order_by(DimProducto.producto_id))
        return list(result.scalars().all())

    async def set_product_category(self, producto_id: int, categoria: str) -> None:
        await self.db.execute(
            update(DimProducto)
            .where(DimProducto.producto_id == producto_id)
            .values(categoria=categoria)
        )
