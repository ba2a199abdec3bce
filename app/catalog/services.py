# app/catalog/services.py

from typing import List

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.caldenon import api_client
from app.catalog.models import DimProducto
from app.catalog.repository import CatalogRepository
from app.catalog.schemas import CatalogSyncResult, RecategorizeResult
from app.catalog.utils import categorize_product, parse_articles, parse_fuels
from app.core.db import get_async_db
from app.utils.logger import get_logger
from app.utils.retry import retry_async

logger = get_logger(__name__)


def get_catalog_repository(db: AsyncSession = Depends(get_async_db)) -> CatalogRepository:
    return CatalogRepository(db)


class CatalogService:
    """Keeps the product catalog in step with the vendor"""

    def __init__(self, repo: CatalogRepository = Depends(get_catalog_repository)):
        self.repo = repo

    async def sync_fuels(self) -> CatalogSyncResult:
        rows = parse_fuels(await retry_async(api_client.fetch_fuels, operation_name="GetAllCombustibles"))
        inserted = await self.repo.insert_missing_fuels(rows)
        await self.repo.db.commit()
        logger.info("Fuel articles synced", total=len(rows), insertados=inserted)
        return CatalogSyncResult(total=len(rows), insertados=inserted)

    async def sync_products(self) -> CatalogSyncResult:
        rows = parse_articles(await retry_async(api_client.fetch_articles, operation_name="GetAllArticulos"))
        inserted = await self.repo.insert_missing_products(rows)
        await self.repo.db.commit()
        logger.info("Products synced", total=len(rows), insertados=inserted)
        return CatalogSyncResult(total=len(rows), insertados=inserted)

    async def recategorize(self) -> RecategorizeResult:
        """Re-run the category rules over every product, writing only changes"""
        products = await self.repo.list_products()
        changed = 0
        for product in products:
            categoria = categorize_product(product.producto_id, product.nombre)
            if categoria != product.categoria:
                await self.repo.set_product_category(product.producto_id, categoria)
                logger.debug(
                    "Product recategorized",
                    producto_id=product.producto_id,
                    anterior=product.categoria,
                    categoria=categoria,
                )
                changed += 1
        await self.repo.db.commit()
        logger.info("Products recategorized", total=len(products), actualizados=changed)
        return RecategorizeResult(total=len(products), actualizados=changed)

    async def list_products(self) -> List[DimProducto]:
        return await self.repo.list_products()
