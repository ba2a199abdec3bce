# app/catalog/router.py

"""
Stations, registers and product catalog endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.caldenon.exceptions import CaldenonBaseException, convert_to_http_exception
from app.catalog.registry import StationRegistry, get_station_registry
from app.catalog.schemas import (
    CatalogSyncResult, ProductResponse, RecategorizeResult, StationMapResponse,
)
from app.catalog.services import CatalogService
from app.users.models import User
from app.users.utils import get_current_user, require_sync
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Catalog"])


# ===================== Stations and registers =====================

def _station_map(registry: StationRegistry) -> StationMapResponse:
    estaciones, cajas = registry.as_list()
    return StationMapResponse(estaciones=estaciones, cajas=cajas)


@router.get("/estaciones", response_model=StationMapResponse)
@router.get("/cajas", response_model=StationMapResponse)
async def get_station_map(
    registry: StationRegistry = Depends(get_station_registry),
    current_user: User = Depends(get_current_user),
):
    """Station and register names currently known, loading them if needed"""
    try:
        await registry.ensure_loaded()
    except CaldenonBaseException as e:
        logger.error("Error loading station maps", error=e.message)
        raise convert_to_http_exception(e) from e
    return _station_map(registry)


@router.post("/mapeos/recargar", response_model=StationMapResponse)
async def reload_station_map(
    registry: StationRegistry = Depends(get_station_registry),
    current_user: User = Depends(require_sync),
):
    try:
        await registry.load()
    except CaldenonBaseException as e:
        logger.error("Error reloading station maps", error=e.message)
        raise convert_to_http_exception(e) from e
    return _station_map(registry)


# ===================== Products =====================

@router.get("/productos", response_model=List[ProductResponse])
async def list_products(
    catalog_service: CatalogService = Depends(),
    current_user: User = Depends(get_current_user),
):
    return await catalog_service.list_products()


@router.post("/productos/sync", response_model=CatalogSyncResult)
async def sync_products(
    catalog_service: CatalogService = Depends(),
    current_user: User = Depends(require_sync),
):
    """Import articles missing from dim_producto"""
    try:
        return await catalog_service.sync_products()
    except CaldenonBaseException as e:
        logger.error("Error syncing products", error=e.message)
        raise convert_to_http_exception(e) from e
    except Exception as e:
        logger.error("Error syncing products", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to sync products: {str(e)}") from e


@router.post("/productos/recategorizar", response_model=RecategorizeResult)
async def recategorize_products(
    catalog_service: CatalogService = Depends(),
    current_user: User = Depends(require_sync),
):
    try:
        return await catalog_service.recategorize()
    except Exception as e:
        logger.error("Error recategorizing products", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to recategorize products: {str(e)}") from e


@router.post("/articulos/combustibles/sync", response_model=CatalogSyncResult)
async def sync_fuels(
    catalog_service: CatalogService = Depends(),
    current_user: User = Depends(require_sync),
):
    try:
        return await catalog_service.sync_fuels()
    except CaldenonBaseException as e:
        logger.error("Error syncing fuel articles", error=e.message)
        raise convert_to_http_exception(e) from e
    except Exception as e:
        logger.error("Error syncing fuel articles", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to save fuel articles: {str(e)}") from e
