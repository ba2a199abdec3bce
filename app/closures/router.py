# app/closures/router.py

"""
Shift closure endpoints: vendor passthrough and synchronisation.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.caldenon.exceptions import CaldenonBaseException
from app.caldenon.exceptions import convert_to_http_exception as vendor_http_exception
from app.closures.exceptions import ClosureBaseException, convert_to_http_exception
from app.closures.schemas import ClosureListResponse, ClosureSyncResult
from app.closures.services import ClosureService
from app.users.models import User
from app.users.utils import get_current_user, require_sync
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Closures"], prefix="/cierres")


# ===================== Vendor passthrough =====================

@router.get("", response_model=ClosureListResponse)
async def list_closures(
    id_estacion: int = Query(1, alias="idEstacion"),
    id_caja: int = Query(2, alias="idCaja"),
    fecha: Optional[date] = Query(None, description="Day to list, defaults to today"),
    closure_service: ClosureService = Depends(),
    current_user: User = Depends(get_current_user),
):
    """Closures of a register on a day, straight from the vendor"""
    try:
        return await closure_service.list_closures(id_estacion, id_caja, fecha or date.today())
    except CaldenonBaseException as e:
        logger.error("Error listing closures", error=e.message)
        raise vendor_http_exception(e) from e


@router.get("/detalle")
async def get_closure_detail(
    id_estacion: int = Query(1, alias="idEstacion"),
    id_caja: int = Query(2, alias="idCaja"),
    fecha_hora_cierre: Optional[str] = Query(None, alias="fechaHoraCierre"),
    closure_service: ClosureService = Depends(),
    current_user: User = Depends(get_current_user),
):
    if not fecha_hora_cierre:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing fechaHoraCierre parameter",
        )
    try:
        return await closure_service.get_closure_detail(id_estacion, id_caja, fecha_hora_cierre)
    except CaldenonBaseException as e:
        logger.error("Error fetching closure detail", error=e.message)
        raise vendor_http_exception(e) from e


# ===================== Synchronisation =====================

@router.post("/sync", response_model=ClosureSyncResult)
async def sync_closures(
    fecha_inicio: Optional[date] = Query(None, alias="fechaInicio"),
    fecha_fin: Optional[date] = Query(None, alias="fechaFin"),
    closure_service: ClosureService = Depends(),
    current_user: User = Depends(require_sync),
):
    """Sync every closure between fechaInicio and fechaFin"""
    logger.info(
        "Closure sync requested",
        fecha_inicio=str(fecha_inicio),
        fecha_fin=str(fecha_fin),
        user_id=current_user.user_id,
    )
    try:
        return await closure_service.sync_range(fecha_inicio, fecha_fin)
    except ClosureBaseException as e:
        raise convert_to_http_exception(e) from e
    except CaldenonBaseException as e:
        logger.error("Error loading stations for closure sync", error=e.message)
        raise vendor_http_exception(e) from e
    except Exception as e:
        logger.error("Error syncing closures", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to sync closures: {str(e)}") from e


@router.post("/sync-auto", response_model=ClosureSyncResult)
async def sync_closures_auto(
    closure_service: ClosureService = Depends(),
    current_user: User = Depends(require_sync),
):
    """Sync from the day after the newest stored metric up to today"""
    try:
        return await closure_service.sync_auto()
    except CaldenonBaseException as e:
        logger.error("Error loading stations for closure sync", error=e.message)
        raise vendor_http_exception(e) from e
    except Exception as e:
        logger.error("Error in automatic closure sync", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to sync closures: {str(e)}") from e
