# app/positions/router.py

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.positions.exceptions import PositionBaseException, convert_to_http_exception
from app.positions.schemas import (
    LatestPositionResponse, LivePositionsResponse, PositionHistoryResponse,
    PositionResponse, PositionSyncResponse,
)
from app.positions.services import PositionService
from app.users.models import User
from app.users.utils import get_current_user, require_sync
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Positions"], prefix="/positions")


@router.get("", response_model=LivePositionsResponse)
async def get_positions(
    plate: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    position_service: PositionService = Depends(),
    current_user: User = Depends(get_current_user),
):
    """Live positions straight from MaxTracker"""
    positions = await position_service.get_live_positions(plate, limit)
    return LivePositionsResponse(cantidad=len(positions), data=positions)


@router.get("/ultima-posicion/{placa}", response_model=LatestPositionResponse)
async def get_latest_position(
    placa: str,
    position_service: PositionService = Depends(),
    current_user: User = Depends(get_current_user),
):
    try:
        return LatestPositionResponse(data=await position_service.get_latest_position(placa))
    except PositionBaseException as e:
        raise convert_to_http_exception(e) from e


@router.get("/historial/{placa}", response_model=PositionHistoryResponse)
async def get_position_history(
    placa: str,
    limit: int = Query(50, ge=1, le=1000),
    position_service: PositionService = Depends(),
    current_user: User = Depends(get_current_user),
):
    """Stored positions of a vehicle, newest first"""
    history = await position_service.get_history(placa, limit)
    return PositionHistoryResponse(
        placa=placa,
        cantidad=len(history),
        data=[PositionResponse.model_validate(position) for position in history],
    )


@router.post("/sincronizar", response_model=PositionSyncResponse)
async def sync_positions(
    plate: Optional[str] = Query(None),
    position_service: PositionService = Depends(),
    current_user: User = Depends(require_sync),
):
    try:
        result = await position_service.sync_positions(plate)
    except Exception as e:
        logger.error("Error syncing positions", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to sync positions: {str(e)}") from e
    return PositionSyncResponse(message="Sincronización de posiciones completada", data=result)
