# app/tanks/router.py

from fastapi import APIRouter, Depends

from app.caldenon.exceptions import CaldenonBaseException, convert_to_http_exception
from app.tanks.schemas import TankListResponse, TankReading, TankRefreshResponse
from app.tanks.services import TankService
from app.users.models import User
from app.users.utils import get_current_user, require_sync
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Tanks"])


@router.get("/niveles", response_model=TankListResponse)
async def get_tank_levels(
    tank_service: TankService = Depends(),
    current_user: User = Depends(get_current_user),
):
    """Live levels of the tracked tanks"""
    try:
        readings = await tank_service.read_levels()
    except CaldenonBaseException as e:
        raise convert_to_http_exception(e) from e
    return TankListResponse(data=[TankReading(**reading) for reading in readings])


@router.post("/tanques/actualizar", response_model=TankRefreshResponse)
async def refresh_tanks(
    tank_service: TankService = Depends(),
    current_user: User = Depends(require_sync),
):
    try:
        updated = await tank_service.refresh()
    except CaldenonBaseException as e:
        raise convert_to_http_exception(e) from e
    return TankRefreshResponse(message="Tanques actualizados", actualizados=updated)


@router.get("/tanques", response_model=TankListResponse)
async def list_tanks(
    tank_service: TankService = Depends(),
    current_user: User = Depends(get_current_user),
):
    tanks = await tank_service.list_stored()
    return TankListResponse(data=[TankReading.model_validate(tank) for tank in tanks])
