# app/tanks/services.py

from typing import List

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.caldenon import api_client
from app.core.db import get_async_db
from app.tanks.models import TanqueEstadoActual
from app.tanks.repository import TankRepository
from app.tanks.utils import build_tank_reading, filter_tracked_tanks
from app.utils.logger import get_logger
from app.utils.retry import retry_async

logger = get_logger(__name__)


def get_tank_repository(db: AsyncSession = Depends(get_async_db)) -> TankRepository:
    return TankRepository(db)


class TankService:
    """Fuel tank levels"""

    def __init__(self, repo: TankRepository = Depends(get_tank_repository)):
        self.repo = repo

    async def read_levels(self) -> List[dict]:
        """Current readings of the tracked tanks, straight from the vendor"""
        tanks = filter_tracked_tanks(
            await retry_async(api_client.fetch_tanks, operation_name="GetAllTanques")
        )
        readings = []
        for tank in tanks:
            info = await retry_async(
                api_client.fetch_tank_info, tank["idTanque"], operation_name="GetInformacionActualTanque",
            )
            readings.append(build_tank_reading(tank, info if isinstance(info, dict) else {}))
        logger.info("Tank levels read", tanques=len(readings))
        return readings

    async def refresh(self) -> int:
        readings = await self.read_levels()
        for reading in readings:
            await self.repo.upsert_reading(reading)
            logger.info(
                "Tank updated",
                id_tanque=reading["id_tanque"],
                producto=reading["producto"],
                nivel_actual=reading["nivel_actual"],
                capacidad=reading["capacidad"],
            )
        await self.repo.db.commit()
        return len(readings)

    async def list_stored(self) -> List[TanqueEstadoActual]:
        return await self.repo.list_tanks()
