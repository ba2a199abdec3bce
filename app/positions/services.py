# app/positions/services.py

from typing import Any, Dict, List, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_async_db
from app.positions import maxtracker_client
from app.positions.exceptions import PositionNotFoundException
from app.positions.models import Position
from app.positions.repository import PositionRepository
from app.positions.schemas import PositionSyncResult
from app.positions.utils import map_position
from app.utils.logger import get_logger

logger = get_logger(__name__)


def get_position_repository(db: AsyncSession = Depends(get_async_db)) -> PositionRepository:
    return PositionRepository(db)


class PositionService:
    """Vehicle positions from MaxTracker"""

    def __init__(self, repo: PositionRepository = Depends(get_position_repository)):
        self.repo = repo

    async def get_live_positions(self, plate: Optional[str] = None, limit: int = 100) -> List[Dict[str, Any]]:
        return await maxtracker_client.fetch_positions(plate, limit)

    async def get_latest_position(self, plate: str) -> Dict[str, Any]:
        positions = await maxtracker_client.fetch_positions(plate, 1)
        if not positions:
            raise PositionNotFoundException(plate)
        return positions[0]

    async def get_history(self, plate: str, limit: int = 50) -> List[Position]:
        return await self.repo.get_history(plate, limit)

    async def sync_positions(self, plate: Optional[str] = None) -> PositionSyncResult:
        """
        Store the latest positions. A position that fails is reported in
        ``errores`` and the rest are still stored.
        """
        result = PositionSyncResult()
        positions = await maxtracker_client.fetch_positions(plate)
        if not positions:
            logger.info("No positions to sync", plate=plate)
            return result

        result.total = len(positions)
        for raw in positions:
            try:
                if await self.repo.upsert_position(map_position(raw)):
                    result.insertados += 1
                else:
                    result.actualizados += 1
            except Exception as e:
                message = f"Error syncing position of {raw.get('plate')}: {e}"
                logger.error("Position sync failed", plate=raw.get("plate"), error_message=str(e))
                result.errores.append(message)

        await self.repo.db.commit()
        logger.info(
            "Positions synced",
            insertados=result.insertados,
            actualizados=result.actualizados,
            errores=len(result.errores),
        )
        return result
