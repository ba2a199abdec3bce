# app/ingestion/repository.py

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.ingestion.models import LogIngesta
from app.ingestion.schemas import IngestionKind, error_status, success_status


class IngestionLogRepository:
    """Reads and writes logs_ingesta"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, estado: str, registros: int = 0, mensaje: Optional[str] = None) -> LogIngesta:
        log = LogIngesta(estado=estado, registros_insertados=registros, mensaje_error=mensaje)
        self.db.add(log)
        await self.db.flush()
        return log

    async def list_logs(self, kind: Optional[IngestionKind] = None, limit: int = 50) -> List[LogIngesta]:
        """Newest first, optionally only one kind of sync"""
        stmt = select(LogIngesta)
        if kind is not None:
            stmt = stmt.where(
                LogIngesta.estado.in_([success_status(kind), error_status(kind)])
            )
        stmt = stmt.order_by(LogIngesta.fecha.desc(), LogIngesta.id.desc()).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
