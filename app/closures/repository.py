# app/closures/repository.py

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.closures.models import CierreTurno, DatoMetrica
from app.utils.logger import get_logger

logger = get_logger(__name__)

CLOSURE_KEY = ("id_estacion", "caja_id", "id_cierre_turno")
METRIC_KEY = ("estacion_id", "caja_id", "id_cierre_turno")


class ClosureRepository:
    """
    Upserts for cierres_turno and datos_metricas.

    Both tables are keyed on station, register and closure id so a day can be
    synced any number of times without duplicating rows.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def upsert_closure(self, row: Dict[str, Any]) -> None:
        insert_stmt = pg_insert(CierreTurno).values(**row)
        stmt = insert_stmt.on_conflict_do_update(
            index_elements=list(CLOSURE_KEY),
            set_={
                key: insert_stmt.excluded[key]
                for key in row
                if key not in CLOSURE_KEY
            },
        )
        await self.db.execute(stmt)

    async def upsert_metric(self, row: Dict[str, Any]) -> None:
        insert_stmt = pg_insert(DatoMetrica).values(**row)
        stmt = insert_stmt.on_conflict_do_update(
            index_elements=list(METRIC_KEY),
            set_={
                key: insert_stmt.excluded[key]
                for key in row
                if key not in METRIC_KEY
            },
        )
        await self.db.execute(stmt)

    async def get_last_metric_date(self) -> Optional[datetime]:
        """Most recent fecha in datos_metricas, None when the table is empty"""
        result = await self.db.execute(select(func.max(DatoMetrica.fecha)))
        return result.scalar_one_or_none()
