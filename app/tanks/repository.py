# app/tanks/repository.py

from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.tanks.models import TanqueEstadoActual


class TankRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def upsert_reading(self, row: Dict[str, Any]) -> None:
        """Always overwrite with the latest reading"""
        stmt = pg_insert(TanqueEstadoActual).values(**row)
        stmt = stmt.on_conflict_do_update(
            index_elements=[TanqueEstadoActual.id_tanque],
            set_={
                "producto": stmt.excluded.producto,
                "capacidad": stmt.excluded.capacidad,
                "nivel_actual": stmt.excluded.nivel_actual,
                "temperatura": stmt.excluded.temperatura,
                "fecha_actualizacion": stmt.excluded.fecha_actualizacion,
            },
        )
        await self.db.execute(stmt)

    async def list_tanks(self) -> List[TanqueEstadoActual]:
        result = await self.db.execute(
            select(TanqueEstadoActual).order_by(TanqueEstadoActual.id_tanque)
        )
        return list(result.scalars().all())
