# app/positions/repository.py

from typing import Any, Dict, List

from sqlalchemy import func, literal_column, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.positions.models import Position


class PositionRepository:
    """Data access for positions"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def upsert_position(self, row: Dict[str, Any]) -> bool:
        """
        Insert or refresh a fix keyed by plate and date.

        Each call runs in a savepoint so one bad row does not poison the
        transaction for the rest.

        Returns:
            True when the row was inserted, False when it was updated
        """
        insert_stmt = pg_insert(Position).values(**row)
        stmt = insert_stmt.on_conflict_do_update(
            index_elements=["plate", "date"],
            set_={
                **{key: insert_stmt.excluded[key] for key in row if key not in ("plate", "date")},
                "updated_at": func.now(),
            },
        ).returning(literal_column("(xmax = 0)").label("insertado"))

        async with self.db.begin_nested():
            result = await self.db.execute(stmt)
            return bool(result.scalar_one())

    async def get_history(self, plate: str, limit: int = 50) -> List[Position]:
        stmt = (
            select(Position)
            .where(Position.plate == plate)
            .order_by(Position.date.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
