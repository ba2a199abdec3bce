# app/ingestion/models.py

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base


class LogIngesta(Base):
    """
    One row per sync run, or per failed request inside a run.
    """
    __tablename__ = "logs_ingesta"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    fecha: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), index=True)
    registros_insertados: Mapped[int] = mapped_column(Integer, default=0)
    estado: Mapped[str] = mapped_column(String(50), index=True)
    mensaje_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self):
        return f"<LogIngesta(id={self.id}, estado='{self.estado}', registros={self.registros_insertados})>"
