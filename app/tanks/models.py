# app/tanks/models.py

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base


class TanqueEstadoActual(Base):
    """Last known reading of each fuel tank, one row per tank"""
    __tablename__ = "tanques_estado_actual"

    id_tanque: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    producto: Mapped[str] = mapped_column(String(100), nullable=False)
    capacidad: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    nivel_actual: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    temperatura: Mapped[Optional[float]] = mapped_column(Numeric(6, 2), nullable=True)
    fecha_actualizacion: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __repr__(self):
        return f"<TanqueEstadoActual(id={self.id_tanque}, producto='{self.producto}', nivel={self.nivel_actual})>"
