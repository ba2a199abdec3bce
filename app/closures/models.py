# app/closures/models.py

"""
Shift closures and the per-closure metrics derived from them.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, Numeric, String, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base


class CierreTurno(Base):
    """
    Totals of one register shift as reported by the vendor.
    """
    __tablename__ = "cierres_turno"

    __table_args__ = (
        UniqueConstraint("id_estacion", "caja_id", "id_cierre_turno", name="uq_cierre_turno"),
        Index("idx_cierres_turno_fecha", "fecha"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    fecha: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    id_estacion: Mapped[int] = mapped_column(Integer, nullable=False)
    nombre_estacion: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    caja_id: Mapped[int] = mapped_column(Integer, nullable=False)
    nombre_caja: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    id_cierre_turno: Mapped[int] = mapped_column(Integer, nullable=False)
    numero_turno: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    id_cierre_caja_tesoreria: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    importe_ventas_totales_contado: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    total_litros_despachados: Mapped[float] = mapped_column(Numeric(14, 3), default=0)
    total_efectivo_recaudado: Mapped[float] = mapped_column(Numeric(14, 2), default=0)

    def __repr__(self):
        return f"<CierreTurno(estacion={self.id_estacion}, caja={self.caja_id}, id={self.id_cierre_turno})>"


class DatoMetrica(Base):
    """
    Fact row feeding the dashboards: quantity and amount of one closure,
    attributed to a department and a product by register type.
    """
    __tablename__ = "datos_metricas"

    __table_args__ = (
        UniqueConstraint("estacion_id", "caja_id", "id_cierre_turno", name="uq_dato_metrica_cierre"),
        Index("idx_datos_metricas_fecha", "fecha"),
        Index("idx_datos_metricas_producto", "producto_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    fecha: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    empresa_id: Mapped[int] = mapped_column(Integer, nullable=False)
    depto_id: Mapped[int] = mapped_column(Integer, nullable=False)
    producto_id: Mapped[int] = mapped_column(Integer, nullable=False)
    estacion_id: Mapped[int] = mapped_column(Integer, nullable=False)
    nombre_estacion: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    caja_id: Mapped[int] = mapped_column(Integer, nullable=False)
    nombre_caja: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    id_cierre_turno: Mapped[int] = mapped_column(Integer, nullable=False)
    cantidad: Mapped[float] = mapped_column(Numeric(14, 3), default=0)
    importe: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
