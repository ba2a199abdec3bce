# app/catalog/models.py

"""
Product dimension and fuel article catalog.
"""

from typing import Optional

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base


class DimProducto(Base):
    """
    Product dimension used by every metric and report join.

    ``origen`` is Playa or Shop, ``categoria`` is one of the category
    labels produced by the catalog classifiers.
    """
    __tablename__ = "dim_producto"

    producto_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    nombre: Mapped[str] = mapped_column(String(255), nullable=False)
    origen: Mapped[str] = mapped_column(String(20), default="Playa")
    categoria: Mapped[str] = mapped_column(String(30), default="OTROS", index=True)

    def __repr__(self):
        return f"<DimProducto(id={self.producto_id}, nombre='{self.nombre}', categoria='{self.categoria}')>"


class ArticuloCombustible(Base):
    __tablename__ = "articulos_combustibles"

    id_articulo: Mapped[str] = mapped_column(String(32), primary_key=True)
    descripcion: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    es_combustible: Mapped[bool] = mapped_column(Boolean, default=False)
    es_lubricante: Mapped[bool] = mapped_column(Boolean, default=False)
    color: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
