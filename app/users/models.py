# app/users/models.py

from typing import List, Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base


class Empresa(Base):
    """Company a user can work for"""
    __tablename__ = "empresas"

    empresa_id: Mapped[int] = mapped_column(primary_key=True)
    nombre: Mapped[str] = mapped_column(String(120), nullable=False)

    def __repr__(self):
        return f"<Empresa(id={self.empresa_id}, nombre='{self.nombre}')>"


class Rol(Base):
    """Role model"""
    __tablename__ = "roles"

    rol_id: Mapped[int] = mapped_column(primary_key=True)
    nombre: Mapped[str] = mapped_column(String(60), nullable=False, unique=True)

    def __repr__(self):
        return f"<Rol(id={self.rol_id}, nombre='{self.nombre}')>"


class Permiso(Base):
    """
    Named permission. The routes check ``sincronizacion``, ``reportes``
    and ``usuarios``.
    """
    __tablename__ = "permisos"

    id: Mapped[int] = mapped_column(primary_key=True)
    nombre: Mapped[str] = mapped_column(String(60), nullable=False, unique=True)
    descripcion: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class User(Base):
    """User model"""
    __tablename__ = "usuarios"

    # --- Columns ---
    user_id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    nombre_usuario: Mapped[str] = mapped_column(String(120), nullable=False)
    dni: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    rol_id: Mapped[Optional[int]] = mapped_column(ForeignKey("roles.rol_id"), nullable=True)
    activo: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # --- Relationships ---
    empresas: Mapped[List["UsuarioEmpresa"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", order_by="UsuarioEmpresa.empresa_id"
    )

    def __repr__(self):
        return f"<User(id={self.user_id}, email='{self.email}', activo={self.activo})>"


class UsuarioEmpresa(Base):
    """Company and role of a user. The first link by empresa_id is used at login."""
    __tablename__ = "usuario_empresa"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("usuarios.user_id", ondelete="CASCADE"), primary_key=True
    )
    empresa_id: Mapped[int] = mapped_column(ForeignKey("empresas.empresa_id"), primary_key=True)
    rol_id: Mapped[int] = mapped_column(ForeignKey("roles.rol_id"), nullable=False)

    user: Mapped["User"] = relationship(back_populates="empresas")
    empresa: Mapped["Empresa"] = relationship(lazy="joined")
    rol: Mapped["Rol"] = relationship(lazy="joined")


class UsuarioPermiso(Base):
    __tablename__ = "usuario_permiso"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("usuarios.user_id", ondelete="CASCADE"), primary_key=True
    )
    empresa_id: Mapped[int] = mapped_column(ForeignKey("empresas.empresa_id"), primary_key=True)
    permiso_id: Mapped[int] = mapped_column(
        ForeignKey("permisos.id", ondelete="CASCADE"), primary_key=True
    )


class RolPermiso(Base):
    """Initial permission set of a role, copied to new users"""
    __tablename__ = "rol_permiso"

    rol_id: Mapped[int] = mapped_column(ForeignKey("roles.rol_id", ondelete="CASCADE"), primary_key=True)
    permiso_id: Mapped[int] = mapped_column(
        ForeignKey("permisos.id", ondelete="CASCADE"), primary_key=True
    )
