# app/users/repository.py

from typing import Any, Dict, List, Optional

from sqlalchemy import delete, literal, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.users.models import (
    Empresa, Permiso, Rol, RolPermiso, User, UsuarioEmpresa, UsuarioPermiso,
)


class UserRepository:
    """
    Data Access Layer for users, companies, roles and permissions.
    Handles all database interactions.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).options(selectinload(User.empresas)).where(User.email == email)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        stmt = select(User).options(selectinload(User.empresas)).where(User.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        result = await self.db.execute(select(User.user_id).where(User.email == email))
        return result.first() is not None

    async def get_permission_names(self, user_id: int) -> List[str]:
        """Names of every permission the user holds, in any company"""
        stmt = (
            select(Permiso.nombre)
            .join(UsuarioPermiso, UsuarioPermiso.permiso_id == Permiso.id)
            .where(UsuarioPermiso.user_id == user_id)
            .distinct()
            .order_by(Permiso.nombre)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_user_permissions(self, user_id: int) -> List[Permiso]:
        stmt = (
            select(Permiso)
            .join(UsuarioPermiso, UsuarioPermiso.permiso_id == Permiso.id)
            .where(UsuarioPermiso.user_id == user_id)
            .distinct()
            .order_by(Permiso.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_users(self) -> List[Dict[str, Any]]:
        """Users joined with their company and role, one row per link"""
        stmt = (
            select(
                User.user_id, User.email, User.nombre_usuario, User.dni, User.activo,
                Empresa.nombre.label("empresa"), Rol.nombre.label("rol"),
                UsuarioEmpresa.empresa_id, UsuarioEmpresa.rol_id,
            )
            .outerjoin(UsuarioEmpresa, UsuarioEmpresa.user_id == User.user_id)
            .outerjoin(Empresa, Empresa.empresa_id == UsuarioEmpresa.empresa_id)
            .outerjoin(Rol, Rol.rol_id == UsuarioEmpresa.rol_id)
            .order_by(User.user_id)
        )
        result = await self.db.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    async def list_companies(self) -> List[Empresa]:
        result = await self.db.execute(select(Empresa).order_by(Empresa.nombre))
        return list(result.scalars().all())

    async def list_roles(self) -> List[Rol]:
        result = await self.db.execute(select(Rol).order_by(Rol.nombre))
        return list(result.scalars().all())

    async def list_permissions(self) -> List[Permiso]:
        result = await self.db.execute(select(Permiso).order_by(Permiso.id))
        return list(result.scalars().all())

    async def create(self, user: User) -> User:
        self.db.add(user)
        await self.db.flush()
        return user

    async def update_user(self, user_id: int, values: Dict[str, Any]) -> None:
        """Only the given columns change, None values are left out by the caller"""
        if values:
            await self.db.execute(update(User).where(User.user_id == user_id).values(**values))

    async def upsert_company_link(self, user_id: int, empresa_id: int, rol_id: int) -> None:
        stmt = pg_insert(UsuarioEmpresa).values(user_id=user_id, empresa_id=empresa_id, rol_id=rol_id)
        stmt = stmt.on_conflict_do_update(
            index_elements=[UsuarioEmpresa.user_id, UsuarioEmpresa.empresa_id],
            set_={"rol_id": stmt.excluded.rol_id},
        )
        await self.db.execute(stmt)

    async def clear_permissions(self, user_id: int, empresa_id: int) -> None:
        await self.db.execute(
            delete(UsuarioPermiso).where(
                UsuarioPermiso.user_id == user_id,
                UsuarioPermiso.empresa_id == empresa_id,
            )
        )

    async def add_permissions(self, user_id: int, empresa_id: int, permiso_ids: List[int]) -> None:
        if not permiso_ids:
            return
        stmt = pg_insert(UsuarioPermiso).values([
            {"user_id": user_id, "empresa_id": empresa_id, "permiso_id": permiso_id}
            for permiso_id in permiso_ids
        ]).on_conflict_do_nothing()
        await self.db.execute(stmt)

    async def copy_role_permissions(self, user_id: int, empresa_id: int, rol_id: int) -> None:
        """Give the user the initial permission set of the role"""
        source = select(
            literal(user_id), literal(empresa_id), RolPermiso.permiso_id
        ).where(RolPermiso.rol_id == rol_id)
        stmt = pg_insert(UsuarioPermiso).from_select(
            ["user_id", "empresa_id", "permiso_id"], source
        ).on_conflict_do_nothing()
        await self.db.execute(stmt)

    async def remove_permission(self, user_id: int, empresa_id: int, permiso_id: int) -> int:
        result = await self.db.execute(
            delete(UsuarioPermiso).where(
                UsuarioPermiso.user_id == user_id,
                UsuarioPermiso.empresa_id == empresa_id,
                UsuarioPermiso.permiso_id == permiso_id,
            )
        )
        return result.rowcount
