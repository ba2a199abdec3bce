# app/users/services.py

from typing import Any, Dict, List, Optional, Tuple

from fastapi import Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db import get_async_db
from app.core.jwt import REFRESH_SCOPE, create_access_token, create_refresh_token, verify_token
from app.users.models import Empresa, Permiso, Rol, User
from app.users.repository import UserRepository
from app.users.schemas import LoginRequest, RegisterRequest, UserPermisoRequest, UserUpdate
from app.utils.logger import get_logger
from app.utils.security import get_password_hash, verify_password

logger = get_logger(__name__)


def _email_taken() -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email ya registrado")


def get_user_repository(db: AsyncSession = Depends(get_async_db)) -> UserRepository:
    """Dependency to get UserRepository instance."""
    return UserRepository(db)


class UserService:
    """
    Business logic layer for authentication and user administration.
    Depends on the UserRepository for data access.
    """

    def __init__(self, repo: UserRepository = Depends(get_user_repository)):
        self.repo = repo

    # --- Authentication ---

    async def authenticate_user(self, login_data: LoginRequest) -> User:
        """
        Check the credentials of a login request.

        Raises:
            HTTPException: 400 missing fields, 401 unknown email or wrong
                password, 403 inactive user
        """
        if not login_data.email or not login_data.password:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Faltan email o password"
            )

        user = await self.repo.get_user_by_email(login_data.email)
        if not user:
            logger.warning("Login attempt for unknown email", email=login_data.email)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Usuario no encontrado"
            )
        if not user.activo:
            logger.warning("Login attempt for inactive user", user_id=user.user_id)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Usuario inactivo"
            )
        if not verify_password(login_data.password, user.password_hash):
            logger.warning("Wrong password", user_id=user.user_id)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Contraseña incorrecta"
            )
        return user

    async def build_session(self, user: User) -> Dict[str, Any]:
        """User summary plus access and refresh tokens"""
        link = user.empresas[0] if user.empresas else None
        permisos = await self.repo.get_permission_names(user.user_id)
        summary = {
            "id": user.user_id,
            "nombre": user.nombre_usuario,
            "email": user.email,
            "empresa": link.empresa.nombre if link else None,
            "rol": link.rol.nombre if link else None,
            "permisos": permisos,
        }
        token = create_access_token(data={"sub": user.email, **summary})
        refresh_token = create_refresh_token(data={"sub": user.email})
        return {"user": summary, "token": token, "refresh_token": refresh_token}

    async def refresh(self, refresh_token: str) -> Dict[str, Any]:
        payload = verify_token(refresh_token, scope=REFRESH_SCOPE)
        user = await self.repo.get_user_by_email(payload.get("sub") or "")
        if not user or not user.activo:
            logger.warning("Invalid refresh token attempt", email=payload.get("sub"))
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid refresh token."
            )
        return await self.build_session(user)

    # --- Catalogs ---

    async def list_users(self) -> List[Dict[str, Any]]:
        return await self.repo.list_users()

    async def list_companies(self) -> List[Empresa]:
        return await self.repo.list_companies()

    async def list_roles(self) -> List[Rol]:
        return await self.repo.list_roles()

    async def list_permissions(self) -> List[Permiso]:
        return await self.repo.list_permissions()

    # --- Administration ---

    async def _apply_permissions(
        self, user_id: int, empresa_id: int, rol_id: int, permisos_ids: Optional[List[int]]
    ) -> None:
        if permisos_ids:
            await self.repo.add_permissions(user_id, empresa_id, permisos_ids)
        else:
            await self.repo.copy_role_permissions(user_id, empresa_id, rol_id)

    async def register(self, data: RegisterRequest) -> User:
        if await self.repo.email_exists(data.email):
            raise _email_taken()

        user = await self.repo.create(User(
            email=data.email,
            password_hash=get_password_hash(data.password),
            nombre_usuario=data.nombre_usuario,
            rol_id=data.rol_id,
            activo=True,
        ))
        await self.repo.upsert_company_link(user.user_id, data.empresa_id, data.rol_id)
        await self._apply_permissions(user.user_id, data.empresa_id, data.rol_id, data.permisos_ids)
        await self.repo.db.commit()

        logger.info("User registered", user_id=user.user_id, empresa_id=data.empresa_id, rol_id=data.rol_id)
        return user

    async def update_user(self, user_id: int, data: UserUpdate) -> None:
        """
        Update the given fields. When both company and role come, the company
        link is upserted and the permissions for that company are replaced.
        """
        user = await self.repo.get_user_by_id(user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Usuario no encontrado"
            )

        values = data.model_dump(
            include={"email", "nombre_usuario", "dni", "activo", "rol_id"},
            exclude_none=True,
        )
        if "email" in values and values["email"] != user.email and await self.repo.email_exists(values["email"]):
            raise _email_taken()

        try:
            await self.repo.update_user(user_id, values)

            if data.empresa_id and data.rol_id:
                await self.repo.upsert_company_link(user_id, data.empresa_id, data.rol_id)
                await self.repo.clear_permissions(user_id, data.empresa_id)
                await self._apply_permissions(user_id, data.empresa_id, data.rol_id, data.permisos_ids)

            await self.repo.db.commit()
        except IntegrityError as e:
            await self.repo.db.rollback()
            logger.warning("User update rejected", user_id=user_id, error_message=str(e.orig))
            # another request took the email between the check and the write
            if "email" in str(e.orig):
                raise _email_taken() from e
            raise
        logger.info("User updated", user_id=user_id, fields=list(values))

    async def get_user_permissions(self, user_id: int) -> Tuple[List[Permiso], List[int]]:
        permisos = await self.repo.get_user_permissions(user_id)
        return permisos, [permiso.id for permiso in permisos]

    async def _resolve_company(self, request: UserPermisoRequest) -> int:
        if request.empresa_id:
            return request.empresa_id
        user = await self.repo.get_user_by_id(request.user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Usuario no encontrado"
            )
        return user.empresas[0].empresa_id if user.empresas else settings.default_empresa_id

    async def add_permission(self, request: UserPermisoRequest) -> None:
        empresa_id = await self._resolve_company(request)
        await self.repo.add_permissions(request.user_id, empresa_id, [request.permiso_id])
        await self.repo.db.commit()

    async def remove_permission(self, request: UserPermisoRequest) -> int:
        empresa_id = await self._resolve_company(request)
        removed = await self.repo.remove_permission(request.user_id, empresa_id, request.permiso_id)
        await self.repo.db.commit()
        return removed
