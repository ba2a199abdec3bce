# app/users/utils.py

from typing import List

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db import get_async_db
from app.core.jwt import verify_token
from app.users.models import User
from app.users.repository import UserRepository
from app.utils.logger import get_logger

logger = get_logger(__name__)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_prefix}/login")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_async_db)
) -> User:
    """Active user named by the bearer token's ``sub`` claim, 401 otherwise"""
    email = verify_token(token).get("sub")
    if not email:
        logger.warning("Access token without subject")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Credenciales inválidas")

    user = await UserRepository(db).get_user_by_email(email)
    if user is None or not user.activo:
        logger.warning("Token subject is unknown or inactive", email=email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Usuario inexistente o inactivo")
    return user


class PermissionChecker:
    """
    Dependency that checks the current user holds any of the allowed
    permissions. Permissions are read from the database so a revoked
    permission applies before the token expires.
    """
    def __init__(self, allowed_permissions: List[str]):
        self.allowed_permissions = {name.lower() for name in allowed_permissions}

    async def __call__(
        self,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_async_db),
    ) -> User:
        held = {name.lower() for name in await UserRepository(db).get_permission_names(current_user.user_id)}
        if not held.intersection(self.allowed_permissions):
            logger.warning(
                "User does not have required permissions",
                user_id=current_user.user_id,
                required_permissions=sorted(self.allowed_permissions),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No tiene permisos para realizar esta acción"
            )
        return current_user


require_sync = PermissionChecker(["sincronizacion"])
require_reports = PermissionChecker(["reportes"])
require_user_admin = PermissionChecker(["usuarios"])
