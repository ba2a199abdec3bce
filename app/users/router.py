# app/users/router.py

from fastapi import APIRouter, Depends, Header, HTTPException, status

from app.users.models import User
from app.users.schemas import (
    EmpresaListResponse, EmpresaResponse, LoginRequest, LoginResponse, MessageResponse,
    PermisoListResponse, PermisoResponse, RefreshResponse, RegisterRequest, RolListResponse,
    RolResponse, UserListItem, UserListResponse, UserPermisoRequest, UserPermisosResponse,
    UserUpdate,
)
from app.users.services import UserService
from app.users.utils import get_current_user, require_user_admin
from app.utils.logger import get_logger

router = APIRouter(tags=["Users"])
logger = get_logger(__name__)


# ===================== Session =====================

@router.post("/login", response_model=LoginResponse)
async def login(
    login_request: LoginRequest,
    user_service: UserService = Depends(),
):
    """Authenticate user and return access & refresh tokens."""
    user = await user_service.authenticate_user(login_request)
    session = await user_service.build_session(user)
    logger.info("User logged in", user_id=user.user_id)
    return LoginResponse(**session)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_access_token(
    authorization: str = Header(..., alias="Authorization"),
    user_service: UserService = Depends(),
):
    """Refresh the access token using a valid refresh token."""
    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token."
        )
    session = await user_service.refresh(authorization.removeprefix("Bearer ").strip())
    return RefreshResponse(token=session["token"], refresh_token=session["refresh_token"])


@router.get("/logout", response_model=MessageResponse)
async def logout():
    """Tokens are stateless, the client drops them"""
    return MessageResponse(message="Logout successful")


# ===================== Catalogs =====================

@router.get("/empresas", response_model=EmpresaListResponse)
async def list_companies(
    user_service: UserService = Depends(),
    current_user: User = Depends(get_current_user),
):
    companies = await user_service.list_companies()
    return EmpresaListResponse(empresas=[EmpresaResponse.model_validate(c) for c in companies])


@router.get("/roles", response_model=RolListResponse)
async def list_roles(
    user_service: UserService = Depends(),
    current_user: User = Depends(get_current_user),
):
    roles = await user_service.list_roles()
    return RolListResponse(roles=[RolResponse.model_validate(r) for r in roles])


@router.get("/permisos", response_model=PermisoListResponse)
async def list_permissions(
    user_service: UserService = Depends(),
    current_user: User = Depends(get_current_user),
):
    permisos = await user_service.list_permissions()
    return PermisoListResponse(permisos=[PermisoResponse.model_validate(p) for p in permisos])


# ===================== Administration =====================

@router.get("/users", response_model=UserListResponse)
async def list_users(
    user_service: UserService = Depends(),
    current_user: User = Depends(require_user_admin),
):
    users = await user_service.list_users()
    return UserListResponse(usuarios=[UserListItem(**u) for u in users])


@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    register_request: RegisterRequest,
    user_service: UserService = Depends(),
    current_user: User = Depends(require_user_admin),
):
    await user_service.register(register_request)
    return MessageResponse(message="Usuario creado correctamente")


@router.put("/users/{user_id}", response_model=MessageResponse)
async def update_user(
    user_id: int,
    update_request: UserUpdate,
    user_service: UserService = Depends(),
    current_user: User = Depends(require_user_admin),
):
    await user_service.update_user(user_id, update_request)
    return MessageResponse(message="Usuario actualizado")


@router.get("/users/{user_id}/permisos", response_model=UserPermisosResponse)
async def get_user_permissions(
    user_id: int,
    user_service: UserService = Depends(),
    current_user: User = Depends(require_user_admin),
):
    permisos, permisos_ids = await user_service.get_user_permissions(user_id)
    return UserPermisosResponse(
        permisos=[PermisoResponse.model_validate(p) for p in permisos],
        permisos_ids=permisos_ids,
    )


@router.post("/users/permisos", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def add_user_permission(
    request: UserPermisoRequest,
    user_service: UserService = Depends(),
    current_user: User = Depends(require_user_admin),
):
    await user_service.add_permission(request)
    return MessageResponse(message="Permiso asignado")


@router.delete("/users/permisos", response_model=MessageResponse)
async def remove_user_permission(
    request: UserPermisoRequest,
    user_service: UserService = Depends(),
    current_user: User = Depends(require_user_admin),
):
    await user_service.remove_permission(request)
    return MessageResponse(message="Permiso eliminado")
