# app/users/schemas.py

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class LoginRequest(BaseModel):
    """Both fields are checked by the service so a missing one is a 400"""
    email: Optional[str] = None
    password: Optional[str] = None


class LoginUser(BaseModel):
    id: int
    nombre: str
    email: str
    empresa: Optional[str] = None
    rol: Optional[str] = None
    permisos: List[str] = []


class LoginResponse(BaseModel):
    ok: bool = True
    user: LoginUser
    token: str
    refresh_token: str


class RefreshResponse(BaseModel):
    ok: bool = True
    token: str
    refresh_token: str


class EmpresaResponse(BaseModel):
    empresa_id: int
    nombre: str

    model_config = ConfigDict(from_attributes=True)


class RolResponse(BaseModel):
    rol_id: int
    nombre: str

    model_config = ConfigDict(from_attributes=True)


class PermisoResponse(BaseModel):
    id: int
    nombre: str
    descripcion: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class UserListItem(BaseModel):
    user_id: int
    email: str
    nombre_usuario: str
    dni: Optional[str] = None
    activo: bool
    empresa: Optional[str] = None
    rol: Optional[str] = None
    empresa_id: Optional[int] = None
    rol_id: Optional[int] = None


class UserListResponse(BaseModel):
    ok: bool = True
    usuarios: List[UserListItem]


class EmpresaListResponse(BaseModel):
    ok: bool = True
    empresas: List[EmpresaResponse]


class RolListResponse(BaseModel):
    ok: bool = True
    roles: List[RolResponse]


class PermisoListResponse(BaseModel):
    ok: bool = True
    permisos: List[PermisoResponse]


class UserPermisosResponse(PermisoListResponse):
    permisos_ids: List[int]


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    nombre_usuario: str = Field(..., min_length=1)
    empresa_id: int
    rol_id: int
    permisos_ids: List[int] = []


class UserUpdate(BaseModel):
    """Partial update, fields left out keep their value"""
    email: Optional[EmailStr] = None
    nombre_usuario: Optional[str] = None
    dni: Optional[str] = None
    activo: Optional[bool] = None
    rol_id: Optional[int] = None
    empresa_id: Optional[int] = None
    permisos_ids: Optional[List[int]] = None


class UserPermisoRequest(BaseModel):
    user_id: int
    permiso_id: int
    empresa_id: Optional[int] = None


class MessageResponse(BaseModel):
    ok: bool = True
    message: str
