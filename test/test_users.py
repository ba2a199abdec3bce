from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError

from app.core.jwt import REFRESH_SCOPE, create_access_token, create_refresh_token, verify_token
from app.main import estaciones_app
from app.users.schemas import RegisterRequest, UserPermisoRequest, UserUpdate
from app.users.services import UserService, get_user_repository
from app.users.utils import PermissionChecker
from app.utils.logger import get_logger
from app.utils.security import get_password_hash, verify_password

logger = get_logger(__name__)

PASSWORD = "estaciones@123"
PASSWORD_HASH = get_password_hash(PASSWORD)


def _stored_user(**overrides):
    link = SimpleNamespace(
        empresa_id=3,
        empresa=SimpleNamespace(nombre="Estaciones del Sur"),
        rol=SimpleNamespace(nombre="Administrador"),
    )
    values = dict(
        user_id=7,
        email="ana@estaciones.com",
        password_hash=PASSWORD_HASH,
        nombre_usuario="Ana",
        activo=True,
        empresas=[link],
    )
    values.update(overrides)
    return MagicMock(**values)


@pytest.fixture
def user_repo(mock_db):
    repo = MagicMock(db=mock_db)
    repo.get_user_by_email = AsyncMock(return_value=_stored_user())
    repo.get_user_by_id = AsyncMock(return_value=_stored_user())
    repo.get_permission_names = AsyncMock(return_value=["reportes", "sincronizacion"])
    repo.email_exists = AsyncMock(return_value=False)
    repo.create = AsyncMock(side_effect=lambda user: SimpleNamespace(user_id=12, email=user.email))
    repo.upsert_company_link = AsyncMock()
    repo.add_permissions = AsyncMock()
    repo.copy_role_permissions = AsyncMock()
    repo.update_user = AsyncMock()
    repo.clear_permissions = AsyncMock()
    repo.remove_permission = AsyncMock(return_value=1)
    return repo


@pytest.fixture
def user_client(client, user_repo):
    estaciones_app.dependency_overrides[get_user_repository] = lambda: user_repo
    yield client


# ===================== Passwords and tokens =====================

def test_password_hashing():
    assert verify_password(PASSWORD, PASSWORD_HASH)
    assert not verify_password("otra", PASSWORD_HASH)
    assert not verify_password(PASSWORD, "")
    assert not verify_password(PASSWORD, "not-a-bcrypt-hash")


def test_refresh_token_is_not_an_access_token():
    refresh_token = create_refresh_token({"sub": "ana@estaciones.com", "permisos": ["x"]})
    payload = verify_token(refresh_token, scope=REFRESH_SCOPE)
    assert payload["sub"] == "ana@estaciones.com"
    assert "permisos" not in payload
    with pytest.raises(HTTPException) as exc:
        verify_token(refresh_token)
    assert exc.value.status_code == 401


# ===================== Session =====================

def test_login_success(user_client):
    response = user_client.post("/api/login", json={"email": "ana@estaciones.com", "password": PASSWORD})
    logger.info("Login response", body=response.json())

    assert response.status_code == 200
    body = response.json()
    assert body["user"] == {
        "id": 7,
        "nombre": "Ana",
        "email": "ana@estaciones.com",
        "empresa": "Estaciones del Sur",
        "rol": "Administrador",
        "permisos": ["reportes", "sincronizacion"],
    }
    payload = verify_token(body["token"])
    assert payload["sub"] == "ana@estaciones.com"
    assert payload["permisos"] == ["reportes", "sincronizacion"]
    assert verify_token(body["refresh_token"], scope=REFRESH_SCOPE)["sub"] == "ana@estaciones.com"


def test_login_missing_password(user_client):
    response = user_client.post("/api/login", json={"email": "ana@estaciones.com"})
    assert response.status_code == 400


def test_login_unknown_email(user_client, user_repo):
    user_repo.get_user_by_email.return_value = None
    response = user_client.post("/api/login", json={"email": "nadie@estaciones.com", "password": PASSWORD})
    assert response.status_code == 401
    assert response.json() == {"detail": "Usuario no encontrado"}


def test_login_inactive_user(user_client, user_repo):
    user_repo.get_user_by_email.return_value = _stored_user(activo=False)
    response = user_client.post("/api/login", json={"email": "ana@estaciones.com", "password": PASSWORD})
    assert response.status_code == 403


def test_login_wrong_password(user_client):
    response = user_client.post("/api/login", json={"email": "ana@estaciones.com", "password": "wrong"})
    assert response.status_code == 401
    assert response.json() == {"detail": "Contraseña incorrecta"}


def test_refresh_issues_new_tokens(user_client):
    refresh_token = create_refresh_token({"sub": "ana@estaciones.com"})
    response = user_client.post("/api/refresh", headers={"Authorization": f"Bearer {refresh_token}"})
    assert response.status_code == 200
    assert verify_token(response.json()["token"])["sub"] == "ana@estaciones.com"


def test_refresh_rejects_access_token(user_client):
    access_token = create_access_token({"sub": "ana@estaciones.com"})
    response = user_client.post("/api/refresh", headers={"Authorization": f"Bearer {access_token}"})
    assert response.status_code == 401


def test_protected_route_without_token(anonymous_client):
    response = anonymous_client.get("/api/users")
    assert response.status_code == 401


def test_logout(client):
    response = client.get("/api/logout")
    assert response.status_code == 200
    assert response.json()["message"] == "Logout successful"


# ===================== Administration =====================

async def test_register_copies_role_permissions(user_repo, mock_db):
    request = RegisterRequest(
        email="nuevo@estaciones.com", password="clave", nombre_usuario="Nuevo", empresa_id=3, rol_id=2,
    )
    user = await UserService(repo=user_repo).register(request)

    assert user.user_id == 12
    created = user_repo.create.await_args.args[0]
    assert verify_password("clave", created.password_hash)
    user_repo.upsert_company_link.assert_awaited_once_with(12, 3, 2)
    user_repo.copy_role_permissions.assert_awaited_once_with(12, 3, 2)
    user_repo.add_permissions.assert_not_awaited()
    mock_db.commit.assert_awaited_once()


async def test_register_with_explicit_permissions(user_repo):
    request = RegisterRequest(
        email="nuevo@estaciones.com", password="clave", nombre_usuario="Nuevo",
        empresa_id=3, rol_id=2, permisos_ids=[1, 2],
    )
    await UserService(repo=user_repo).register(request)

    user_repo.add_permissions.assert_awaited_once_with(12, 3, [1, 2])
    user_repo.copy_role_permissions.assert_not_awaited()


def test_register_duplicate_email(user_client, user_repo):
    user_repo.email_exists.return_value = True
    response = user_client.post("/api/register", json={
        "email": "ana@estaciones.com", "password": "x", "nombre_usuario": "Ana", "empresa_id": 3, "rol_id": 2,
    })
    assert response.status_code == 409


async def test_update_user_only_sends_given_fields(user_repo):
    await UserService(repo=user_repo).update_user(7, UserUpdate(nombre_usuario="Ana María", activo=False))

    user_repo.update_user.assert_awaited_once_with(7, {"nombre_usuario": "Ana María", "activo": False})
    user_repo.clear_permissions.assert_not_awaited()


async def test_update_user_replaces_company_permissions(user_repo):
    await UserService(repo=user_repo).update_user(7, UserUpdate(empresa_id=3, rol_id=2, permisos_ids=[4]))

    user_repo.upsert_company_link.assert_awaited_once_with(7, 3, 2)
    user_repo.clear_permissions.assert_awaited_once_with(7, 3)
    user_repo.add_permissions.assert_awaited_once_with(7, 3, [4])


def test_update_user_to_taken_email(user_client, user_repo):
    user_repo.email_exists.return_value = True
    response = user_client.put("/api/users/7", json={"email": "luis@estaciones.com"})

    assert response.status_code == 409
    assert response.json() == {"detail": "Email ya registrado"}
    user_repo.update_user.assert_not_awaited()


async def test_update_user_email_race_is_a_conflict(user_repo, mock_db):
    mock_db.commit.side_effect = IntegrityError(
        "UPDATE usuarios", {}, Exception('duplicate key value violates unique constraint "usuarios_email_key"'),
    )
    with pytest.raises(HTTPException) as exc:
        await UserService(repo=user_repo).update_user(7, UserUpdate(email="luis@estaciones.com"))

    assert exc.value.status_code == 409
    mock_db.rollback.assert_awaited_once()


async def test_update_user_keeping_own_email(user_repo):
    await UserService(repo=user_repo).update_user(7, UserUpdate(email="ana@estaciones.com"))

    user_repo.email_exists.assert_not_awaited()
    user_repo.update_user.assert_awaited_once_with(7, {"email": "ana@estaciones.com"})


def test_update_unknown_user(user_client, user_repo):
    user_repo.get_user_by_id.return_value = None
    response = user_client.put("/api/users/99", json={"activo": False})
    assert response.status_code == 404


async def test_permission_request_falls_back_to_first_company(user_repo):
    await UserService(repo=user_repo).add_permission(UserPermisoRequest(user_id=7, permiso_id=2))
    user_repo.add_permissions.assert_awaited_once_with(7, 3, [2])


def test_remove_permission_route(user_client, user_repo):
    response = user_client.request(
        "DELETE", "/api/users/permisos", json={"user_id": 7, "permiso_id": 2, "empresa_id": 5},
    )
    assert response.status_code == 200
    user_repo.remove_permission.assert_awaited_once_with(7, 5, 2)


# ===================== Permission checks =====================

async def test_permission_checker_allows_holder(fake_user):
    with patch("app.users.utils.UserRepository") as repo_cls:
        repo_cls.return_value.get_permission_names = AsyncMock(return_value=["Reportes"])
        user = await PermissionChecker(["reportes"])(current_user=fake_user, db=MagicMock())
    assert user is fake_user


async def test_permission_checker_forbids_others(fake_user):
    with patch("app.users.utils.UserRepository") as repo_cls:
        repo_cls.return_value.get_permission_names = AsyncMock(return_value=["reportes"])
        with pytest.raises(HTTPException) as exc:
            await PermissionChecker(["usuarios"])(current_user=fake_user, db=MagicMock())
    assert exc.value.status_code == 403
