from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.main import estaciones_app
from app.tanks.services import TankService
from app.tanks.utils import build_tank_reading, filter_tracked_tanks

TANKS = [
    {"idTanque": 1, "articulo": {"descripcion": "NAFTA SUPER"}},
    {"idTanque": 2, "articulo": {"descripcion": "GNC"}},
    {"idTanque": 3, "articulo": {"descripcion": "quantium diesel "}},
    {"idTanque": 4},
]

INFO = {"litros": 12000.5, "litrosVacio": 7999.5, "temperatura": 18.25, "fechaHoraMedicion": "2024-03-05T08:00:00"}


@pytest.fixture
def tank_repo(mock_db):
    repo = MagicMock(db=mock_db)
    repo.upsert_reading = AsyncMock()
    repo.list_tanks = AsyncMock(return_value=[])
    return repo


def test_filter_tracked_tanks():
    assert [tank["idTanque"] for tank in filter_tracked_tanks(TANKS)] == [1, 3]
    assert filter_tracked_tanks({"error": "x"}) == []


def test_build_tank_reading():
    reading = build_tank_reading(TANKS[0], INFO)
    assert reading == {
        "id_tanque": 1,
        "producto": "NAFTA SUPER",
        "capacidad": 20000.0,
        "nivel_actual": 12000.5,
        "temperatura": 18.25,
        "fecha_actualizacion": datetime(2024, 3, 5, 8, 0, 0),
    }


def test_build_tank_reading_without_measurement():
    before = datetime.now()
    reading = build_tank_reading(TANKS[0], {})
    assert reading["capacidad"] == 0
    assert reading["temperatura"] is None
    assert reading["fecha_actualizacion"] >= before


async def test_refresh_upserts_tracked_tanks(tank_repo, mock_db):
    with patch("app.tanks.services.api_client") as api_client:
        api_client.fetch_tanks = AsyncMock(return_value=TANKS)
        api_client.fetch_tank_info = AsyncMock(return_value=INFO)
        updated = await TankService(repo=tank_repo).refresh()

    assert updated == 2
    assert [c.args[0] for c in api_client.fetch_tank_info.await_args_list] == [1, 3]
    assert tank_repo.upsert_reading.await_count == 2
    mock_db.commit.assert_awaited_once()


def test_levels_route(client, tank_repo):
    estaciones_app.dependency_overrides[TankService] = lambda: TankService(repo=tank_repo)
    with patch("app.tanks.services.api_client") as api_client:
        api_client.fetch_tanks = AsyncMock(return_value=TANKS[:1])
        api_client.fetch_tank_info = AsyncMock(return_value=INFO)
        response = client.get("/api/niveles")

    assert response.status_code == 200
    assert response.json()["data"][0]["capacidad"] == 20000.0


async def test_read_levels_retries_tank_info(tank_repo, no_pauses):
    with patch("app.tanks.services.api_client") as api_client:
        api_client.fetch_tanks = AsyncMock(return_value=TANKS[:1])
        api_client.fetch_tank_info = AsyncMock(side_effect=[RuntimeError("read timeout"), INFO])
        readings = await TankService(repo=tank_repo).read_levels()

    assert api_client.fetch_tank_info.await_count == 2
    assert readings[0]["nivel_actual"] == 12000.5
