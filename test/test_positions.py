from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from app.main import estaciones_app
from app.positions import maxtracker_client
from app.positions.exceptions import PositionNotFoundException
from app.positions.services import PositionService
from app.positions.utils import map_position, parse_position_date

RAW_POSITION = {
    "lat": "-34.6037",
    "lng": "-58.3816",
    "date": "2024-03-05 14:22:10",
    "speed": "62.4",
    "direction": 180,
    "event_code": "01",
    "event": "Posición",
    "plate": "AB123CD",
    "imei": "356938035643809",
    "odometer": "154320",
    "hourmeter": "",
    "driver_name": "Juan Pérez",
}


@pytest.fixture
def position_repo(mock_db):
    repo = MagicMock(db=mock_db)
    repo.upsert_position = AsyncMock(side_effect=[True, False])
    repo.get_history = AsyncMock(return_value=[])
    return repo


# ===================== Mapping =====================

def test_map_position():
    row = map_position(RAW_POSITION)
    assert row["lat"] == -34.6037
    assert row["date"] == datetime(2024, 3, 5, 14, 22, 10)
    assert row["speed"] == 62.4
    assert row["odometer"] == 154320
    assert row["hourmeter"] == 0
    assert row["driver_key"] is None


def test_map_position_requires_plate_and_coordinates():
    with pytest.raises(ValueError):
        map_position({**RAW_POSITION, "plate": ""})
    with pytest.raises(ValueError):
        map_position({**RAW_POSITION, "lng": None})


def test_parse_position_date_falls_back_to_now():
    before = datetime.now()
    assert parse_position_date("not a date") >= before


def test_extract_positions_accepts_both_envelopes():
    assert maxtracker_client._extract_positions([{"plate": "A"}]) == [{"plate": "A"}]
    assert maxtracker_client._extract_positions({"ok": True, "data": [{"plate": "B"}]}) == [{"plate": "B"}]
    assert maxtracker_client._extract_positions({"ok": False, "error": "x"}) == []


async def test_fetch_positions_swallows_transport_errors():
    with patch("app.positions.maxtracker_client.httpx.AsyncClient") as client_cls:
        client = client_cls.return_value.__aenter__.return_value
        client.get = AsyncMock(side_effect=httpx.ConnectError("refused"))
        assert await maxtracker_client.fetch_positions("AB123CD") == []


# ===================== Service =====================

async def test_latest_position_not_found(position_repo):
    with patch("app.positions.services.maxtracker_client") as client:
        client.fetch_positions = AsyncMock(return_value=[])
        with pytest.raises(PositionNotFoundException):
            await PositionService(repo=position_repo).get_latest_position("ZZ999ZZ")


async def test_sync_positions_reports_failures_and_keeps_going(position_repo, mock_db):
    positions = [RAW_POSITION, {"plate": "XX000XX"}, {**RAW_POSITION, "plate": "AC456EF"}]
    with patch("app.positions.services.maxtracker_client") as client:
        client.fetch_positions = AsyncMock(return_value=positions)
        result = await PositionService(repo=position_repo).sync_positions()

    assert result.total == 3
    assert result.insertados == 1
    assert result.actualizados == 1
    assert len(result.errores) == 1
    assert "XX000XX" in result.errores[0]
    mock_db.commit.assert_awaited_once()


async def test_sync_positions_empty(position_repo, mock_db):
    with patch("app.positions.services.maxtracker_client") as client:
        client.fetch_positions = AsyncMock(return_value=[])
        result = await PositionService(repo=position_repo).sync_positions("AB123CD")

    assert result.total == 0
    mock_db.commit.assert_not_awaited()


# ===================== Routes =====================

def test_latest_position_route_404(client, position_repo):
    estaciones_app.dependency_overrides[PositionService] = lambda: PositionService(repo=position_repo)
    with patch("app.positions.services.maxtracker_client") as maxtracker:
        maxtracker.fetch_positions = AsyncMock(return_value=[])
        response = client.get("/api/positions/ultima-posicion/ZZ999ZZ")
    assert response.status_code == 404


def test_live_positions_route(client, position_repo):
    estaciones_app.dependency_overrides[PositionService] = lambda: PositionService(repo=position_repo)
    with patch("app.positions.services.maxtracker_client") as maxtracker:
        maxtracker.fetch_positions = AsyncMock(return_value=[RAW_POSITION])
        response = client.get("/api/positions", params={"plate": "AB123CD", "limit": 5})

    assert response.status_code == 200
    assert response.json()["cantidad"] == 1
    maxtracker.fetch_positions.assert_awaited_once_with("AB123CD", 5)


def test_history_route(client, position_repo):
    stored = MagicMock(**map_position(RAW_POSITION))
    position_repo.get_history.return_value = [stored]
    estaciones_app.dependency_overrides[PositionService] = lambda: PositionService(repo=position_repo)

    response = client.get("/api/positions/historial/AB123CD", params={"limit": 10})

    assert response.status_code == 200
    body = response.json()
    assert body["placa"] == "AB123CD"
    assert body["data"][0]["plate"] == "AB123CD"
    position_repo.get_history.assert_awaited_once_with("AB123CD", 10)
