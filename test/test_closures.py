from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.catalog.registry import StationRegistry
from app.closures.exceptions import ClosureValidationException
from app.closures.services import ClosureService
from app.closures.utils import build_closure_rows, classify_register, iter_days, parse_closure_detail
from app.main import estaciones_app

CLOSURES_XML = """<ArrayOfCierreTurno>
  <CierreTurno>
    <IdCierreTurno>501</IdCierreTurno>
    <Fecha>1/2/2024 6:00:00</Fecha>
    <Caja>PLAYA NORTE</Caja>
    <NumeroTurno>1</NumeroTurno>
  </CierreTurno>
  <CierreTurno>
    <IdCierreTurno>502</IdCierreTurno>
    <Caja>PLAYA NORTE</Caja>
  </CierreTurno>
</ArrayOfCierreTurno>"""

DETAIL_XML = """<InformacionCierreTurno>
  <ImporteVentasTotalesContado>0</ImporteVentasTotalesContado>
  <TotalLitrosDespachados>1520.456</TotalLitrosDespachados>
  <TotalEfectivoRecaudado>98000.5</TotalEfectivoRecaudado>
</InformacionCierreTurno>"""


@pytest.fixture
def registry():
    registry = StationRegistry()
    registry.stations = {1: "Ruta 40"}
    registry.registers = {2: "PLAYA", 3: "SHOP"}
    registry.register_stations = {2: 1, 3: 1}
    return registry


@pytest.fixture
def closure_repo(mock_db):
    repo = MagicMock(db=mock_db)
    repo.upsert_closure = AsyncMock()
    repo.upsert_metric = AsyncMock()
    repo.get_last_metric_date = AsyncMock(return_value=None)
    return repo


@pytest.fixture
def closure_service(closure_repo, registry):
    service = ClosureService(repo=closure_repo, registry=registry)
    service.logs = AsyncMock()
    return service


# ===================== Utils =====================

def test_iter_days_includes_both_ends():
    assert list(iter_days(date(2024, 2, 28), date(2024, 3, 1))) == [
        date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1),
    ]
    assert list(iter_days(date(2024, 3, 2), date(2024, 3, 1))) == []


@pytest.mark.parametrize(
    "nombre,expected",
    [
        ("PLAYA 1", (1, 4)),
        ("Shop central", (2, 8)),
        ("LUBRICENTRO", (3, 7)),
        ("ADMINISTRACION", (1, 1)),
        (None, (1, 1)),
    ],
)
def test_classify_register(nombre, expected):
    assert classify_register(nombre) == expected


def test_parse_closure_detail_defaults_to_zero():
    assert parse_closure_detail("<InformacionCierreTurno />") == {"importe": 0.0, "litros": 0.0, "efectivo": 0.0}
    assert parse_closure_detail(DETAIL_XML) == {"importe": 0.0, "litros": 1520.456, "efectivo": 98000.5}


def test_build_closure_rows_uses_cash_when_sales_are_zero():
    closure = {"IdCierreTurno": "501", "Fecha": "1/2/2024 6:00:00", "Caja": "SHOP"}
    detail = {"importe": 0.0, "litros": 0.0, "efectivo": 1500.0}

    closure_row, metric_row = build_closure_rows(
        closure, detail, id_estacion=1, nombre_estacion="Ruta 40",
        caja_id=3, nombre_caja="Caja 3", empresa_id=1,
    )

    assert closure_row["fecha"] == datetime(2024, 2, 1, 6, 0, 0)
    assert closure_row["nombre_caja"] == "SHOP"
    assert closure_row["importe_ventas_totales_contado"] == 0.0
    assert metric_row["importe"] == 1500.0
    assert (metric_row["depto_id"], metric_row["producto_id"]) == (2, 8)
    assert metric_row["estacion_id"] == 1 and metric_row["id_cierre_turno"] == 501


def test_build_closure_rows_prefers_sales_amount():
    _, metric_row = build_closure_rows(
        {"IdCierreTurno": "7", "Fecha": "1/2/2024 6:00:00"},
        {"importe": 200.0, "litros": 10.0, "efectivo": 150.0},
        id_estacion=1, nombre_estacion="Ruta 40", caja_id=2, nombre_caja="PLAYA", empresa_id=1,
    )
    assert metric_row["importe"] == 200.0
    assert metric_row["nombre_caja"] == "PLAYA"


# ===================== Sync =====================

async def test_sync_range_requires_both_dates(closure_service):
    with pytest.raises(ClosureValidationException):
        await closure_service.sync_range(date(2024, 2, 1), None)
    with pytest.raises(ClosureValidationException):
        await closure_service.sync_range(date(2024, 2, 2), date(2024, 2, 1))


async def test_sync_range_stores_dated_closures(closure_service, closure_repo, no_pauses):
    with patch("app.closures.services.api_client") as api_client:
        api_client.fetch_shift_closures = AsyncMock(return_value=CLOSURES_XML)
        api_client.fetch_closure_detail = AsyncMock(return_value=DETAIL_XML)
        result = await closure_service.sync_range(date(2024, 2, 1), date(2024, 2, 1))

    # two registers, one dated closure each; the undated one is skipped
    assert result.total_cierres == 2
    assert result.dias == 1
    assert result.errores == 0
    assert closure_repo.upsert_closure.await_count == 2
    api_client.fetch_closure_detail.assert_any_await(1, 2, "1/2/2024 6:00:00")

    metric_row = closure_repo.upsert_metric.await_args_list[0].args[0]
    assert metric_row["importe"] == 98000.5
    assert metric_row["cantidad"] == 1520.456
    assert metric_row["nombre_estacion"] == "Ruta 40"


async def test_sync_range_skips_closures_without_id(closure_service, closure_repo, no_pauses):
    closures = """<ArrayOfCierreTurno>
  <CierreTurno><IdCierreTurno>0</IdCierreTurno><Fecha>1/2/2024 6:00:00</Fecha></CierreTurno>
  <CierreTurno><Fecha>1/2/2024 14:00:00</Fecha></CierreTurno>
  <CierreTurno><IdCierreTurno>503</IdCierreTurno><Fecha>1/2/2024 22:00:00</Fecha></CierreTurno>
</ArrayOfCierreTurno>"""
    with patch("app.closures.services.api_client") as api_client:
        api_client.fetch_shift_closures = AsyncMock(return_value=closures)
        api_client.fetch_closure_detail = AsyncMock(return_value=DETAIL_XML)
        result = await closure_service.sync_range(date(2024, 2, 1), date(2024, 2, 1))

    assert result.total_cierres == 2
    stored_ids = {c.args[0]["id_cierre_turno"] for c in closure_repo.upsert_closure.await_args_list}
    assert stored_ids == {503}
    assert {c.args[2] for c in api_client.fetch_closure_detail.await_args_list} == {"1/2/2024 22:00:00"}


async def test_sync_range_skips_failing_register(closure_service, closure_repo, mock_db, no_pauses):
    async def fetch_closures(id_estacion, id_caja, fecha):
        if id_caja == 3:
            raise RuntimeError("timeout")
        return CLOSURES_XML

    with patch("app.closures.services.api_client") as api_client:
        api_client.fetch_shift_closures = AsyncMock(side_effect=fetch_closures)
        api_client.fetch_closure_detail = AsyncMock(return_value=DETAIL_XML)
        result = await closure_service.sync_range(date(2024, 2, 1), date(2024, 2, 2))

    assert result.total_cierres == 2
    assert result.dias == 2
    assert result.errores == 2
    assert mock_db.rollback.await_count == 2
    # both attempts of the failing register were made before giving up
    failing_calls = [c for c in api_client.fetch_shift_closures.await_args_list if c.args[1] == 3]
    assert len(failing_calls) == 4
    statuses = [c.args[0] for c in closure_service.logs.add.await_args_list]
    assert statuses.count("ERROR - CIERRES") == 2
    assert statuses[-1] == "EXITO - CIERRES"


async def test_sync_auto_continues_after_last_metric(closure_service, closure_repo):
    closure_repo.get_last_metric_date.return_value = datetime(2024, 3, 9, 22, 0)
    closure_service.sync_range = AsyncMock()

    await closure_service.sync_auto(today=date(2024, 3, 12))

    closure_service.sync_range.assert_awaited_once_with(date(2024, 3, 10), date(2024, 3, 12))


async def test_sync_auto_up_to_date(closure_service, closure_repo):
    closure_repo.get_last_metric_date.return_value = datetime(2024, 3, 12, 22, 0)
    closure_service.sync_range = AsyncMock()

    result = await closure_service.sync_auto(today=date(2024, 3, 12))

    assert result.total_cierres == 0
    closure_service.sync_range.assert_not_awaited()


async def test_sync_auto_starts_from_default_when_empty(closure_service):
    closure_service.sync_range = AsyncMock()
    await closure_service.sync_auto(today=date(2023, 1, 3))
    closure_service.sync_range.assert_awaited_once_with(date(2023, 1, 1), date(2023, 1, 3))


# ===================== Routes =====================

def test_sync_route_rejects_missing_dates(client, closure_service):
    estaciones_app.dependency_overrides[ClosureService] = lambda: closure_service
    response = client.post("/api/cierres/sync", params={"fechaInicio": "2024-02-01"})
    assert response.status_code == 400


def test_closure_detail_route_requires_timestamp(client, closure_service):
    estaciones_app.dependency_overrides[ClosureService] = lambda: closure_service
    response = client.get("/api/cierres/detalle", params={"idEstacion": 1, "idCaja": 2})
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing fechaHoraCierre parameter"
