from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from app.core.db import get_db
from app.main import estaciones_app
from app.reports import queries
from app.reports.exceptions import UnknownReportException, UnknownReportTypeException
from app.reports.services import ReportService
from app.reports.utils import add_average_price, month_to_date, pivot_daily_summary, serialize_row

SUBDIARIO_ROWS = [
    {"fecha": date(2024, 3, 1), "categoria": "COMBUSTIBLES", "litros": Decimal("100.5"), "importe": Decimal("1000")},
    {"fecha": date(2024, 3, 1), "categoria": "SHOP", "litros": Decimal("0"), "importe": Decimal("250.25")},
    {"fecha": date(2024, 3, 1), "categoria": "COMBUSTIBLES", "litros": Decimal("50"), "importe": Decimal("500")},
    {"fecha": date(2024, 3, 2), "categoria": "GNC", "litros": Decimal("30"), "importe": Decimal("300")},
]


def _db_returning(rows):
    db = MagicMock()
    db.execute.return_value.mappings.return_value.all.return_value = rows
    return db


@pytest.fixture
def report_client(client):
    estaciones_app.dependency_overrides[get_db] = lambda: MagicMock()
    yield client


# ===================== Utils =====================

def test_month_to_date():
    today = date(2024, 3, 15)
    assert month_to_date(None, None, today=today) == (date(2024, 3, 1), today)
    assert month_to_date(date(2024, 1, 1), None, today=today) == (date(2024, 3, 1), today)
    assert month_to_date(date(2024, 1, 1), date(2024, 1, 31), today=today) == (date(2024, 1, 1), date(2024, 1, 31))


def test_serialize_row_converts_decimals():
    assert serialize_row({"a": Decimal("1.5"), "b": "x"}) == {"a": 1.5, "b": "x"}


def test_add_average_price():
    rows = add_average_price([
        {"tipo": "LIQUIDOS", "total_cantidad": 200, "total_importe": 3000},
        {"tipo": "OTROS", "total_cantidad": 0, "total_importe": 50},
    ])
    assert rows[0]["promedio_precio"] == 15
    assert rows[1]["promedio_precio"] == 0


def test_pivot_daily_summary():
    summary = pivot_daily_summary([serialize_row(row) for row in SUBDIARIO_ROWS])

    assert [row["fecha"] for row in summary] == [date(2024, 3, 1), date(2024, 3, 2)]
    first, second = summary
    assert first["combustibles_litros"] == 150.5
    assert first["combustibles_importe"] == 1500
    assert first["shop_importe"] == 250.25
    assert first["gnc_litros"] == 0
    assert first["total_importe"] == 1750.25
    assert second["gnc_importe"] == 300
    assert second["combustibles_importe"] == 0


def test_pivot_daily_summary_empty():
    assert pivot_daily_summary([]) == []


def test_date_filter_is_inclusive_of_end_day():
    clause = queries.date_filter("m.fecha")
    assert "CAST(:fecha_inicio AS date)" in clause
    assert "CAST(:fecha_fin AS date) + 1" in clause


def test_subdiario_joins_one_closure_row_per_day_and_register():
    # Several shifts on the same day must not multiply the metric sums
    sql = " ".join(queries.SUBDIARIO.split())
    assert "LEFT JOIN cierres_turno ct" not in sql
    assert "FROM cierres_turno GROUP BY fecha::date, id_estacion, caja_id ) ct" in sql
    assert "SUM(total_efectivo_recaudado) AS total_efectivo_recaudado" in sql


# ===================== Service =====================

def test_run_binds_dates_and_serializes():
    db = _db_returning([{"nombre": "Empresa", "total": Decimal("10.50")}])
    rows = ReportService().by_type(db, "unidades-empresa", date(2024, 1, 1), date(2024, 1, 31))

    assert rows == [{"nombre": "Empresa", "total": 10.5}]
    params = db.execute.call_args.args[1]
    assert params == {"fecha_inicio": date(2024, 1, 1), "fecha_fin": date(2024, 1, 31)}


def test_by_type_rejects_unknown_type():
    with pytest.raises(UnknownReportTypeException) as exc:
        ReportService().by_type(MagicMock(), "otro")
    assert exc.value.extra["tipos_disponibles"] == ["unidades-empresa"]


def test_facturacion_diaria_tipo_binds_type():
    db = _db_returning([])
    ReportService().facturacion_diaria_tipo(db, "gnc", date(2024, 1, 1), date(2024, 1, 2))
    assert db.execute.call_args.args[1]["tipo"] == "gnc"

    with pytest.raises(UnknownReportException):
        ReportService().facturacion_diaria_tipo(db, "otro")


def test_run_named():
    service = ReportService()
    assert "facturacion-diaria-shop" in service.exportable()
    with pytest.raises(UnknownReportException):
        service.run_named(MagicMock(), "inexistente")


# ===================== Routes =====================

def test_subdiario_route(report_client):
    with patch("app.reports.router.report_service") as service:
        service.subdiario.return_value = [{"fecha": "2024-03-01", "litros": 10.0}]
        response = report_client.get(
            "/api/reportes/subdiario", params={"fechaInicio": "2024-03-01", "fechaFin": "2024-03-31"}
        )

    assert response.status_code == 200
    assert response.json() == {"ok": True, "data": [{"fecha": "2024-03-01", "litros": 10.0}]}
    _, fecha_inicio, fecha_fin = service.subdiario.call_args.args
    assert (fecha_inicio, fecha_fin) == (date(2024, 3, 1), date(2024, 3, 31))


def test_report_by_type_route_without_type(report_client):
    response = report_client.get("/api/reportes")
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["tipos_disponibles"] == ["unidades-empresa"]
    assert "ejemplo" in detail


def test_facturacion_diaria_cliente_is_not_a_type(report_client):
    with patch("app.reports.router.report_service") as service:
        service.facturacion_diaria_cliente.return_value = []
        response = report_client.get("/api/reportes/facturacion-diaria-cliente")

    assert response.status_code == 200
    service.facturacion_diaria_tipo.assert_not_called()


def test_facturacion_diaria_unknown_type_route(report_client):
    response = report_client.get("/api/reportes/facturacion-diaria-bebidas")
    assert response.status_code == 404


def test_export_route_csv(report_client):
    with patch("app.reports.router.report_service") as service:
        service.run_named.return_value = [{"tipo": "GNC", "total_importe": 300.0}]
        response = report_client.get("/api/reportes/pcMensual-resumen/export", params={"formato": "csv"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "pcMensual-resumen.csv" in response.headers["content-disposition"]
    assert "GNC" in response.content.decode("utf-8-sig")


def test_export_route_rejects_bad_format(report_client):
    response = report_client.get("/api/reportes/mensual/export", params={"formato": "docx"})
    assert response.status_code == 400


def test_export_route_without_rows(report_client):
    with patch("app.reports.router.report_service") as service:
        service.run_named.return_value = []
        response = report_client.get("/api/reportes/mensual/export")
    assert response.status_code == 404
