from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.caldenon.exceptions import CaldenonAPIException, CaldenonHTMLResponseException
from app.invoicing.exceptions import InvoicingValidationException
from app.invoicing.schemas import FullSyncData, SyncCounts
from app.invoicing.services import InvoicingService
from app.invoicing.utils import (
    last_hour_range, map_card_coupons, map_invoice_details, map_invoice_header, map_receipt,
    map_receipt_children, map_receipt_summaries, monthly_periods, parse_invoices, parse_receipts,
    resolve_range, to_vendor_date, yesterday,
)
from app.main import estaciones_app

INVOICES_XML = """<root>
  <FacturasVenta>
    <cabecera>
      <Numero>1234</Numero>
      <TipoComprobante>FA</TipoComprobante>
      <PuntoVenta>5</PuntoVenta>
      <Fecha>15/3/2024 10:20:00</Fecha>
      <RazonSocial>TRANSPORTES SUR SA</RazonSocial>
      <Total>15000.50</Total>
      <IdEstacion>1</IdEstacion>
      <CuponesTarjeta>
        <CuponTarjeta><Tarjeta>VISA</Tarjeta><NumeroCupon>77</NumeroCupon><TotalTarjetas>15000.50</TotalTarjetas></CuponTarjeta>
      </CuponesTarjeta>
    </cabecera>
    <valores><Efectivo>0</Efectivo><Tarjetas>15000.50</Tarjetas></valores>
    <detalle>
      <Detalle><IdCierreTurno>0</IdCierreTurno><DescripcionArticulo>SIN CIERRE</DescripcionArticulo></Detalle>
      <Detalle><IdCierreTurno>501</IdCierreTurno><DescripcionArticulo>NAFTA SUPER</DescripcionArticulo>
        <Cantidad>20.5</Cantidad><TotalRenglon>15000.50</TotalRenglon></Detalle>
    </detalle>
  </FacturasVenta>
  <FacturasVenta>
    <cabecera><Numero>1235</Numero><TipoComprobante>FB</TipoComprobante><PuntoVenta>5</PuntoVenta></cabecera>
  </FacturasVenta>
</root>"""

RECEIPTS_XML = """<root>
  <Recibos>
    <NumeroRecibo>88</NumeroRecibo>
    <PuntoVentaRecibo>2</PuntoVentaRecibo>
    <FechaRecibo>1/3/2024 9:00:00</FechaRecibo>
    <RazonSocial>AGRO NORTE</RazonSocial>
    <TotalEfectivo>500</TotalEfectivo>
    <Tarjetas><Tarjetas><idTarjeta>3</idTarjeta><TotalTarjetas>100</TotalTarjetas></Tarjetas></Tarjetas>
    <Retenciones>
      <Retenciones><TipoRetencion>IIBB</TipoRetencion><TotalRetenciones>10</TotalRetenciones></Retenciones>
      <Retenciones><TipoRetencion>GANANCIAS</TipoRetencion><TotalRetenciones>20</TotalRetenciones></Retenciones>
    </Retenciones>
  </Recibos>
</root>"""


@pytest.fixture
def invoicing_repo(mock_db):
    repo = MagicMock(db=mock_db)
    repo.upsert_invoice = AsyncMock(side_effect=[(10, True), (11, False)])
    repo.upsert_invoice_values = AsyncMock()
    repo.insert_invoice_details = AsyncMock(return_value=1)
    repo.insert_card_coupons = AsyncMock(return_value=1)
    repo.upsert_receipt = AsyncMock(return_value=(20, True))
    repo.insert_receipt_children = AsyncMock(return_value=3)
    return repo


@pytest.fixture
def invoicing_service(invoicing_repo):
    service = InvoicingService(repo=invoicing_repo)
    service.logs = AsyncMock()
    return service


# ===================== Date ranges =====================

def test_resolve_range_defaults():
    assert resolve_range("2024-03-01", "2024-03-05") == ("2024-03-01", "2024-03-05")
    assert resolve_range("2024-03-01", None) == ("2024-03-01", "2024-03-01")
    assert resolve_range(None, None) == (yesterday(), yesterday())


def test_yesterday():
    assert yesterday(date(2024, 3, 1)) == "2024-02-29"


def test_last_hour_range():
    assert last_hour_range(datetime(2024, 3, 1, 0, 30, 15, 999)) == (
        "2024-02-29T23:30:15.000Z",
        "2024-03-01T00:30:15.999Z",
    )


def test_monthly_periods_clips_last_month():
    assert monthly_periods(date(2024, 1, 15), date(2024, 3, 10)) == [
        ("2024-01-01", "2024-01-31"),
        ("2024-02-01", "2024-02-29"),
        ("2024-03-01", "2024-03-10"),
    ]


def test_to_vendor_date_pads_parts():
    assert to_vendor_date("2024-3-5") == "20240305"
    assert to_vendor_date("2024-03-15") == "20240315"


# ===================== Document mapping =====================

def test_parse_and_map_invoice():
    documents = parse_invoices(INVOICES_XML)
    assert len(documents) == 2

    header = map_invoice_header(documents[0]["cabecera"])
    assert header["numero"] == 1234
    assert header["tipo_comprobante"] == "FA"
    assert header["fecha"] == datetime(2024, 3, 15, 10, 20, 0)
    assert header["total"] == 15000.5
    assert header["moneda"] == "PES"

    coupons = map_card_coupons(documents[0]["cabecera"])
    assert coupons[0]["renglon"] == 1
    assert coupons[0]["tarjeta"] == "VISA" and coupons[0]["numero_cupon"] == 77


def test_invoice_details_keep_line_numbers_of_dropped_lines():
    documents = parse_invoices(INVOICES_XML)
    details = map_invoice_details(documents[0]["detalle"])
    assert len(details) == 1
    assert details[0]["renglon"] == 2
    assert details[0]["id_cierre_turno"] == 501
    assert details[0]["descripcion_articulo"] == "NAFTA SUPER"
    assert map_invoice_details(None) == []


def test_parse_and_map_receipt():
    receipts = parse_receipts(RECEIPTS_XML)
    assert len(receipts) == 1

    receipt = map_receipt(receipts[0])
    assert receipt["numero_recibo"] == 88
    assert receipt["fecha_recibo"] == datetime(2024, 3, 1, 9, 0, 0)

    children = map_receipt_children(receipts[0])
    assert children["tarjetas"] == [{"renglon": 1, "id_tarjeta": 3, "total_tarjetas": 100.0}]
    assert [r["renglon"] for r in children["retenciones"]] == [1, 2]
    assert children["cheques"] == [] and children["transferencias"] == []


def test_receipt_summaries_accept_alternate_keys():
    body = '[{"idRecibo": 5, "Fecha": "2024-03-01", "importe": "12.5", "cliente": "ACME"}, {"Id": 6}]'
    assert map_receipt_summaries(body) == [
        {"IdRecibo": 5, "FechaEmision": "2024-03-01", "Monto": 12.5, "IdCliente": None, "NombreCliente": "ACME"},
        {"IdRecibo": 6, "FechaEmision": None, "Monto": 0.0, "IdCliente": None, "NombreCliente": "Sin nombre"},
    ]


# ===================== Sync =====================

async def test_sync_invoices_counts_inserts_and_updates(invoicing_service, invoicing_repo, mock_db):
    with patch("app.invoicing.services.api_client") as api_client:
        api_client.fetch_sales_invoices = AsyncMock(return_value=INVOICES_XML)
        counts = await invoicing_service.sync_invoices("2024-03-15", "2024-03-15")

    assert counts == SyncCounts(registros=2, insertados=1, actualizados=1)
    api_client.fetch_sales_invoices.assert_awaited_once_with("2024-03-15", "2024-03-15")
    invoicing_repo.insert_invoice_details.assert_any_await(10, map_invoice_details(parse_invoices(INVOICES_XML)[0]["detalle"]))
    mock_db.commit.assert_awaited_once()
    status, registros, message = invoicing_service.logs.add.await_args.args
    assert status == "EXITO - FACTURAS"
    assert registros == 2
    assert message.startswith("Insertados: 1, Actualizados: 1")


async def test_sync_treats_vendor_error_status_as_empty(invoicing_service, invoicing_repo):
    with patch("app.invoicing.services.api_client") as api_client:
        api_client.fetch_receipts = AsyncMock(side_effect=CaldenonAPIException("500", upstream_status=500))
        counts = await invoicing_service.sync_receipts("2024-03-01", "2024-03-01")

    assert counts == SyncCounts()
    invoicing_repo.upsert_receipt.assert_not_awaited()


async def test_sync_logs_and_reraises_storage_errors(invoicing_service, invoicing_repo, mock_db):
    invoicing_repo.upsert_receipt.side_effect = RuntimeError("constraint violated")
    with patch("app.invoicing.services.api_client") as api_client:
        api_client.fetch_receipts = AsyncMock(return_value=RECEIPTS_XML)
        with pytest.raises(RuntimeError):
            await invoicing_service.sync_receipts("2024-03-01", "2024-03-01")

    mock_db.rollback.assert_awaited_once()
    status, registros, message = invoicing_service.logs.add.await_args.args
    assert status == "ERROR - RECIBOS"
    assert message == "constraint violated"


async def test_sync_unreachable_vendor_propagates(invoicing_service, no_pauses):
    with patch("app.invoicing.services.api_client") as api_client:
        api_client.fetch_sales_invoices = AsyncMock(side_effect=CaldenonAPIException("connection refused"))
        with pytest.raises(CaldenonAPIException):
            await invoicing_service.sync_invoices("2024-03-01", "2024-03-01")
    assert api_client.fetch_sales_invoices.await_count == 2


async def test_sync_retries_dropped_connection(invoicing_service, invoicing_repo, no_pauses):
    with patch("app.invoicing.services.api_client") as api_client:
        api_client.fetch_receipts = AsyncMock(side_effect=[CaldenonAPIException("connection reset"), RECEIPTS_XML])
        counts = await invoicing_service.sync_receipts("2024-03-01", "2024-03-01")

    assert counts == SyncCounts(registros=1, insertados=1)
    invoicing_repo.upsert_receipt.assert_awaited_once()
    assert api_client.fetch_receipts.await_count == 2


async def test_sync_does_not_retry_vendor_error_status(invoicing_service, no_pauses):
    with patch("app.invoicing.services.api_client") as api_client:
        api_client.fetch_sales_invoices = AsyncMock(side_effect=CaldenonAPIException("500", upstream_status=500))
        counts = await invoicing_service.sync_invoices("2024-03-01", "2024-03-01")

    assert counts == SyncCounts()
    api_client.fetch_sales_invoices.assert_awaited_once()


async def test_sync_history_continues_after_failed_month(invoicing_service, no_pauses, monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "history_start_date", "2024-01-01")
    invoicing_service.sync_all = AsyncMock(side_effect=[
        FullSyncData(facturas=SyncCounts(registros=1), recibos=SyncCounts()),
        RuntimeError("vendor down"),
        FullSyncData(facturas=SyncCounts(), recibos=SyncCounts(registros=2)),
    ])

    result = await invoicing_service.sync_history(today=date(2024, 3, 5))

    assert result.periodos == 3
    assert result.errores == 1
    assert result.data[1].error == "vendor down"
    assert result.data[2].periodo == "2024-03-01 - 2024-03-05"


async def test_summaries_require_both_dates(invoicing_service):
    with pytest.raises(InvoicingValidationException):
        await invoicing_service.get_invoice_summaries("2024-03-01", None)


async def test_summaries_reject_html(invoicing_service):
    with patch("app.invoicing.services.api_client") as api_client:
        api_client.fetch_sales_invoices = AsyncMock(return_value="<!DOCTYPE html><html></html>")
        with pytest.raises(CaldenonHTMLResponseException):
            await invoicing_service.get_invoice_summaries("2024-03-01", "2024-03-02")
    api_client.fetch_sales_invoices.assert_awaited_once_with("20240301", "20240302")


# ===================== Routes =====================

def test_sync_route_defaults_to_yesterday(client, invoicing_service):
    invoicing_service.sync_invoices = AsyncMock(return_value=SyncCounts(registros=3, insertados=3))
    estaciones_app.dependency_overrides[InvoicingService] = lambda: invoicing_service

    response = client.get("/api/facturas/sync")

    assert response.status_code == 200
    assert response.json()["data"] == {"registros": 3, "insertados": 3, "actualizados": 0}
    invoicing_service.sync_invoices.assert_awaited_once_with(yesterday(), yesterday())


def test_manual_sync_route_uses_given_dates(client, invoicing_service):
    invoicing_service.sync_all = AsyncMock(return_value=FullSyncData(facturas=SyncCounts(), recibos=SyncCounts()))
    estaciones_app.dependency_overrides[InvoicingService] = lambda: invoicing_service

    response = client.post("/api/test-sync", params={"fechaInicio": "2024-01-05", "fechaFin": "2024-01-06"})

    assert response.status_code == 200
    invoicing_service.sync_all.assert_awaited_once_with("2024-01-05", "2024-01-06")


def test_manual_sync_route_fills_missing_bound_with_yesterday(client, invoicing_service):
    invoicing_service.sync_all = AsyncMock(return_value=FullSyncData(facturas=SyncCounts(), recibos=SyncCounts()))
    estaciones_app.dependency_overrides[InvoicingService] = lambda: invoicing_service

    response = client.post("/api/test-sync", params={"fechaInicio": "2024-01-05"})

    assert response.status_code == 200
    invoicing_service.sync_all.assert_awaited_once_with("2024-01-05", yesterday())


def test_full_sync_route_maps_vendor_errors(client, invoicing_service):
    invoicing_service.sync_all = AsyncMock(side_effect=CaldenonAPIException("connection refused"))
    estaciones_app.dependency_overrides[InvoicingService] = lambda: invoicing_service

    response = client.post("/api/sync-facturacion", params={"fechaInicio": "2024-03-01"})

    assert response.status_code == 503


def test_invoice_summaries_route_requires_dates(client, invoicing_service):
    estaciones_app.dependency_overrides[InvoicingService] = lambda: invoicing_service
    response = client.get("/api/Facturacion/GetFacturasVenta", params={"desdeFecha": "2024-03-01"})
    assert response.status_code == 400
