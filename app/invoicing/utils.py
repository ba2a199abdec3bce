# app/invoicing/utils.py

"""
Mapping of vendor invoice and receipt documents to table rows.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from app.caldenon.utils import (
    parse_api_datetime, safe_int, safe_number, text_or_none, to_bool, to_compact_date, to_int,
)
from app.caldenon.xml_parser import as_list, extract_records, first_present, parse_payload

INVOICE_PATHS = ("root.FacturasVenta", "FacturasVenta", "ArrayOfFacturasVenta.FacturasVenta")
RECEIPT_PATHS = ("root.Recibos", "Recibos", "ArrayOfRecibos.Recibos")

INVOICE_SUMMARY_PATHS = ("ArrayOfFacturaVenta.FacturaVenta",)
RECEIPT_SUMMARY_PATHS = (
    "ArrayOfRecibo.Recibo",
    "ArrayOfReciboCtaCte.ReciboCtaCte",
    "Recibos.Recibo",
    "Recibo",
)


def _optional_int(value: Any) -> Optional[int]:
    """Like int() but None for missing values, zero stays zero"""
    if value is None or value == "":
        return None
    return to_int(value, 0)


def _optional_datetime(value: Any) -> Optional[datetime]:
    return parse_api_datetime(value) if text_or_none(value) else None


def _nested(record: Dict[str, Any], container: str, item: str) -> List[Dict[str, Any]]:
    """Items of a repeated child, e.g. ``Tarjetas/Tarjetas``"""
    holder = record.get(container) if isinstance(record, dict) else None
    if not isinstance(holder, dict):
        return []
    return [entry for entry in as_list(holder.get(item)) if isinstance(entry, dict)]


# === Date ranges ===

def yesterday(today: Optional[date] = None) -> str:
    return ((today or date.today()) - timedelta(days=1)).isoformat()


def resolve_range(fecha_inicio: Optional[str], fecha_fin: Optional[str]) -> Tuple[str, str]:
    """Missing start means yesterday, missing end means the start"""
    start = fecha_inicio or yesterday()
    return start, fecha_fin or start


def last_hour_range(now: Optional[datetime] = None) -> Tuple[str, str]:
    """ISO timestamps covering the hour before ``now``"""
    end = (now or datetime.now(timezone.utc).replace(tzinfo=None)).replace(microsecond=0)
    start = end - timedelta(hours=1)
    return f"{start.isoformat()}.000Z", f"{end.isoformat()}.999Z"


def monthly_periods(start: date, end: date) -> List[Tuple[str, str]]:
    """
    Calendar months from start's month up to end, the last one clipped to end.
    """
    periods = []
    month_start = start.replace(day=1)
    while month_start <= end:
        month_end = month_start + relativedelta(months=1, days=-1)
        periods.append((month_start.isoformat(), min(month_end, end).isoformat()))
        month_start = month_start + relativedelta(months=1)
    return periods


# === Invoices ===

def parse_invoices(body: str) -> List[Dict[str, Any]]:
    return [
        record for record in extract_records(parse_payload(body), *INVOICE_PATHS)
        if isinstance(record, dict)
    ]


def map_invoice_header(cab: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "numero": to_int(cab.get("Numero"), 0),
        "tipo_comprobante": text_or_none(cab.get("TipoComprobante")) or "",
        "punto_venta": to_int(cab.get("PuntoVenta"), 0),
        "fecha": parse_api_datetime(cab.get("Fecha")),
        "codigo": text_or_none(cab.get("Codigo")),
        "razon_social": text_or_none(cab.get("RazonSocial")),
        "numero_documento": text_or_none(cab.get("NumeroDocumento")),
        "domicilio": text_or_none(cab.get("Domicilio")),
        "localidad": text_or_none(cab.get("Localidad")),
        "id_localidad": text_or_none(cab.get("IdLocalidad")),
        "codigo_postal": safe_int(cab.get("CodigoPostal")),
        "patente": text_or_none(cab.get("Patente")),
        "moneda": text_or_none(cab.get("Moneda")) or "PES",
        "tipo_pago": text_or_none(cab.get("TipoPago")),
        "neto_gravado": safe_number(cab.get("NetoGravado")),
        "neto_no_gravado": safe_number(cab.get("NetoNoGravado")),
        "iva": safe_number(cab.get("IVA")),
        "impuesto_interno": safe_number(cab.get("ImpuestoInterno")),
        "tasas": safe_number(cab.get("Tasas")),
        "tasa_vial": safe_number(cab.get("TasaVial")),
        "jurisdiccion": _optional_int(cab.get("Jurisdiccion")),
        "percepcion_iibb": safe_number(cab.get("PercepcionIIBB")),
        "percepcion_iva": safe_number(cab.get("PercepcionIVA")),
        "otras_percepciones": safe_number(cab.get("OtrasPercepciones")),
        "total": safe_number(cab.get("Total")),
        "id_cliente_seleccionado": text_or_none(cab.get("IdClienteSeleccionado")),
        "id_estacion": safe_int(cab.get("IdEstacion")),
        "chofer": text_or_none(cab.get("Chofer")),
        "id_movimiento_fac": safe_int(cab.get("idMovimientoFac")),
        "id_movimiento_cancelado": _optional_int(cab.get("IdMovimientoCancelado")),
    }


def map_invoice_values(val: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    val = val if isinstance(val, dict) else {}
    return {
        "efectivo": safe_number(val.get("Efectivo")),
        "cheques_propios": safe_number(val.get("ChequesPropios")),
        "cheques_terceros": safe_number(val.get("ChequesTerceros")),
        "tarjetas": safe_number(val.get("Tarjetas")),
        "transferencias": safe_number(val.get("Transferencias")),
        "debito_automatico": safe_number(val.get("DebitoAutomatico")),
    }


def map_invoice_details(det: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Detail lines tied to a shift closure. Lines without a closure are dropped
    but still consume their line number.
    """
    lines = [line for line in as_list(det.get("Detalle") if isinstance(det, dict) else None) if isinstance(line, dict)]
    rows = []
    for renglon, line in enumerate(lines, start=1):
        id_cierre_turno = to_int(line.get("IdCierreTurno"), 0)
        if id_cierre_turno <= 0:
            continue
        rows.append({
            "renglon": renglon,
            "cantidad": safe_number(line.get("Cantidad"), 4),
            "codigo_articulo": safe_number(line.get("CodigoArticulo"), 4),
            "descripcion_articulo": text_or_none(line.get("DescripcionArticulo")),
            "id_grupo_articulo": safe_int(line.get("IdGrupoArticulo")),
            "descripcion_grupo": text_or_none(line.get("DescripcionGrupo")),
            "precio": safe_number(line.get("Precio"), 4),
            "iva_unitario": safe_number(line.get("IvaUnitario"), 4),
            "impuesto_interno_unitario": safe_number(line.get("ImpuestoInternoUnitario"), 4),
            "tasas_unitario": safe_number(line.get("TasasUnitario"), 4),
            "tasa_vial_unitario": safe_number(line.get("TasaVialUnitario"), 4),
            "costo_unitario": safe_number(line.get("CostoUnitario"), 4),
            "id_articulo": safe_int(line.get("IdArticulo")),
            "id_caja": safe_int(line.get("IdCaja")),
            "identificador_caja": text_or_none(line.get("IdentificadorCaja")),
            "id_cierre_turno": id_cierre_turno,
            "total_neto": safe_number(line.get("TotalNeto")),
            "neto_unitario": safe_number(line.get("NetoUnitario"), 4),
            "total_iva": safe_number(line.get("TotalIva")),
            "total_impuesto_interno": safe_number(line.get("TotalImpuestoInterno")),
            "total_tasas": safe_number(line.get("TotalTasas")),
            "total_tasa_vial": safe_number(line.get("TotalTasaVial")),
            "alicuota_iva": text_or_none(line.get("AlicuotaIva")),
            "total_renglon": safe_number(line.get("TotalRenglon")),
        })
    return rows


def map_card_coupons(cab: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [
        {
            "renglon": renglon,
            "id_tarjeta": safe_int(coupon.get("IdTarjeta")),
            "tarjeta": text_or_none(coupon.get("Tarjeta")),
            "caja_tarjeta": text_or_none(coupon.get("CajaTarjeta")),
            "numero_cupon": safe_int(coupon.get("NumeroCupon")),
            "fecha_cupon": _optional_datetime(coupon.get("FechaCupon")),
            "total_tarjetas": safe_number(coupon.get("TotalTarjetas")),
            "numero_lote": text_or_none(coupon.get("NumeroLote")),
            "numero_tarjeta": text_or_none(coupon.get("NumeroTarjeta")),
            "codigo_aprobacion": text_or_none(coupon.get("CodigoAprobacion")),
        }
        for renglon, coupon in enumerate(_nested(cab, "CuponesTarjeta", "CuponTarjeta"), start=1)
    ]


# === Receipts ===

def parse_receipts(body: str) -> List[Dict[str, Any]]:
    return [
        record for record in extract_records(parse_payload(body), *RECEIPT_PATHS)
        if isinstance(record, dict)
    ]


def map_receipt(recibo: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "numero_recibo": to_int(recibo.get("NumeroRecibo"), 0),
        "punto_venta_recibo": to_int(recibo.get("PuntoVentaRecibo"), 0),
        "fecha_recibo": parse_api_datetime(recibo.get("FechaRecibo")),
        "razon_social": text_or_none(recibo.get("RazonSocial")),
        "numero_documento": text_or_none(recibo.get("NumeroDocumento")),
        "total_efectivo": safe_number(recibo.get("TotalEfectivo")),
        "total_sin_imputar": safe_number(recibo.get("TotalSinImputar")),
    }


def map_receipt_children(recibo: Dict[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    """Child rows keyed by child kind, each numbered from 1"""
    return {
        "comprobantes": [
            {
                "renglon": renglon,
                "fecha_comprobante": _optional_datetime(item.get("FechaComprobante")),
                "tipo_comprobante": text_or_none(item.get("TipoComprobante")),
                "punto_venta_comprobante": to_int(item.get("PuntoVentaComprobante"), 0),
                "numero_comprobante": to_int(item.get("NumeroComprobante"), 0),
                "total_comprobante": safe_number(item.get("TotalComprobante")),
                "total_imputado": safe_number(item.get("TotalImputado")),
            }
            for renglon, item in enumerate(_nested(recibo, "ComprobantesImputados", "ComprobantesImputados"), start=1)
        ],
        "cheques": [
            {
                "renglon": renglon,
                "fecha_cheque": _optional_datetime(item.get("FechaCheque")),
                "banco_cheques": text_or_none(item.get("BancoCheques")),
                "caja_cheque": text_or_none(item.get("CajaCheque")),
                "numero_cheque": safe_int(item.get("NumeroCheque")),
                "emisor": text_or_none(item.get("Emisor")),
                "cuit_emisor": text_or_none(item.get("CuitEmisor")),
                "total_cheques": safe_number(item.get("TotalCheques")),
                "fecha_entrada": _optional_datetime(item.get("FechaEntrada")),
                "fecha_salida": _optional_datetime(item.get("FechaSalida")),
                "rechazado": to_bool(item.get("Rechazado")),
            }
            for renglon, item in enumerate(_nested(recibo, "ChequesTerceros", "ChequesTerceros"), start=1)
        ],
        "tarjetas": [
            {
                "renglon": renglon,
                "id_tarjeta": safe_int(first_present(item, "idTarjeta", "IdTarjeta")),
                "total_tarjetas": safe_number(item.get("TotalTarjetas")),
            }
            for renglon, item in enumerate(_nested(recibo, "Tarjetas", "Tarjetas"), start=1)
        ],
        "transferencias": [
            {
                "renglon": renglon,
                "banco_transferencias": text_or_none(item.get("BancoTransferencias")),
                "numero_cuenta": text_or_none(item.get("NumeroCuenta")),
                "total_transferencias": safe_number(item.get("TotalTransferencias")),
            }
            for renglon, item in enumerate(_nested(recibo, "Transferencias", "Transferencias"), start=1)
        ],
        "retenciones": [
            {
                "renglon": renglon,
                "tipo_retencion": text_or_none(item.get("TipoRetencion")),
                "total_retenciones": safe_number(item.get("TotalRetenciones")),
            }
            for renglon, item in enumerate(_nested(recibo, "Retenciones", "Retenciones"), start=1)
        ],
    }


# === Passthrough summaries ===

def to_vendor_date(value: str) -> str:
    """``YYYY-MM-DD`` with or without padding becomes ``YYYYMMDD``"""
    parts = (value or "").split("-")
    if len(parts) == 3 and all(parts):
        year, month, day = parts
        return f"{year}{month.zfill(2)}{day.zfill(2)}"
    return to_compact_date(value)


def map_invoice_summaries(body: str) -> List[Dict[str, Any]]:
    records = extract_records(parse_payload(body), *INVOICE_SUMMARY_PATHS)
    return [
        {
            "IdFactura": safe_int(record.get("IdFactura")),
            "FechaEmision": text_or_none(record.get("FechaEmision")),
            "MontoTotal": safe_number(record.get("MontoTotal")),
            "NombreCliente": text_or_none(record.get("NombreCliente")) or "Sin nombre",
        }
        for record in records if isinstance(record, dict)
    ]


def map_receipt_summaries(body: str) -> List[Dict[str, Any]]:
    records = extract_records(parse_payload(body), *RECEIPT_SUMMARY_PATHS)
    return [
        {
            "IdRecibo": safe_int(first_present(record, "IdRecibo", "idRecibo", "Id")),
            "FechaEmision": text_or_none(first_present(record, "FechaEmision", "Fecha", "fecha")),
            "Monto": safe_number(first_present(record, "Monto", "monto", "Importe", "importe")),
            "IdCliente": safe_int(first_present(record, "IdCliente", "idCliente")),
            "NombreCliente": text_or_none(
                first_present(record, "NombreCliente", "nombreCliente", "Cliente", "cliente")
            ) or "Sin nombre",
        }
        for record in records if isinstance(record, dict)
    ]
