# app/closures/utils.py

from datetime import date
from typing import Any, Dict, Iterator, List, Tuple

from dateutil.rrule import DAILY, rrule

from app.caldenon.utils import parse_api_datetime, safe_int, safe_number, text_or_none, to_int
from app.caldenon.xml_parser import extract_records, parse_payload

# Department ids used in datos_metricas
DEPARTMENTS = {1: "PLAYA", 2: "SHOP", 3: "LUBRICANTES"}

# (register name fragment, department id, product id), first match wins
REGISTER_RULES = (
    ("PLAYA", 1, 4),
    ("SHOP", 2, 8),
    ("LUBRIC", 3, 7),
)
DEFAULT_REGISTER_CLASS = (1, 1)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every calendar day from start to end, both included"""
    if start > end:
        return
    for day in rrule(DAILY, dtstart=start, until=end):
        yield day.date()


def classify_register(nombre_caja: str) -> Tuple[int, int]:
    """
    Department and product a register's sales are booked under.

    Returns:
        (depto_id, producto_id)
    """
    upper = (nombre_caja or "").upper()
    for fragment, depto_id, producto_id in REGISTER_RULES:
        if fragment in upper:
            return depto_id, producto_id
    return DEFAULT_REGISTER_CLASS


def parse_closures(body: str) -> List[Dict[str, Any]]:
    """Closures from GetUltimosCierresTurno, one item or many"""
    return [
        record for record in extract_records(parse_payload(body), "ArrayOfCierreTurno.CierreTurno")
        if isinstance(record, dict)
    ]


def parse_closure_detail(body: str) -> Dict[str, float]:
    """Totals from GetInformacionCierreTurno, zeros when missing"""
    parsed = parse_payload(body)
    info = parsed.get("InformacionCierreTurno") if isinstance(parsed, dict) else None
    if not isinstance(info, dict):
        info = {}
    return {
        "importe": safe_number(info.get("ImporteVentasTotalesContado")),
        "litros": safe_number(info.get("TotalLitrosDespachados"), 3),
        "efectivo": safe_number(info.get("TotalEfectivoRecaudado")),
    }


def build_closure_rows(
    closure: Dict[str, Any],
    detail: Dict[str, float],
    id_estacion: int,
    nombre_estacion: str,
    caja_id: int,
    nombre_caja: str,
    empresa_id: int,
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Rows for cierres_turno and datos_metricas out of one vendor closure.

    The register name reported with the closure wins over the catalog name.
    The metric amount falls back to collected cash when the sales amount
    is zero.
    """
    fecha = parse_api_datetime(closure.get("Fecha"))
    caja = text_or_none(closure.get("Caja")) or nombre_caja
    id_cierre_turno = to_int(closure.get("IdCierreTurno"), 0)
    depto_id, producto_id = classify_register(caja)

    closure_row = {
        "fecha": fecha,
        "id_estacion": id_estacion,
        "nombre_estacion": nombre_estacion,
        "caja_id": caja_id,
        "nombre_caja": caja,
        "id_cierre_turno": id_cierre_turno,
        "numero_turno": safe_int(closure.get("NumeroTurno")),
        "id_cierre_caja_tesoreria": safe_int(closure.get("IdCierreCajaTesoreria")),
        "importe_ventas_totales_contado": detail["importe"],
        "total_litros_despachados": detail["litros"],
        "total_efectivo_recaudado": detail["efectivo"],
    }
    metric_row = {
        "fecha": fecha,
        "empresa_id": empresa_id,
        "depto_id": depto_id,
        "producto_id": producto_id,
        "estacion_id": id_estacion,
        "nombre_estacion": nombre_estacion,
        "caja_id": caja_id,
        "nombre_caja": caja,
        "id_cierre_turno": id_cierre_turno,
        "cantidad": detail["litros"],
        "importe": detail["importe"] or detail["efectivo"],
    }
    return closure_row, metric_row
