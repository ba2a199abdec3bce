# app/tanks/utils.py

from datetime import datetime
from typing import Any, Dict, List

from app.caldenon.utils import parse_api_datetime, safe_number

TRACKED_PRODUCTS = (
    "NAFTA SUPER",
    "QUANTIUM NAFTA",
    "DIESEL X10",
    "QUANTIUM DIESEL",
)


def tank_product(tank: Dict[str, Any]) -> str:
    articulo = tank.get("articulo") or {}
    return (articulo.get("descripcion") or "").strip()


def filter_tracked_tanks(tanks: Any) -> List[Dict[str, Any]]:
    """Keep the tanks that hold one of the tracked fuels"""
    if not isinstance(tanks, list):
        return []
    return [
        tank for tank in tanks
        if isinstance(tank, dict) and tank_product(tank).upper() in TRACKED_PRODUCTS
    ]


def build_tank_reading(tank: Dict[str, Any], info: Dict[str, Any]) -> Dict[str, Any]:
    """
    Combine a tank and its current information into a tanques_estado_actual row.

    Capacity is the stored volume plus the empty volume. The measurement time
    falls back to now when the vendor does not send it.
    """
    info = info or {}
    litros = safe_number(info.get("litros"))
    vacio = safe_number(info.get("litrosVacio"))
    temperatura = info.get("temperatura")
    medicion = info.get("fechaHoraMedicion")

    return {
        "id_tanque": int(tank["idTanque"]),
        "producto": tank_product(tank),
        "capacidad": round(litros + vacio, 2),
        "nivel_actual": litros,
        "temperatura": safe_number(temperatura) if temperatura is not None else None,
        "fecha_actualizacion": parse_api_datetime(medicion) if medicion else datetime.now(),
    }
