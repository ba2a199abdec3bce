# app/caldenon/api_client.py

"""
Async client for the Caldén Oil back-office API

Every call is a Bearer authenticated GET. Most endpoints answer XML, the
tank endpoints answer JSON. Functions here return raw bodies or decoded
JSON; turning them into records is left to the callers.
"""

import json
from typing import Any, Dict, Optional

import httpx

from app.caldenon.exceptions import CaldenonAPIException
from app.core.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

ERROR_PREVIEW_CHARS = 300


def _headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {settings.api_token}"}


def _url(path: str) -> str:
    return f"{settings.api_base_url.rstrip('/')}/{path.lstrip('/')}"


async def fetch_text(path: str, params: Optional[Dict[str, Any]] = None) -> str:
    """
    GET a vendor endpoint and return the body as text.

    Args:
        path: Endpoint path relative to api_base_url, e.g. ``/Cajas/GetAllCajas``
        params: Query string parameters

    Returns:
        Response body

    Raises:
        CaldenonAPIException: On transport errors and non-2xx answers
    """
    logger.debug("Calling vendor API", path=path, params=params)
    try:
        async with httpx.AsyncClient(timeout=settings.vendor_timeout) as client:
            response = await client.get(_url(path), params=params, headers=_headers())
    except httpx.HTTPError as e:
        logger.error("HTTP error calling vendor API", path=path, error=str(e))
        raise CaldenonAPIException(f"{path}: {str(e) or type(e).__name__}") from e

    if response.is_error:
        preview = response.text[:ERROR_PREVIEW_CHARS]
        logger.warning(
            "Vendor API answered with an error status",
            path=path,
            status_code=response.status_code,
            body=preview,
        )
        raise CaldenonAPIException(
            f"{path} answered {response.status_code}: {preview}",
            upstream_status=response.status_code,
        )
    return response.text


async def fetch_json(path: str, params: Optional[Dict[str, Any]] = None) -> Any:
    """GET a JSON endpoint and decode it"""
    body = await fetch_text(path, params)
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        logger.error("Vendor API returned invalid JSON", path=path, error=str(e))
        raise CaldenonAPIException(f"{path} returned invalid JSON") from e


# === Catalog ===

async def fetch_stations() -> str:
    return await fetch_text("/Estaciones/GetAllEstaciones")


async def fetch_registers() -> str:
    return await fetch_text("/Cajas/GetAllCajas")


async def fetch_fuels() -> str:
    return await fetch_text("/Articulos/GetAllCombustibles")


async def fetch_articles() -> str:
    return await fetch_text("/Articulos/GetAllArticulos")


# === Shift closures ===

async def fetch_shift_closures(id_estacion: int, id_caja: int, fecha: str) -> str:
    """
    Closures of one register on one day.

    Args:
        id_estacion: Station id
        id_caja: Register id
        fecha: Day as ``YYYY-MM-DD``
    """
    return await fetch_text(
        "/Cierres/GetUltimosCierresTurno",
        {"idEstacion": id_estacion, "idCaja": id_caja, "fecha": fecha},
    )


async def fetch_closure_detail(id_estacion: int, id_caja: int, fecha_hora_cierre: str) -> str:
    """
    Totals of a single closure, identified by its closing timestamp.
    """
    return await fetch_text(
        "/Cierres/GetInformacionCierreTurno",
        {"idEstacion": id_estacion, "idCaja": id_caja, "fechaHoraCierre": fecha_hora_cierre},
    )


# === Invoicing ===

async def fetch_sales_invoices(desde_fecha: str, hasta_fecha: str) -> str:
    return await fetch_text(
        "/Facturacion/GetFacturasVenta",
        {"desdeFecha": desde_fecha, "hastaFecha": hasta_fecha},
    )


async def fetch_receipts(desde_fecha: str, hasta_fecha: str) -> str:
    return await fetch_text(
        "/CtaCte/GetRecibosEntreFechas",
        {"desdeFecha": desde_fecha, "hastaFecha": hasta_fecha},
    )


# === Tanks ===

async def fetch_tanks() -> Any:
    return await fetch_json("/Tanques/GetAllTanques")


async def fetch_tank_info(id_tanque: int) -> Any:
    return await fetch_json("/Tanques/GetInformacionActualTanque", {"idTanque": id_tanque})
