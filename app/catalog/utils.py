# app/catalog/utils.py

"""
Parsing and classification rules for stations, registers and articles.
"""

import re
from typing import Any, Dict, List, Optional

from app.caldenon.utils import text_or_none, to_bool, to_int
from app.caldenon.xml_parser import extract_records, first_present, parse_payload
from app.utils.logger import get_logger

logger = get_logger(__name__)

STATION_ID_KEYS = ("IdEstacion", "idEstacion", "idestacion", "id", "IDESTACION")
STATION_NAME_KEYS = ("Nombre", "nombre", "NOMBRE")
REGISTER_ID_KEYS = ("idCaja", "IdCaja", "idcaja", "id", "IDCAJA")
REGISTER_NAME_KEYS = ("nombreCaja", "NombreCaja", "nombrecaja", "nombre", "NOMBRECAJA", "descripcion")

# Product categories, in evaluation order
CATEGORY_RULES = (
    ("GOLOSINAS", re.compile(r"GOLOSINA|BEBIDA")),
    ("GNC", re.compile(r"GNC")),
    ("COMBUSTIBLES", re.compile(r"SUPER|INFINIA|DIESEL|ULTRA|PREMIUM|NAFTA")),
    ("LUBRICANTES", re.compile(r"LUBRI")),
    ("ADBLUE", re.compile(r"ADBLUE")),
    ("SPOT", re.compile(r"SPOT|BAR|FOOD")),
)
SHOP_PRODUCT_ID = 8
SHOP_ORIGIN_WORDS = ("SHOP", "GOLOSINAS", "BEBIDAS")


def parse_stations(body: str) -> Dict[int, str]:
    """
    Build the station id to name map from GetAllEstaciones.

    Accepts a JSON array or XML wrapped in ``Estaciones/Estacion`` or bare
    ``Estacion`` elements. Records without a usable id are skipped.
    """
    records = extract_records(parse_payload(body), "Estaciones.Estacion", "Estacion")
    stations: Dict[int, str] = {}
    for record in records:
        station_id = to_int(first_present(record, *STATION_ID_KEYS), 0)
        if not station_id:
            logger.warning("Station without id skipped", record=record)
            continue
        stations[station_id] = text_or_none(first_present(record, *STATION_NAME_KEYS)) or f"Estación {station_id}"
    return stations


def parse_registers(body: str) -> List[Dict[str, Any]]:
    """
    Registers from GetAllCajas as ``{id, nombre, id_estacion}`` dicts.

    ``id_estacion`` is None when the vendor does not say which station a
    register belongs to.
    """
    records = extract_records(parse_payload(body), "Cajas.Caja", "Caja")
    registers = []
    for record in records:
        register_id = to_int(first_present(record, *REGISTER_ID_KEYS), 0)
        if not register_id:
            logger.warning("Register without id skipped", record=record)
            continue
        registers.append({
            "id": register_id,
            "nombre": text_or_none(first_present(record, *REGISTER_NAME_KEYS)) or f"Caja {register_id}",
            "id_estacion": to_int(first_present(record, "IdEstacion", "idEstacion", "idestacion"), 0) or None,
        })
    return registers


def parse_fuels(body: str) -> List[Dict[str, Any]]:
    """Rows for articulos_combustibles from GetAllCombustibles"""
    rows = []
    for article in extract_records(parse_payload(body), "ArrayOfArticulo.Articulo"):
        article_id = text_or_none(article.get("IdArticulo"))
        if not article_id:
            continue
        rows.append({
            "id_articulo": article_id,
            "descripcion": text_or_none(article.get("Descripcion")),
            "es_combustible": to_bool(article.get("EsCombustible")),
            "es_lubricante": to_bool(article.get("EsLubricante")),
            "color": text_or_none(article.get("ColorARGB")),
        })
    return rows


def classify_article(nombre: str, es_combustible: Any, es_lubricante: Any) -> Dict[str, str]:
    """
    First guess of origin and category for a freshly imported article.
    """
    upper = (nombre or "").upper()
    categoria = "OTROS"
    if to_bool(es_combustible):
        categoria = "LIQUIDOS"
    if to_bool(es_lubricante):
        categoria = "LUBRICANTES"
    if "GNC" in upper:
        categoria = "GNC"
    origen = "Shop" if any(word in upper for word in SHOP_ORIGIN_WORDS) else "Playa"
    return {"origen": origen, "categoria": categoria}


def parse_articles(body: str) -> List[Dict[str, Any]]:
    """Rows for dim_producto from GetAllArticulos"""
    rows = []
    for article in extract_records(parse_payload(body), "ArrayOfArticulo.Articulo", "Articulos.Articulo"):
        producto_id = to_int(article.get("IdArticulo"), 0)
        if not producto_id:
            continue
        nombre = text_or_none(article.get("Descripcion")) or "Sin nombre"
        rows.append({
            "producto_id": producto_id,
            "nombre": nombre,
            **classify_article(nombre, article.get("EsCombustible"), article.get("EsLubricante")),
        })
    return rows


def categorize_product(producto_id: Optional[int], nombre: Optional[str]) -> str:
    """
    Reporting category for a product.

    Rules are checked in order and the first match wins. Product 8 is the
    generic shop article and is always SHOP.
    """
    upper = (nombre or "").upper()
    if producto_id == SHOP_PRODUCT_ID or "SHOP" in upper:
        return "SHOP"
    for categoria, pattern in CATEGORY_RULES:
        if pattern.search(upper):
            return categoria
    return "OTROS"
