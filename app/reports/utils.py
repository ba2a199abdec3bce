# app/reports/utils.py

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from app.utils.logger import get_logger

logger = get_logger(__name__)

INVOICE_TYPES = ("gnc", "liquidos", "otros", "shop")


def month_to_date(
    fecha_inicio: Optional[date], fecha_fin: Optional[date], today: Optional[date] = None
) -> Tuple[date, date]:
    """Fill a missing bound with the current month, first day to today"""
    today = today or date.today()
    if not fecha_inicio or not fecha_fin:
        return today.replace(day=1), today
    return fecha_inicio, fecha_fin


def serialize_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Decimals become floats so the rows are plain JSON numbers"""
    return {
        key: float(value) if isinstance(value, Decimal) else value
        for key, value in row.items()
    }


def rows_to_dicts(rows: Iterable[Any]) -> List[Dict[str, Any]]:
    return [serialize_row(dict(row)) for row in rows]


def add_average_price(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    for row in rows:
        cantidad = float(row.get("total_cantidad") or 0)
        importe = float(row.get("total_importe") or 0)
        row["total_cantidad"] = cantidad
        row["total_importe"] = importe
        row["promedio_precio"] = importe / cantidad if cantidad > 0 else 0
    return rows


def pivot_daily_summary(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Pivot subdiario rows into one row per day.

    Each category gets a ``<categoria>_litros`` and a ``<categoria>_importe``
    column, missing combinations are zero. ``total_importe`` sums every
    category of the day.
    """
    if not rows:
        return []

    df = pd.DataFrame(rows)
    df["categoria"] = df["categoria"].fillna("OTROS").astype(str)
    df[["litros", "importe"]] = df[["litros", "importe"]].astype(float)

    pivot = df.pivot_table(
        index="fecha",
        columns="categoria",
        values=["litros", "importe"],
        aggfunc="sum",
        fill_value=0,
    )
    pivot.columns = [
        f"{categoria.strip().lower().replace(' ', '_')}_{valor}"
        for valor, categoria in pivot.columns
    ]
    pivot = pivot.reindex(sorted(pivot.columns), axis=1)
    pivot["total_importe"] = df.groupby("fecha")["importe"].sum()
    pivot = pivot.reset_index().sort_values("fecha")

    summary = []
    for record in pivot.to_dict(orient="records"):
        fecha = record["fecha"]
        if isinstance(fecha, (pd.Timestamp, datetime)):
            record["fecha"] = fecha.date()
        summary.append({
            key: round(float(value), 2) if key != "fecha" else value
            for key, value in record.items()
        })
    return summary
