# app/positions/utils.py

from datetime import datetime
from typing import Any, Dict

from dateutil import parser as date_parser

from app.caldenon.utils import safe_number, text_or_none, to_int
from app.utils.logger import get_logger

logger = get_logger(__name__)


def parse_position_date(value: Any) -> datetime:
    """``YYYY-MM-DD HH:mm:ss`` as sent by the tracker, now when unparseable"""
    if isinstance(value, datetime):
        return value
    try:
        parsed = date_parser.parse(str(value))
    except (ValueError, OverflowError, TypeError):
        logger.warning("Invalid position date", value=value)
        return datetime.now()
    return parsed.replace(tzinfo=None) if parsed.tzinfo else parsed


def map_position(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Row for the positions table.

    Raises:
        ValueError: If the fix has no plate or no coordinates
    """
    plate = text_or_none(raw.get("plate"))
    if not plate:
        raise ValueError("position without plate")
    if raw.get("lat") in (None, "") or raw.get("lng") in (None, ""):
        raise ValueError(f"position of {plate} without coordinates")

    return {
        "lat": safe_number(raw.get("lat"), 8),
        "lng": safe_number(raw.get("lng"), 8),
        "date": parse_position_date(raw.get("date")) if raw.get("date") else datetime.now(),
        "speed": safe_number(raw.get("speed")),
        "direction": safe_number(raw.get("direction")),
        "event_code": text_or_none(raw.get("event_code")),
        "event": text_or_none(raw.get("event")),
        "plate": plate,
        "imei": text_or_none(raw.get("imei")),
        "odometer": to_int(raw.get("odometer"), 0),
        "hourmeter": to_int(raw.get("hourmeter"), 0),
        "driver_key": text_or_none(raw.get("driver_key")),
        "driver_name": text_or_none(raw.get("driver_name")),
        "driver_document": text_or_none(raw.get("driver_document")),
    }
