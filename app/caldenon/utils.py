# app/caldenon/utils.py

import math
from datetime import date, datetime
from typing import Any, Optional

from app.utils.logger import get_logger

logger = get_logger(__name__)


def safe_number(value: Any, decimals: int = 2) -> float:
    """
    Convert a vendor amount to a rounded float.

    Args:
        value: Number or numeric string, possibly empty
        decimals: Decimal places to keep

    Returns:
        float, 0 when the value is empty or not a number
    """
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return round(number, decimals)


def to_int(value: Any, default: int = 0) -> int:
    """Convert to int, falling back to ``default``"""
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def safe_int(value: Any) -> Optional[int]:
    """Convert to int, None for empty, zero or invalid values"""
    return to_int(value, 0) or None


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in ("true", "1", "si", "yes")


def text_or_none(value: Any) -> Optional[str]:
    """Strings stay, empty values and dicts left over from XML become None"""
    if value is None or isinstance(value, (dict, list)):
        return None
    value = str(value).strip()
    return value or None


def parse_api_datetime(value: Any) -> datetime:
    """
    Parse a vendor timestamp.

    Values containing ``T`` are read as ISO 8601. Anything else is read as
    ``DD/MM/YYYY HH:mm:ss`` where every part may come without zero padding and
    the time may be missing. The wall clock is kept as sent, no timezone
    conversion is applied.

    Args:
        value: Timestamp string

    Returns:
        datetime, or the current time when the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value
    if not value or not isinstance(value, str):
        return datetime.now()

    raw = value.strip()
    try:
        if "T" in raw:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
            return parsed.replace(tzinfo=None) if parsed.tzinfo else parsed

        parts = raw.split(" ")
        date_part = parts[0]
        time_part = parts[1] if len(parts) > 1 else "00:00:00"

        date_bits = date_part.split("/")
        day, month, year = (
            date_bits[i] if i < len(date_bits) and date_bits[i] else fallback
            for i, fallback in enumerate(("01", "01", "1970"))
        )
        time_bits = (time_part.split(":") + ["0", "0", "0"])[:3]
        hours, minutes, seconds = (int(float(bit or 0)) for bit in time_bits)

        return datetime(int(year), int(month), int(day), hours, minutes, seconds)
    except (ValueError, TypeError) as e:
        logger.warning("Unparseable vendor timestamp", value=value, error=str(e))
        return datetime.now()


def to_compact_date(value: str) -> str:
    """``YYYY-MM-DD`` becomes ``YYYYMMDD``"""
    return (value or "").replace("-", "")


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse ``YYYY-MM-DD``, None for empty input. Raises ValueError on garbage."""
    if not value:
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])
