# app/positions/maxtracker_client.py

"""
Async client for the MaxTracker GPS API.

Failures never propagate: an unreachable or failing tracker yields no
positions and a logged error.
"""

from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_LIMIT = 100


def _extract_positions(payload: Any) -> List[Dict[str, Any]]:
    """The API answers either a bare array or ``{"ok": true, "data": [...]}``"""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and payload.get("ok") and isinstance(payload.get("data"), list):
        return payload["data"]
    return []


async def fetch_positions(plate: Optional[str] = None, limit: int = DEFAULT_LIMIT) -> List[Dict[str, Any]]:
    """
    Latest positions, optionally for a single plate.

    Args:
        plate: Vehicle plate, every vehicle when omitted
        limit: Maximum number of positions

    Returns:
        List of raw position dicts, empty on any error
    """
    params: Dict[str, Any] = {"limit": limit}
    if plate:
        params["plate"] = plate

    url = f"{(settings.maxtracker_api_base_url or '').rstrip('/')}/positions"
    headers = {
        "Authorization": f"Bearer {settings.maxtracker_api_token}",
        "Content-Type": "application/json",
    }

    try:
        async with httpx.AsyncClient(timeout=settings.vendor_timeout) as client:
            response = await client.get(url, params=params, headers=headers)
        if response.is_error:
            logger.error("MaxTracker answered with an error status", status_code=response.status_code)
            return []
        positions = _extract_positions(response.json())
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Error fetching positions", plate=plate, error=str(e))
        return []

    if not positions:
        logger.warning("MaxTracker returned no positions", plate=plate)
    else:
        logger.debug("Positions fetched", total=len(positions), plate=plate)
    return positions
