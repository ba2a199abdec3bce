# app/reports/schemas.py

from typing import Any, Dict, List

from pydantic import BaseModel


class ReportResponse(BaseModel):
    ok: bool = True
    data: List[Dict[str, Any]]
