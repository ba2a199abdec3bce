# app/caldenon/exceptions.py

"""
Exceptions raised while talking to the Caldén Oil API.
"""

from typing import Optional

from fastapi import HTTPException, status


class CaldenonBaseException(Exception):
    """Base exception for the vendor client"""
    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class CaldenonAPIException(CaldenonBaseException):
    """Raised when the vendor API cannot be reached or answers with an error status"""
    def __init__(self, message: str, upstream_status: Optional[int] = None):
        self.upstream_status = upstream_status
        super().__init__(
            message=f"Caldén API error: {message}",
            status_code=upstream_status or status.HTTP_503_SERVICE_UNAVAILABLE
        )


class CaldenonParseException(CaldenonBaseException):
    """Raised when a vendor payload is neither valid JSON nor valid XML"""
    def __init__(self, message: str):
        super().__init__(
            message=f"Invalid vendor payload: {message}",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


class CaldenonHTMLResponseException(CaldenonBaseException):
    """Raised when the vendor answers with an HTML error page instead of data"""
    def __init__(self, endpoint: str):
        super().__init__(
            message=f"The vendor API returned an HTML page for {endpoint}",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


def convert_to_http_exception(exc: CaldenonBaseException) -> HTTPException:
    """Convert a vendor exception to an HTTPException"""
    return HTTPException(status_code=exc.status_code, detail=exc.message)


def is_unreachable(exc: BaseException) -> bool:
    """True for transport failures, an error status from the vendor is an answer"""
    return isinstance(exc, CaldenonAPIException) and exc.upstream_status is None
