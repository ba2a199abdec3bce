# app/positions/exceptions.py

from fastapi import HTTPException, status


class PositionBaseException(Exception):
    """Base exception for vehicle positions"""
    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class PositionNotFoundException(PositionBaseException):
    """Raised when a plate has no known position"""
    def __init__(self, plate: str):
        super().__init__(
            message=f"No position found for plate {plate}",
            status_code=status.HTTP_404_NOT_FOUND
        )


def convert_to_http_exception(exc: PositionBaseException) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)
