# app/closures/exceptions.py

from fastapi import HTTPException, status


class ClosureBaseException(Exception):
    """Base exception for shift closures"""
    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ClosureValidationException(ClosureBaseException):
    """Raised when a request is missing or has inconsistent parameters"""
    def __init__(self, message: str):
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST)


def convert_to_http_exception(exc: ClosureBaseException) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)
