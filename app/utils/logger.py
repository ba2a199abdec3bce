# app/utils/logger.py

"""
structlog configuration shared by the API and the Celery processes.

Every log line carries the application name, the environment and, inside an
HTTP request, the request id. The console can be plain text or JSON, the
optional log file is always JSON and rotates by size.
"""

import logging
import sys
import time
import uuid
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, List, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

APP_NAME = "Estaciones Reporting API"
REQUEST_ID_HEADER = "X-Request-ID"

# Rotate the JSON log file at 20 MB, keep five old files
LOG_FILE_MAX_BYTES = 20 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Chatty at INFO: every vendor request and every SQL statement
NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "celery.redirected")

# Health checks are not worth an access log line
UNLOGGED_PATHS = frozenset({"/"})

_context: Dict[str, str] = {"app": APP_NAME, "environment": "development"}


def _add_request_id(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    request_id = request_id_var.get()
    if request_id:
        event_dict.setdefault("request_id", request_id)
    return event_dict


def _add_app_context(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    event_dict.update(_context)
    return event_dict


def _processors() -> List[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        _add_request_id,
        _add_app_context,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _handler(handler: logging.Handler, level: int, renderer: Any) -> logging.Handler:
    processors = _processors()
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=processors + [structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=processors,
        )
    )
    return handler


def setup_logging(
    log_level: str = "INFO",
    use_json: bool = True,
    log_file: Optional[str] = None,
    app_name: str = APP_NAME,
    environment: str = "development"
) -> None:
    """
    Route structlog and stdlib logging through the same handlers.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        use_json: JSON lines on stdout instead of plain text
        log_file: Optional path of a rotating JSON log file
        app_name: Value of the ``app`` field
        environment: Value of the ``environment`` field
    """
    _context.update(app=app_name, environment=environment)
    level = getattr(logging, log_level.upper(), logging.INFO)

    console_renderer = (
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer(colors=False, exception_formatter=structlog.dev.plain_traceback)
    )
    handlers = [_handler(logging.StreamHandler(sys.stdout), level, console_renderer)]
    if log_file:
        handlers.append(_handler(
            RotatingFileHandler(log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS, encoding="utf-8"),
            level,
            structlog.processors.JSONRenderer(),
        ))

    root = logging.getLogger()
    root.handlers = handlers
    root.setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=_processors() + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Access log and request id propagation"""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        token = request_id_var.set(request_id)
        logger = get_logger("api.access")
        path = request.url.path
        started = time.perf_counter()
        logger.debug("Request started", method=request.method, path=path)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Unhandled error",
                method=request.method,
                path=path,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                error=str(e),
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={"ok": False, "error": "Internal server error", "request_id": request_id},
                headers={REQUEST_ID_HEADER: request_id},
            )
        else:
            if path not in UNLOGGED_PATHS:
                logger.info(
                    "Request",
                    method=request.method,
                    path=path,
                    status_code=response.status_code,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                    client_host=request.client.host if request.client else None,
                )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_var.reset(token)


def setup_app_logging(
    app: FastAPI,
    log_level: str = "INFO",
    use_json: bool = True,
    log_file: Optional[str] = None,
    app_name: Optional[str] = None,
    environment: str = "development",
) -> None:
    """Configure logging and install the access log middleware on ``app``"""
    setup_logging(
        log_level=log_level,
        use_json=use_json,
        log_file=log_file,
        app_name=app_name or APP_NAME,
        environment=environment,
    )
    app.add_middleware(LoggingMiddleware)
