"""
Structured Logging Utilities

Provides logging setup plus a request-scoped context that is merged into every
log record emitted through StructuredLogger while a request is being handled.
"""

import logging
import sys
import time
import uuid
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from typing import Any, Callable, Dict, Optional

from fastapi import Request

from config.app_config import AppConfig


# Context variable for request-scoped logging context
_logging_context: ContextVar[Dict[str, Any]] = ContextVar('logging_context', default={})

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
SLOW_REQUEST_SECONDS = 1.0


class StructuredLogger:
    """
    Wrapper around standard logger that adds structured context.

    Usage:
        logger = StructuredLogger(__name__)
        logger.info("Sent response", extra={"status_code": 200})
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _add_context(self, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        context = get_logging_context()
        if extra:
            context.update(extra)
        return context

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self.logger.debug(message, extra=self._add_context(extra))

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self.logger.info(message, extra=self._add_context(extra))

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self.logger.warning(message, extra=self._add_context(extra))

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None, exc_info: bool = False):
        self.logger.error(message, extra=self._add_context(extra), exc_info=exc_info)


def set_logging_context(**kwargs):
    """
    Set logging context for the current request.

    Example:
        set_logging_context(request_id="abc-123", endpoint="AdminLogin")
    """
    context = _logging_context.get().copy()
    context.update(kwargs)
    _logging_context.set(context)


def get_logging_context() -> Dict[str, Any]:
    return _logging_context.get().copy()


def clear_logging_context():
    """Clear the logging context."""
    _logging_context.set({})


def configure_logging(config: AppConfig) -> None:
    """
    Configure the root logger: console output plus a rotating file when LOG_DIR is set.

    Safe to call more than once; handlers installed by a previous call are replaced.
    """
    log_formatter = logging.Formatter(LOG_FORMAT)
    level = getattr(logging, config.log_level, logging.INFO)

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, "_typed_endpoints", False):
            root_logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(log_formatter)
    console_handler.setLevel(level)
    console_handler._typed_endpoints = True
    root_logger.addHandler(console_handler)

    if config.log_dir is not None:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        # 10MB per file, keep 5 backups
        file_handler = RotatingFileHandler(
            config.log_dir / "api.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setFormatter(log_formatter)
        file_handler.setLevel(level)
        file_handler._typed_endpoints = True
        root_logger.addHandler(file_handler)

    root_logger.setLevel(level)


async def log_requests(request: Request, call_next: Callable):
    """
    HTTP middleware: assign a request id, then log slow (>1s) or failed requests.
    """
    start_time = time.time()
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
    set_logging_context(request_id=request_id)
    logger = logging.getLogger(__name__)

    try:
        response = await call_next(request)
        process_time = time.time() - start_time
        if process_time > SLOW_REQUEST_SECONDS or response.status_code >= 400:
            logger.info(f"[{request_id}] {request.method} {request.url.path} - {response.status_code} - {process_time:.2f}s")
        response.headers["X-Request-ID"] = request_id
        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.error(f"[{request_id}] {request.method} {request.url.path} - ERROR: {e} - {process_time:.2f}s")
        raise
    finally:
        clear_logging_context()
