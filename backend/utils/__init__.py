"""
Utility functions and application wiring helpers.
"""

from .error_handlers import register_exception_handlers
from .logging_utils import configure_logging, log_requests

__all__ = ["configure_logging", "log_requests", "register_exception_handlers"]
