"""
Custom exception classes for the application.

This module defines domain-specific exceptions that provide better error handling
and clearer error messages throughout the application.
"""


class ApplicationError(Exception):
    """Base exception for all application errors"""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(ApplicationError):
    """Raised when there's a configuration issue"""

    def __init__(self, message: str, missing_keys: list[str] | None = None):
        details = {"missing_keys": missing_keys} if missing_keys else {}
        super().__init__(message, details)


class ValidationError(ApplicationError):
    """Raised when validation fails"""

    def __init__(self, message: str, failures: list | None = None):
        self.failures = list(failures or [])
        details = {"invalid_fields": [f.field for f in self.failures]} if self.failures else {}
        super().__init__(message, details)


class DispatchError(ApplicationError):
    """Base class for errors raised while writing a response"""
    pass


class SerializationError(DispatchError):
    """Raised when a payload cannot be encoded"""

    def __init__(self, type_name: str, message: str | None = None):
        details = {"type": type_name}
        msg = message or f"Cannot serialize value of type {type_name}"
        super().__init__(msg, details)


class RouteResolutionError(DispatchError):
    """Raised when a target endpoint's route is missing or ambiguous"""

    def __init__(self, endpoint_name: str, message: str):
        details = {"endpoint": endpoint_name}
        super().__init__(message, details)


class NotFoundError(DispatchError):
    """Raised when a referenced file no longer exists at send time"""

    def __init__(self, path: str, message: str | None = None):
        details = {"path": path}
        msg = message or f"File not found: {path}"
        super().__init__(msg, details)


class OperationCancelledError(DispatchError):
    """Raised when a dispatch is aborted by its cancellation signal"""

    def __init__(self, bytes_written: int = 0):
        details = {"bytes_written": bytes_written}
        super().__init__("Response write was cancelled", details)


class AlreadyWrittenError(DispatchError):
    """Raised when a second response is written for the same request"""

    def __init__(self, attempted: str):
        details = {"attempted": attempted}
        super().__init__(f"Response already started, cannot {attempted}", details)
