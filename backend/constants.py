"""
Application-wide constants and configuration keys.

This module centralizes all magic strings and numbers used throughout the application
to improve maintainability and reduce duplication.
"""
from enum import Enum


class PayloadKind(str, Enum):
    """
    Kinds of response payload the dispatcher knows how to write.

    Each kind has exactly one writer in the response dispatcher.
    """

    JSON = 'JSON'
    STRING = 'STRING'
    EMPTY = 'EMPTY'
    BYTES = 'BYTES'
    FILE = 'FILE'
    STREAM = 'STREAM'


class HttpVerb(str, Enum):
    """HTTP methods an endpoint can be mapped to"""

    GET = 'GET'
    POST = 'POST'
    PUT = 'PUT'
    PATCH = 'PATCH'
    DELETE = 'DELETE'
    HEAD = 'HEAD'
    OPTIONS = 'OPTIONS'

    @classmethod
    def has_body(cls, verb: 'HttpVerb') -> bool:
        """Check if requests with this verb carry a body worth binding"""
        return verb in [
            cls.POST,
            cls.PUT,
            cls.PATCH
        ]


class ServerConfig:
    """Server configuration constants"""

    HOST = "0.0.0.0"
    PORT = 8080

    @classmethod
    def url(cls) -> str:
        """Get the full server URL"""
        return f"http://{cls.HOST}:{cls.PORT}"


class SettingKeys:
    """Environment variable names read by the application config"""

    TOKEN_KEY = "TOKEN_KEY"
    ADMIN_USERNAME = "ADMIN_USERNAME"
    ADMIN_PASSWORD = "ADMIN_PASSWORD"
    LOG_LEVEL = "LOG_LEVEL"
    LOG_DIR = "LOG_DIR"
    STREAM_CHUNK_SIZE = "STREAM_CHUNK_SIZE"
    FILES_ROOT = "FILES_ROOT"
    DATABASE_URL = "DATABASE_URL"
    ENVIRONMENT = "ENVIRONMENT"


class StreamConfig:
    """Body write configuration constants"""

    CHUNK_SIZE = 64 * 1024  # 64KB chunks
    MIN_CHUNK_SIZE = 1024
    MAX_CHUNK_SIZE = 4 * 1024 * 1024


class ContentTypes:
    """Content types written by the dispatcher"""

    JSON = "application/json"
    TEXT = "text/plain; charset=utf-8"
    OCTET_STREAM = "application/octet-stream"


class HeaderNames:
    """HTTP header names (lowercase, as they travel over ASGI)"""

    CONTENT_TYPE = "content-type"
    CONTENT_LENGTH = "content-length"
    CONTENT_RANGE = "content-range"
    CONTENT_DISPOSITION = "content-disposition"
    ACCEPT_RANGES = "accept-ranges"
    LAST_MODIFIED = "last-modified"
    LOCATION = "location"
    RANGE = "range"
    IF_RANGE = "if-range"
    IF_MODIFIED_SINCE = "if-modified-since"


class ErrorMessages:
    """Messages used in generated error bodies"""

    VALIDATION_FAILED = "One or more errors occurred!"
    MALFORMED_BODY = "Request body is not valid JSON"
    INTERNAL = "Internal server error"


class HTTPStatus:
    """HTTP status codes used throughout the application"""

    # Success
    OK = 200
    CREATED = 201
    NO_CONTENT = 204
    PARTIAL_CONTENT = 206

    # Redirection
    NOT_MODIFIED = 304

    # Client Errors
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    RANGE_NOT_SATISFIABLE = 416

    # Server Errors
    INTERNAL_SERVER_ERROR = 500
