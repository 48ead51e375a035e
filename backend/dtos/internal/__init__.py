"""
Internal DTOs

DTOs passed between the endpoint base and the response dispatcher.
These are not exposed to external APIs.
"""

from .payloads import (
    BytesPayload,
    EmptyPayload,
    FilePayload,
    JsonPayload,
    Payload,
    StreamPayload,
    StringPayload,
)

__all__ = [
    "BytesPayload",
    "EmptyPayload",
    "FilePayload",
    "JsonPayload",
    "Payload",
    "StreamPayload",
    "StringPayload",
]
