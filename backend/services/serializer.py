"""
JSON Serializer Service

Converts response DTOs to bytes for the wire and parses request bodies.
Output is compact and deterministic for identical input.
"""
import json
import logging
from typing import Any

from fastapi.encoders import jsonable_encoder

from constants import ContentTypes
from exceptions import SerializationError
from services.interfaces import ISerializer

logger = logging.getLogger(__name__)


class JsonSerializer(ISerializer):
    """Serializer backed by FastAPI's jsonable_encoder"""

    content_type = ContentTypes.JSON

    def serialize(self, obj: Any) -> bytes:
        """
        Serialize a DTO (pydantic model, dataclass, dict, list or scalar) to JSON bytes.

        Raises:
            SerializationError: If obj contains values JSON cannot represent
        """
        try:
            encoded = jsonable_encoder(obj)
            return json.dumps(
                encoded,
                ensure_ascii=False,
                allow_nan=False,
                indent=None,
                separators=(",", ":"),
            ).encode("utf-8")
        except (TypeError, ValueError, RecursionError) as e:
            logger.warning(f"Failed to serialize {type(obj).__name__}: {e}")
            raise SerializationError(type(obj).__name__, f"Cannot serialize {type(obj).__name__}: {e}")

    def deserialize(self, data: bytes) -> Any:
        """
        Parse JSON bytes. Empty input parses to None.

        Raises:
            SerializationError: If data is not valid JSON
        """
        if not data:
            return None
        try:
            return json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SerializationError("bytes", f"Invalid JSON: {e}")
