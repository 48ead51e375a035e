"""
Internal Response Payload DTOs

One immutable DTO per kind of response body. The endpoint base builds them from
its send_* arguments and the response dispatcher writes them, picking the writer
from the payload's kind tag.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, ClassVar, Optional, Tuple, Union

from constants import ContentTypes, HTTPStatus, PayloadKind


Headers = Tuple[Tuple[str, str], ...]


@dataclass(frozen=True)
class JsonPayload:
    """Serialize-and-send body."""

    kind: ClassVar[PayloadKind] = PayloadKind.JSON

    body: Any
    status_code: int = HTTPStatus.OK
    headers: Headers = ()


@dataclass(frozen=True)
class StringPayload:
    """Raw text body, written as-is."""

    kind: ClassVar[PayloadKind] = PayloadKind.STRING

    content: str
    status_code: int = HTTPStatus.OK
    content_type: str = ContentTypes.TEXT


@dataclass(frozen=True)
class EmptyPayload:
    """Status-only response."""

    kind: ClassVar[PayloadKind] = PayloadKind.EMPTY

    status_code: int = HTTPStatus.OK
    headers: Headers = ()


@dataclass(frozen=True)
class BytesPayload:
    """In-memory binary body."""

    kind: ClassVar[PayloadKind] = PayloadKind.BYTES

    data: bytes
    file_name: Optional[str] = None
    content_type: str = ContentTypes.OCTET_STREAM
    last_modified: Optional[datetime] = None
    enable_range_processing: bool = False


@dataclass(frozen=True)
class FilePayload:
    """Binary body read lazily from a file on disk."""

    kind: ClassVar[PayloadKind] = PayloadKind.FILE

    path: Path
    content_type: str = ContentTypes.OCTET_STREAM
    last_modified: Optional[datetime] = None
    enable_range_processing: bool = False

    @property
    def file_name(self) -> str:
        return Path(self.path).name


@dataclass(frozen=True, eq=False)
class StreamPayload:
    """
    Binary body read from an opaque stream.

    The stream is either a binary file-like object (read/seek/close) or an
    async iterable of bytes. Range requests need a seekable file-like object.
    """

    kind: ClassVar[PayloadKind] = PayloadKind.STREAM

    stream: Any = field(repr=False)
    file_name: Optional[str] = None
    length_hint: Optional[int] = None
    content_type: str = ContentTypes.OCTET_STREAM
    last_modified: Optional[datetime] = None
    enable_range_processing: bool = False

    @property
    def is_seekable(self) -> bool:
        seekable = getattr(self.stream, "seekable", None)
        if seekable is None or not hasattr(self.stream, "read"):
            return False
        try:
            return bool(seekable())
        except (OSError, ValueError):
            return False


Payload = Union[JsonPayload, StringPayload, EmptyPayload, BytesPayload, FilePayload, StreamPayload]
