"""
Response Dispatcher

Writes exactly one HTTP response per request straight to the ASGI send channel.

Every send_* operation builds a payload DTO and hands it to dispatch(), which
picks the writer for the payload's kind. The first write marks the response as
started; any later attempt raises AlreadyWrittenError.

Cancellation is cooperative: the optional asyncio.Event passed to each
operation is checked before the response starts and before every body frame.
Once the body has started, a cancelled write stops without sending the final
frame so the server aborts the connection instead of flushing a truncated body.
"""
import asyncio
import os
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote

import anyio
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import Headers
from starlette.types import Receive, Scope, Send

from constants import ContentTypes, ErrorMessages, HeaderNames, HTTPStatus, PayloadKind, StreamConfig
from domain.value_objects import ByteRange, ValidationFailure, group_by_field
from dtos.internal import (
    BytesPayload,
    EmptyPayload,
    FilePayload,
    JsonPayload,
    Payload,
    StreamPayload,
    StringPayload,
)
from exceptions import AlreadyWrittenError, NotFoundError, OperationCancelledError, RouteResolutionError
from services.interfaces import IRouteResolver, ISerializer
from services.range_processing import RangeDecision, evaluate_range, format_http_date
from utils.logging_utils import StructuredLogger

logger = StructuredLogger(__name__)

RawHeaders = List[Tuple[bytes, bytes]]
Cancellation = Optional[asyncio.Event]


def content_disposition(file_name: str, disposition: str = "attachment") -> str:
    """Build a Content-Disposition value, adding filename* for non-ASCII names."""
    quoted = quote(file_name)
    if quoted == file_name:
        return f'{disposition}; filename="{file_name}"'
    fallback = file_name.encode("ascii", "ignore").decode("ascii").replace('"', "") or "download"
    return f"{disposition}; filename=\"{fallback}\"; filename*=utf-8''{quoted}"


def endpoint_name_of(endpoint: Any) -> str:
    """Return the registry name for an endpoint reference (name, enum or endpoint class)."""
    if isinstance(endpoint, str):
        return endpoint
    value = getattr(endpoint, "value", None)
    if isinstance(value, str):
        return value
    name = getattr(endpoint, "endpoint_name", None)
    if isinstance(name, str) and name:
        return name
    raise RouteResolutionError(repr(endpoint), f"Cannot determine endpoint name for {endpoint!r}")


class ResponseDispatcher:
    """
    Per-request writer of the HTTP response.

    Usage:
        dispatcher = ResponseDispatcher(scope, receive, send, serializer, registry)
        await dispatcher.send_json({"id": 1}, status_code=200)
    """

    def __init__(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
        serializer: ISerializer,
        route_resolver: Optional[IRouteResolver] = None,
        chunk_size: int = StreamConfig.CHUNK_SIZE,
    ):
        self.scope = scope
        self.receive = receive
        self._send = send
        self.serializer = serializer
        self.route_resolver = route_resolver
        self.chunk_size = chunk_size
        self.request_headers = Headers(scope=scope)
        self.method = scope.get("method", "GET").upper()

        self._started = False
        self._completed = False
        self.status_code: Optional[int] = None
        self.bytes_written = 0

    @property
    def has_started(self) -> bool:
        """True once the status line and headers have been sent."""
        return self._started

    @property
    def is_completed(self) -> bool:
        """True once the final body frame has been sent."""
        return self._completed

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def send_json(self, body: Any, status_code: int = HTTPStatus.OK, cancellation: Cancellation = None):
        """Serialize body as JSON and send it with the given status code."""
        await self.dispatch(JsonPayload(body=body, status_code=status_code), cancellation)

    async def send_created_at(
        self,
        endpoint: Any,
        route_values: Optional[Mapping[str, Any]] = None,
        body: Any = None,
        verb: Optional[str] = None,
        route_number: Optional[int] = None,
        cancellation: Cancellation = None,
    ):
        """
        Send 201 Created with a Location header pointing at another endpoint.

        Args:
            endpoint: Registered endpoint name, enum member or Endpoint subclass
            route_values: Values for the target route's parameters
            body: Optional DTO to serialize in the response body
            verb: Required when the target serves multiple verbs
            route_number: Required when the target has multiple routes

        Raises:
            RouteResolutionError: If the target cannot be resolved (nothing is written)
        """
        self._ensure_not_started("send a 201 response")
        if self.route_resolver is None:
            raise RouteResolutionError(str(endpoint), "No route resolver configured")

        location = self.route_resolver.resolve(endpoint_name_of(endpoint), route_values, verb, route_number)
        headers = ((HeaderNames.LOCATION, location),)

        if body is None:
            payload: Payload = EmptyPayload(status_code=HTTPStatus.CREATED, headers=headers)
        else:
            payload = JsonPayload(body=body, status_code=HTTPStatus.CREATED, headers=headers)
        await self.dispatch(payload, cancellation)

    async def send_string(
        self,
        content: str,
        status_code: int = HTTPStatus.OK,
        content_type: str = ContentTypes.TEXT,
        cancellation: Cancellation = None,
    ):
        await self.dispatch(StringPayload(content=content, status_code=status_code, content_type=content_type), cancellation)

    async def send_status(self, status_code: int, cancellation: Cancellation = None):
        """Send a response with only a status code and an empty body."""
        await self.dispatch(EmptyPayload(status_code=status_code), cancellation)

    async def send_ok(self, cancellation: Cancellation = None):
        await self.send_status(HTTPStatus.OK, cancellation)

    async def send_no_content(self, cancellation: Cancellation = None):
        await self.send_status(HTTPStatus.NO_CONTENT, cancellation)

    async def send_not_found(self, cancellation: Cancellation = None):
        await self.send_status(HTTPStatus.NOT_FOUND, cancellation)

    async def send_unauthorized(self, cancellation: Cancellation = None):
        await self.send_status(HTTPStatus.UNAUTHORIZED, cancellation)

    async def send_forbidden(self, cancellation: Cancellation = None):
        await self.send_status(HTTPStatus.FORBIDDEN, cancellation)

    async def send_errors(
        self,
        failures: Iterable[ValidationFailure],
        status_code: int = HTTPStatus.BAD_REQUEST,
        cancellation: Cancellation = None,
    ):
        """
        Send the validation failures as an error body.

        An empty failure list still produces a 400 with an empty "errors" object.
        """
        body = {
            "statusCode": status_code,
            "message": ErrorMessages.VALIDATION_FAILED,
            "errors": group_by_field(failures),
        }
        await self.dispatch(JsonPayload(body=body, status_code=status_code), cancellation)

    async def send_empty_json_object(self, cancellation: Cancellation = None):
        await self.dispatch(JsonPayload(body={}), cancellation)

    async def send_bytes(
        self,
        data: bytes,
        file_name: Optional[str] = None,
        content_type: str = ContentTypes.OCTET_STREAM,
        last_modified: Optional[datetime] = None,
        enable_range_processing: bool = False,
        cancellation: Cancellation = None,
    ):
        payload = BytesPayload(
            data=bytes(data),
            file_name=file_name,
            content_type=content_type,
            last_modified=last_modified,
            enable_range_processing=enable_range_processing,
        )
        await self.dispatch(payload, cancellation)

    async def send_file(
        self,
        path: Union[str, os.PathLike],
        content_type: str = ContentTypes.OCTET_STREAM,
        last_modified: Optional[datetime] = None,
        enable_range_processing: bool = False,
        cancellation: Cancellation = None,
    ):
        payload = FilePayload(
            path=Path(path),
            content_type=content_type,
            last_modified=last_modified,
            enable_range_processing=enable_range_processing,
        )
        await self.dispatch(payload, cancellation)

    async def send_stream(
        self,
        stream: Any,
        file_name: Optional[str] = None,
        length_hint: Optional[int] = None,
        content_type: str = ContentTypes.OCTET_STREAM,
        last_modified: Optional[datetime] = None,
        enable_range_processing: bool = False,
        cancellation: Cancellation = None,
    ):
        payload = StreamPayload(
            stream=stream,
            file_name=file_name,
            length_hint=length_hint,
            content_type=content_type,
            last_modified=last_modified,
            enable_range_processing=enable_range_processing,
        )
        await self.dispatch(payload, cancellation)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch(self, payload: Payload, cancellation: Cancellation = None):
        """Write the payload with the writer registered for its kind."""
        if payload.kind is PayloadKind.STREAM:
            # The stream belongs to the dispatcher from here on, even if it is never read
            try:
                self._ensure_not_started(f"send a {payload.kind.value} payload")
                await self._write_stream(payload, cancellation)
            finally:
                await self._close_stream(payload.stream)
            return

        self._ensure_not_started(f"send a {payload.kind.value} payload")
        writer = self._writers[payload.kind]
        await writer(self, payload, cancellation)

    async def _write_json(self, payload: JsonPayload, cancellation: Cancellation):
        body = self.serializer.serialize(payload.body)
        headers = [(HeaderNames.CONTENT_TYPE, self.serializer.content_type), *payload.headers]
        await self._write_buffer(payload.status_code, headers, body, cancellation)

    async def _write_string(self, payload: StringPayload, cancellation: Cancellation):
        body = payload.content.encode("utf-8")
        headers = [(HeaderNames.CONTENT_TYPE, payload.content_type)]
        await self._write_buffer(payload.status_code, headers, body, cancellation)

    async def _write_empty(self, payload: EmptyPayload, cancellation: Cancellation):
        await self._write_buffer(payload.status_code, list(payload.headers), b"", cancellation)

    async def _write_bytes(self, payload: BytesPayload, cancellation: Cancellation):
        total = len(payload.data)
        decision = self._evaluate(total, payload.last_modified, payload.enable_range_processing)
        headers = self._binary_headers(payload, decision, total, payload.last_modified)

        body = payload.data
        if decision.byte_range is not None:
            body = body[decision.byte_range.start:decision.byte_range.end + 1]
        elif not decision.has_body:
            body = b""
        await self._write_buffer(decision.status_code, headers, body, cancellation, set_length=False)

    async def _write_file(self, payload: FilePayload, cancellation: Cancellation):
        path = Path(payload.path)
        try:
            stat_result = await anyio.Path(path).stat()
        except (FileNotFoundError, NotADirectoryError):
            raise NotFoundError(str(path))
        if not stat.S_ISREG(stat_result.st_mode):
            raise NotFoundError(str(path), f"Not a regular file: {path}")

        total = stat_result.st_size
        last_modified = payload.last_modified or datetime.fromtimestamp(stat_result.st_mtime, tz=timezone.utc)
        decision = self._evaluate(total, last_modified, payload.enable_range_processing)
        headers = self._binary_headers(payload, decision, total, last_modified)

        if not decision.has_body or self.method == "HEAD":
            await self._write_buffer(decision.status_code, headers, b"", cancellation, set_length=False)
            return

        start, length = self._slice(decision, total)
        try:
            file = await anyio.open_file(path, mode="rb")
        except FileNotFoundError:
            raise NotFoundError(str(path))

        async with file:
            if start:
                await file.seek(start)

            async def chunks() -> AsyncIterator[bytes]:
                remaining = length
                while remaining > 0:
                    data = await file.read(min(self.chunk_size, remaining))
                    if not data:
                        break
                    remaining -= len(data)
                    yield data

            await self._write_chunks(decision.status_code, headers, chunks(), cancellation)

    async def _write_stream(self, payload: StreamPayload, cancellation: Cancellation):
        stream = payload.stream
        seekable = payload.is_seekable
        base_position = 0
        total = payload.length_hint

        if seekable:
            base_position = await run_in_threadpool(stream.tell)
            if total is None:
                end_position = await run_in_threadpool(stream.seek, 0, os.SEEK_END)
                await run_in_threadpool(stream.seek, base_position)
                total = end_position - base_position

        decision = self._evaluate(total, payload.last_modified, payload.enable_range_processing, seekable)
        headers = self._binary_headers(payload, decision, total, payload.last_modified)

        if not decision.has_body or self.method == "HEAD":
            await self._write_buffer(decision.status_code, headers, b"", cancellation, set_length=False)
            return

        if decision.byte_range is not None:
            await run_in_threadpool(stream.seek, base_position + decision.byte_range.start)
            limit: Optional[int] = decision.byte_range.length
        else:
            limit = total

        await self._write_chunks(decision.status_code, headers, self._read_stream(stream, limit), cancellation)

    async def _read_stream(self, stream: Any, limit: Optional[int]) -> AsyncIterator[bytes]:
        remaining = limit
        if hasattr(stream, "read"):
            while remaining is None or remaining > 0:
                size = self.chunk_size if remaining is None else min(self.chunk_size, remaining)
                data = await run_in_threadpool(stream.read, size)
                if not data:
                    break
                if remaining is not None:
                    remaining -= len(data)
                yield data
            return

        async for data in stream:
            if remaining is not None:
                data = data[:remaining]
                remaining -= len(data)
            if data:
                yield data
            if remaining is not None and remaining <= 0:
                break

    @staticmethod
    async def _close_stream(stream: Any):
        aclose = getattr(stream, "aclose", None)
        if aclose is not None:
            await aclose()
            return
        close = getattr(stream, "close", None)
        if close is not None:
            await run_in_threadpool(close)

    _writers = {
        PayloadKind.JSON: _write_json,
        PayloadKind.STRING: _write_string,
        PayloadKind.EMPTY: _write_empty,
        PayloadKind.BYTES: _write_bytes,
        PayloadKind.FILE: _write_file,
    }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _evaluate(
        self,
        total: Optional[int],
        last_modified: Optional[datetime],
        enable_range_processing: bool,
        seekable: bool = True,
    ) -> RangeDecision:
        return evaluate_range(
            self.request_headers,
            total,
            last_modified=last_modified,
            enable_range_processing=enable_range_processing,
            seekable=seekable,
            method=self.method,
        )

    @staticmethod
    def _slice(decision: RangeDecision, total: int) -> Tuple[int, int]:
        if decision.byte_range is not None:
            return decision.byte_range.start, decision.byte_range.length
        return 0, total

    @staticmethod
    def _binary_headers(
        payload: Union[BytesPayload, FilePayload, StreamPayload],
        decision: RangeDecision,
        total: Optional[int],
        last_modified: Optional[datetime],
    ) -> List[Tuple[str, str]]:
        headers: List[Tuple[str, str]] = []

        if decision.has_body:
            headers.append((HeaderNames.CONTENT_TYPE, payload.content_type))
            if payload.file_name:
                headers.append((HeaderNames.CONTENT_DISPOSITION, content_disposition(payload.file_name)))
        if last_modified is not None:
            headers.append((HeaderNames.LAST_MODIFIED, format_http_date(last_modified)))
        if payload.enable_range_processing:
            headers.append((HeaderNames.ACCEPT_RANGES, "bytes"))

        if decision.byte_range is not None:
            headers.append((HeaderNames.CONTENT_RANGE, decision.byte_range.content_range()))
            headers.append((HeaderNames.CONTENT_LENGTH, str(decision.byte_range.length)))
        elif decision.status_code == HTTPStatus.RANGE_NOT_SATISFIABLE:
            headers.append((HeaderNames.CONTENT_RANGE, ByteRange.unsatisfied_content_range(total)))
            headers.append((HeaderNames.CONTENT_LENGTH, "0"))
        elif decision.has_body and total is not None:
            headers.append((HeaderNames.CONTENT_LENGTH, str(total)))

        return headers

    def _ensure_not_started(self, attempted: str):
        if self._started:
            logger.error(
                f"Attempted to {attempted} after a {self.status_code} response was started",
                extra={"status_code": self.status_code},
            )
            raise AlreadyWrittenError(attempted)

    def _check_cancelled(self, cancellation: Cancellation):
        if cancellation is not None and cancellation.is_set():
            logger.warning(
                "Response write cancelled",
                extra={"status_code": self.status_code, "bytes_written": self.bytes_written},
            )
            raise OperationCancelledError(self.bytes_written)

    async def _start(self, status_code: int, headers: Iterable[Tuple[str, str]]):
        self._ensure_not_started(f"start a {status_code} response")
        raw: RawHeaders = [(k.lower().encode("latin-1"), str(v).encode("latin-1")) for k, v in headers]
        self._started = True
        self.status_code = status_code
        await self._send({"type": "http.response.start", "status": status_code, "headers": raw})

    async def _write_buffer(
        self,
        status_code: int,
        headers: List[Tuple[str, str]],
        body: bytes,
        cancellation: Cancellation,
        set_length: bool = True,
    ):
        if set_length:
            headers = [*headers, (HeaderNames.CONTENT_LENGTH, str(len(body)))]

        async def chunks() -> AsyncIterator[bytes]:
            view = memoryview(body)
            for offset in range(0, len(view), self.chunk_size):
                yield bytes(view[offset:offset + self.chunk_size])

        await self._write_chunks(status_code, headers, chunks(), cancellation)

    async def _write_chunks(
        self,
        status_code: int,
        headers: List[Tuple[str, str]],
        chunks: AsyncIterator[bytes],
        cancellation: Cancellation,
    ):
        self._check_cancelled(cancellation)
        await self._start(status_code, headers)

        if self.method != "HEAD":
            async for chunk in chunks:
                self._check_cancelled(cancellation)
                await self._send({"type": "http.response.body", "body": chunk, "more_body": True})
                self.bytes_written += len(chunk)
            self._check_cancelled(cancellation)

        await self._send({"type": "http.response.body", "body": b"", "more_body": False})
        self._completed = True
        logger.debug(
            f"Sent {status_code} response",
            extra={"status_code": status_code, "bytes_written": self.bytes_written},
        )
