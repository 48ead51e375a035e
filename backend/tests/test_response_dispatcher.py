import asyncio
import io
import json
from datetime import datetime, timezone

import pytest

from conftest import RecordingTransport, run
from domain.value_objects import ValidationFailure
from exceptions import (
    AlreadyWrittenError,
    NotFoundError,
    OperationCancelledError,
    RouteResolutionError,
    SerializationError,
)

PAYLOAD = bytes(i % 251 for i in range(500))


class NonSeekableStream(io.RawIOBase):
    def __init__(self, data: bytes):
        self._inner = io.BytesIO(data)

    def readable(self):
        return True

    def seekable(self):
        return False

    def read(self, size=-1):
        return self._inner.read(size)


# JSON and status-only sends

@pytest.mark.parametrize("body,status_code", [
    ({"name": "Ada", "tags": ["a", "b"], "score": 1.5}, 200),
    ([1, 2, 3], 202),
    ("plain", 409),
    (None, 200),
])
def test_send_json_round_trips_with_status(make_dispatcher, transport, body, status_code):
    run(make_dispatcher().send_json(body, status_code))

    assert transport.status == status_code
    assert transport.headers["content-type"] == "application/json"
    assert json.loads(transport.body) == body
    assert transport.completed


def test_send_json_unsupported_type_raises_and_writes_nothing(make_dispatcher, transport):
    dispatcher = make_dispatcher()

    with pytest.raises(SerializationError):
        run(dispatcher.send_json({"value": float("nan")}))

    assert transport.messages == []
    assert not dispatcher.has_started


@pytest.mark.parametrize("operation,status_code", [
    ("send_ok", 200),
    ("send_no_content", 204),
    ("send_not_found", 404),
    ("send_unauthorized", 401),
    ("send_forbidden", 403),
])
def test_status_only_sends(make_dispatcher, transport, operation, status_code):
    run(getattr(make_dispatcher(), operation)())

    assert transport.status == status_code
    assert transport.body == b""
    assert transport.headers["content-length"] == "0"


def test_send_string_writes_raw_text(make_dispatcher, transport):
    run(make_dispatcher().send_string("héllo", 418))

    assert transport.status == 418
    assert transport.body == "héllo".encode("utf-8")
    assert transport.headers["content-type"].startswith("text/plain")


def test_send_empty_json_object(make_dispatcher, transport):
    run(make_dispatcher().send_empty_json_object())

    assert transport.status == 200
    assert transport.body == b"{}"


# Errors

def test_send_errors_groups_failures_by_field(make_dispatcher, transport):
    failures = [
        ValidationFailure("UserName", "required"),
        ValidationFailure("Password", "too short"),
        ValidationFailure("UserName", "too short"),
    ]
    run(make_dispatcher().send_errors(failures))

    body = json.loads(transport.body)
    assert transport.status == 400
    assert body["statusCode"] == 400
    assert body["errors"] == {"UserName": ["required", "too short"], "Password": ["too short"]}


def test_send_errors_with_no_failures_still_sends_400(make_dispatcher, transport):
    run(make_dispatcher().send_errors([]))

    assert transport.status == 400
    assert json.loads(transport.body)["errors"] == {}


# Created-at

def test_send_created_at_sets_location(make_dispatcher, transport):
    run(make_dispatcher().send_created_at("GetCustomer", {"customer_id": 42}, {"id": 42}))

    assert transport.status == 201
    assert transport.headers["location"] == "/api/customers/42"
    assert json.loads(transport.body) == {"id": 42}


def test_send_created_at_without_body(make_dispatcher, transport):
    run(make_dispatcher().send_created_at("GetCustomer", {"customer_id": 7}))

    assert transport.status == 201
    assert transport.headers["location"] == "/api/customers/7"
    assert transport.body == b""


def test_send_created_at_accepts_endpoint_class(make_dispatcher, transport):
    class Target:
        endpoint_name = "GetCustomer"

    run(make_dispatcher().send_created_at(Target, {"customer_id": 3}))

    assert transport.headers["location"] == "/api/customers/3"


def test_send_created_at_unresolvable_route_writes_nothing(make_dispatcher, transport):
    dispatcher = make_dispatcher()

    with pytest.raises(RouteResolutionError):
        run(dispatcher.send_created_at("Missing", {"id": 1}, {"id": 1}))

    assert transport.messages == []
    assert not dispatcher.has_started


# Write-once

def test_second_dispatch_raises_already_written(make_dispatcher, transport):
    dispatcher = make_dispatcher()
    run(dispatcher.send_ok())

    with pytest.raises(AlreadyWrittenError):
        run(dispatcher.send_json({"again": True}))

    assert len([m for m in transport.messages if m["type"] == "http.response.start"]) == 1


def test_second_dispatch_fails_even_if_it_would_fail_otherwise(make_dispatcher):
    dispatcher = make_dispatcher()
    run(dispatcher.send_no_content())

    with pytest.raises(AlreadyWrittenError):
        run(dispatcher.send_created_at("Missing", {}))


def test_rejected_stream_is_still_closed(make_dispatcher):
    dispatcher = make_dispatcher()
    run(dispatcher.send_ok())
    stream = io.BytesIO(PAYLOAD)

    with pytest.raises(AlreadyWrittenError):
        run(dispatcher.send_stream(stream))

    assert stream.closed


# Binary payloads and ranges

def test_send_bytes_range_returns_partial_content(make_dispatcher, transport):
    dispatcher = make_dispatcher(headers={"Range": "bytes=0-99"})
    run(dispatcher.send_bytes(PAYLOAD, enable_range_processing=True))

    assert transport.status == 206
    assert transport.body == PAYLOAD[:100]
    assert transport.headers["content-range"] == "bytes 0-99/500"
    assert transport.headers["content-length"] == "100"
    assert transport.headers["accept-ranges"] == "bytes"


def test_send_bytes_without_range_header_sends_full_body(make_dispatcher, transport):
    run(make_dispatcher().send_bytes(PAYLOAD, file_name="data.bin", enable_range_processing=True))

    assert transport.status == 200
    assert transport.body == PAYLOAD
    assert transport.headers["content-length"] == "500"
    assert transport.headers["content-disposition"] == 'attachment; filename="data.bin"'


def test_send_bytes_ignores_range_when_processing_disabled(make_dispatcher, transport):
    run(make_dispatcher(headers={"Range": "bytes=0-99"}).send_bytes(PAYLOAD))

    assert transport.status == 200
    assert transport.body == PAYLOAD
    assert "accept-ranges" not in transport.headers


def test_send_bytes_unsatisfiable_range(make_dispatcher, transport):
    run(make_dispatcher(headers={"Range": "bytes=600-700"}).send_bytes(PAYLOAD, enable_range_processing=True))

    assert transport.status == 416
    assert transport.body == b""
    assert transport.headers["content-range"] == "bytes */500"


def test_send_bytes_not_modified(make_dispatcher, transport):
    modified = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    headers = {"If-Modified-Since": "Tue, 02 Jan 2024 03:04:05 GMT"}

    run(make_dispatcher(headers=headers).send_bytes(PAYLOAD, last_modified=modified))

    assert transport.status == 304
    assert transport.body == b""
    assert transport.headers["last-modified"] == "Tue, 02 Jan 2024 03:04:05 GMT"


def test_send_bytes_non_ascii_file_name(make_dispatcher, transport):
    run(make_dispatcher().send_bytes(b"x", file_name="résumé.pdf"))

    disposition = transport.headers["content-disposition"]
    assert "filename*=utf-8''r%C3%A9sum%C3%A9.pdf" in disposition


def test_send_file_range(make_dispatcher, transport, tmp_path):
    path = tmp_path / "payload.bin"
    path.write_bytes(PAYLOAD)

    run(make_dispatcher(headers={"Range": "bytes=0-99"}).send_file(path, enable_range_processing=True))

    assert transport.status == 206
    assert transport.body == PAYLOAD[:100]
    assert transport.headers["content-range"] == "bytes 0-99/500"
    assert transport.headers["content-disposition"] == 'attachment; filename="payload.bin"'
    assert "last-modified" in transport.headers


def test_send_file_full_body_in_chunks(make_dispatcher, transport, tmp_path):
    path = tmp_path / "payload.bin"
    path.write_bytes(PAYLOAD)

    run(make_dispatcher(chunk_size=128).send_file(path, enable_range_processing=True))

    assert transport.status == 200
    assert transport.body == PAYLOAD
    assert len([f for f in transport.body_frames if f["body"]]) == 4


def test_send_file_missing_raises_not_found(make_dispatcher, transport, tmp_path):
    with pytest.raises(NotFoundError):
        run(make_dispatcher().send_file(tmp_path / "gone.bin"))

    assert transport.messages == []


def test_send_file_directory_raises_not_found(make_dispatcher, transport, tmp_path):
    with pytest.raises(NotFoundError):
        run(make_dispatcher().send_file(tmp_path))

    assert transport.messages == []


def test_send_file_head_sends_headers_only(make_dispatcher, transport, tmp_path):
    path = tmp_path / "payload.bin"
    path.write_bytes(PAYLOAD)

    run(make_dispatcher(method="HEAD").send_file(path))

    assert transport.status == 200
    assert transport.headers["content-length"] == "500"
    assert transport.body == b""


def test_send_stream_range_on_seekable_stream(make_dispatcher, transport):
    stream = io.BytesIO(PAYLOAD)

    run(make_dispatcher(headers={"Range": "bytes=0-99"}).send_stream(stream, enable_range_processing=True))

    assert transport.status == 206
    assert transport.body == PAYLOAD[:100]
    assert transport.headers["content-range"] == "bytes 0-99/500"
    assert stream.closed


def test_send_stream_suffix_range(make_dispatcher, transport):
    run(make_dispatcher(headers={"Range": "bytes=-50"}).send_stream(io.BytesIO(PAYLOAD), enable_range_processing=True))

    assert transport.status == 206
    assert transport.body == PAYLOAD[-50:]
    assert transport.headers["content-range"] == "bytes 450-499/500"


def test_send_stream_non_seekable_ignores_range(make_dispatcher, transport):
    stream = NonSeekableStream(PAYLOAD)

    run(make_dispatcher(headers={"Range": "bytes=0-99"}).send_stream(
        stream, length_hint=500, enable_range_processing=True
    ))

    assert transport.status == 200
    assert transport.body == PAYLOAD
    assert transport.headers["content-length"] == "500"
    assert stream.closed


def test_send_stream_async_iterable_without_length(make_dispatcher, transport):
    async def produce():
        for offset in range(0, 500, 100):
            yield PAYLOAD[offset:offset + 100]

    run(make_dispatcher().send_stream(produce(), file_name="chunks.bin"))

    assert transport.status == 200
    assert transport.body == PAYLOAD
    assert "content-length" not in transport.headers


def test_send_stream_without_range_header(make_dispatcher, transport):
    run(make_dispatcher().send_stream(io.BytesIO(PAYLOAD), enable_range_processing=True))

    assert transport.status == 200
    assert transport.body == PAYLOAD


# Cancellation

def test_cancel_before_write_writes_nothing(make_dispatcher, transport):
    cancellation = asyncio.Event()
    cancellation.set()

    with pytest.raises(OperationCancelledError):
        run(make_dispatcher().send_json({"a": 1}, cancellation=cancellation))

    assert transport.messages == []


def test_cancel_mid_stream_aborts_without_completing_body(make_dispatcher):
    cancellation = asyncio.Event()
    recording = RecordingTransport(cancellation=cancellation, cancel_after_frames=2)
    dispatcher = make_dispatcher(chunk_size=100, send_transport=recording)
    stream = io.BytesIO(PAYLOAD)

    with pytest.raises(OperationCancelledError) as exc_info:
        run(dispatcher.send_stream(stream, cancellation=cancellation))

    assert recording.status == 200
    assert not recording.completed
    assert len(recording.body) < len(PAYLOAD)
    assert exc_info.value.details["bytes_written"] == len(recording.body)
    assert stream.closed
