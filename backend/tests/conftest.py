import sys
from pathlib import Path

# Add backend directory to Python path FIRST
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Now import after path is set
import asyncio
import pytest
from fastapi.testclient import TestClient

from config.app_config import AppConfig
from database import create_db_engine, create_session_factory, init_database
from services.endpoint_registry import EndpointRegistry
from services.response_dispatcher import ResponseDispatcher
from services.serializer import JsonSerializer


class RecordingTransport:
    """ASGI receive/send pair that records every message sent."""

    def __init__(self, cancellation: asyncio.Event | None = None, cancel_after_frames: int | None = None):
        self.messages = []
        self.cancellation = cancellation
        self.cancel_after_frames = cancel_after_frames

    async def receive(self):
        return {"type": "http.request", "body": b"", "more_body": False}

    async def send(self, message):
        self.messages.append(message)
        if (
            self.cancellation is not None
            and self.cancel_after_frames is not None
            and len(self.body_frames) >= self.cancel_after_frames
        ):
            self.cancellation.set()

    @property
    def start(self):
        starts = [m for m in self.messages if m["type"] == "http.response.start"]
        return starts[0] if starts else None

    @property
    def status(self):
        return self.start["status"] if self.start else None

    @property
    def headers(self):
        if not self.start:
            return {}
        return {k.decode("latin-1"): v.decode("latin-1") for k, v in self.start["headers"]}

    @property
    def body_frames(self):
        return [m for m in self.messages if m["type"] == "http.response.body"]

    @property
    def body(self):
        return b"".join(m["body"] for m in self.body_frames)

    @property
    def completed(self):
        frames = self.body_frames
        return bool(frames) and not frames[-1].get("more_body", False)


def make_scope(method: str = "GET", headers: dict | None = None, path: str = "/"):
    return {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": b"",
        "headers": [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in (headers or {}).items()],
    }


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def registry():
    registry = EndpointRegistry()
    registry.register("GetCustomer", ["GET"], ["/api/customers/{customer_id:int}"])
    return registry


@pytest.fixture
def make_dispatcher(transport, registry):
    """Build a dispatcher for a request with the given method and headers."""
    def factory(method: str = "GET", headers: dict | None = None, chunk_size: int = 1024, send_transport=None):
        target = send_transport or transport
        return ResponseDispatcher(
            make_scope(method, headers),
            target.receive,
            target.send,
            serializer=JsonSerializer(),
            route_resolver=registry,
            chunk_size=chunk_size,
        )
    return factory


@pytest.fixture
def db_session():
    """Create in-memory database for testing"""
    engine = create_db_engine('sqlite://')
    init_database(engine)
    SessionLocal = create_session_factory(engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def files_root(tmp_path):
    root = tmp_path / "files"
    root.mkdir()
    (root / "report.bin").write_bytes(bytes(range(256)) * 2 + bytes(range(244)))  # 756 bytes
    (root / "notes.txt").write_text("hello world\n", encoding="utf-8")
    return root


@pytest.fixture
def app_config(files_root):
    return AppConfig(
        token_key="some long secret key to sign tokens with",
        admin_username="admin",
        admin_password="pass123",
        files_root=files_root,
        database_url="sqlite://",
        environment="test",
    )


@pytest.fixture
def client(app_config):
    from main import create_app

    app = create_app(app_config)
    with TestClient(app) as test_client:
        yield test_client
