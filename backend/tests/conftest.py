import sys
import pytest
from pathlib import Path

# Add project root (2 levels up from tests/) to sys.path so tests can import 'phone_bridge'
root = Path(__file__).resolve().parents[1]
if str(root) not in sys.path:
    sys.path.insert(0, str(root))


import httpx
from fastapi.testclient import TestClient

from phone_bridge.api.deps import get_image_service, get_session_registry
from phone_bridge.main import app as bridge_app
from phone_bridge.services.image_service import ImageService
from phone_bridge.services.signaling import SessionRegistry


@pytest.fixture
def registry():
    """A fresh registry per test so sessions never leak between tests."""
    return SessionRegistry()


@pytest.fixture
def graph_dir(tmp_path):
    path = tmp_path / "graph"
    path.mkdir()
    return path


@pytest.fixture
def image_service(graph_dir):
    return ImageService(graph_path=str(graph_dir), max_bytes=1024)


@pytest.fixture
def app(registry, image_service):
    """The application wired to the per-test registry and image service."""
    bridge_app.dependency_overrides[get_session_registry] = lambda: registry
    bridge_app.dependency_overrides[get_image_service] = lambda: image_service
    yield bridge_app
    bridge_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
async def async_client(app):
    """Client running on the test's event loop, for tests that also hold streams open."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
