import sys
from pathlib import Path
from typing import Optional

import pytest
from fastapi.testclient import TestClient

# Add project root (2 levels up from tests/) to sys.path so tests can import 'callhub'
root = Path(__file__).resolve().parents[1]
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

from callhub.container import build_services
from callhub.main import create_app
from callhub.models import User
from callhub.services.connection import ClientConnection
from tests.helpers import FakeWebSocket


@pytest.fixture
def app():
    """A fresh application with its own registry and stores."""
    return create_app()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def services():
    """A standalone service container, no HTTP layer."""
    return build_services()


@pytest.fixture
def make_user(services):
    def _make(username: str, display_name: Optional[str] = None) -> User:
        return services.user_service.register(username, "pass123", display_name or username.title())
    return _make


@pytest.fixture
def connect(services):
    """Register a FakeWebSocket session for a user and return the socket."""
    async def _connect(user_id: str, **kwargs) -> FakeWebSocket:
        ws = FakeWebSocket(**kwargs)
        await services.connection_manager.register(user_id, ClientConnection(ws, user_id))
        return ws
    return _connect
