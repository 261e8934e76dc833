import os
import tempfile

import pytest

# Test-safe environment; must be in place before chatvault.main is imported
os.environ["AUTH_PROVIDER"] = "header"
os.environ["USE_IN_MEMORY_STORE"] = "true"
os.environ["DEBUG_MODE"] = "false"
os.environ["FEATURE_UPLOAD_AUTH_REQUIRED"] = "true"
os.environ["FEATURE_METRICS_LOGGING_ENABLED"] = "false"
os.environ["IMAGE_KIT_PRIVATE_KEY"] = "private_test_key"
os.environ["IMAGE_KIT_PUBLIC_KEY"] = "public_test_key"
os.environ["IMAGE_KIT_ENDPOINT"] = "https://ik.example.test/chatvault"
os.environ["CLIENT_URL"] = "http://localhost:5173"
os.environ.setdefault("APP_LOG_DIR", tempfile.mkdtemp(prefix="chatvault-logs-"))

from chatvault.infrastructure.chats import InMemoryChatRepository  # noqa: E402


@pytest.fixture
def memory_repo():
    return InMemoryChatRepository()


@pytest.fixture
def client(memory_repo):
    """TestClient over the real app with a fresh in-memory repository."""
    from starlette.testclient import TestClient

    from chatvault.main import app
    from chatvault.routes.chat_routes import get_chat_repository

    app.dependency_overrides[get_chat_repository] = lambda: memory_repo
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def alice():
    return {"X-User-Id": "user_alice"}


@pytest.fixture
def bob():
    return {"X-User-Id": "user_bob"}
