"""Unit tests for health check and heartbeat endpoints."""

from datetime import datetime

from starlette.testclient import TestClient

from chatvault.main import app
from chatvault.version import VERSION


def test_heartbeat_no_auth_required():
    client = TestClient(app)
    resp = client.get("/api/heartbeat")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_health_response_structure():
    client = TestClient(app)
    resp = client.get("/api/health")
    assert resp.status_code == 200

    data = resp.json()
    assert data["status"] == "healthy"
    assert data["service"] == "chatvault-backend"
    assert data["version"] == VERSION
    datetime.fromisoformat(data["timestamp"])


def test_root_answers_plain_text_without_auth():
    client = TestClient(app)
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    assert resp.text == "chatvault backend is working"
