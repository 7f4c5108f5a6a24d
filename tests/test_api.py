"""
Test the HTTP surface of a single worker.
"""

import os

import pytest
from fastapi.testclient import TestClient

from cachecast.core.config import settings
from cachecast.main import app


@pytest.fixture
def client(tmp_path, monkeypatch):
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "banner.html").write_text("Hello {{ name }}")

    monkeypatch.setattr(settings, "APP_ROOT", str(tmp_path))
    monkeypatch.setattr(settings, "IPCM_PID_SOURCE", "off")
    monkeypatch.setattr(settings, "IPCM_SIGNAL", "SIGUSR1")

    with TestClient(app) as client:
        yield client


def test_health_reports_worker_pid(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "pid": os.getpid()}


def test_ipcm_status_when_disabled(client, tmp_path):
    response = client.get("/cache/ipcm")

    assert response.status_code == 200
    body = response.json()
    assert body["enabled"] is False
    assert body["listening"] is False
    assert body["signal"] == "SIGUSR1"
    assert body["mailbox_directory"] == str(tmp_path / "tmp" / "ipcm")


def test_invalidate_clears_local_cache(client):
    host = app.state.cache_host
    host.cache("user:1", lambda: "ann")
    host.cache("page", lambda: "home")
    host.templates.compile("banners", "banner.html")

    response = client.post(
        "/cache/invalidate",
        json={"operation": "clear_cache_matching", "arguments": ["user:"]},
    )

    assert response.status_code == 200
    assert response.json() == {
        "operation": "clear_cache_matching",
        "outcome": "disabled",
        "targets": [],
    }
    assert client.get("/cache/stats").json() == {
        "pid": os.getpid(),
        "values": 1,
        "templates": 1,
    }


def test_invalidate_all_templates(client):
    app.state.cache_host.templates.compile("banners", "banner.html")

    response = client.post(
        "/cache/invalidate", json={"operation": "clear_all_compiled_templates"}
    )

    assert response.status_code == 200
    assert client.get("/cache/stats").json()["templates"] == 0


def test_unknown_operation_is_rejected(client):
    response = client.post("/cache/invalidate", json={"operation": "drop_everything"})

    assert response.status_code == 422
