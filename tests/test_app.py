import time

from app import create_app
from memcell.config import Settings
from memcell.datastore import DataStore

import pytest

#-------------FIXTURES----------------
@pytest.fixture
def app():
    settings = Settings(default_ttl=60, reap_interval=0)
    app = create_app(settings, DataStore(default_ttl=settings.default_ttl))
    app.config["TESTING"] = True
    yield app
    app.extensions["memcell"]["reaper"].stop()

@pytest.fixture
def client(app):
    return app.test_client()

@pytest.fixture
def store(app):
    return app.extensions["memcell"]["store"]


#-------------CACHE ENDPOINTS----------------
def test_get_missing_key(client):
    response = client.get("/cache/nope")
    assert response.status_code == 404

def test_put_then_get(client):
    assert client.put("/cache/k1", data=b"\x00\x01binary").status_code == 200

    response = client.get("/cache/k1")
    assert response.status_code == 200
    assert response.data == b"\x00\x01binary"
    assert response.mimetype == "application/octet-stream"

def test_put_uses_default_ttl(client, store):
    client.put("/cache/k1", data=b"v")
    assert 59 <= store.ttl("k1") <= 60

def test_put_then_expired_is_missing(client, monkeypatch):
    client.put("/cache/k1", data=b"v")
    real_time = time.time
    monkeypatch.setattr(time, "time", lambda: real_time() + 61)
    assert client.get("/cache/k1").status_code == 404

def test_delete(client):
    client.put("/cache/k1", data=b"v")
    assert client.delete("/cache/k1").status_code == 200
    assert client.get("/cache/k1").status_code == 404

def test_delete_missing_key_is_ok(client):
    assert client.delete("/cache/nope").status_code == 200

def test_status_reports_count(client):
    assert client.get("/status").get_json() == {"count": 0}
    client.put("/cache/a", data=b"1")
    client.put("/cache/b", data=b"2")
    client.put("/cache/a", data=b"3")
    assert client.get("/status").get_json() == {"count": 2}

def test_internal_error_is_server_failure(client, store, monkeypatch):
    def broken(key):
        raise RuntimeError("boom")
    monkeypatch.setattr(store, "get", broken)

    response = client.get("/cache/k1")
    assert response.status_code == 500
    assert response.data == b"server failure"

def test_unknown_route_is_not_server_failure(client):
    assert client.get("/nowhere").status_code == 404


#-------------COMMAND CONSOLE----------------
def test_command(client):
    response = client.post("/", json={"command": "SET k v"})
    assert response.status_code == 200
    assert response.data == b"OK"
    assert client.post("/", json={"command": "GET k"}).data == b"v"

def test_command_missing(client):
    response = client.post("/", json={})
    assert response.status_code == 400

def test_command_sees_http_values(client):
    client.put("/cache/k", data=b"hello")
    assert client.post("/", json={"command": "GET k"}).data == b"hello"


#-------------WIRING----------------
def test_reaper_started_from_settings():
    app = create_app(Settings(reap_interval=0.05))
    reaper = app.extensions["memcell"]["reaper"]
    assert reaper.running is True
    reaper.stop()
    assert reaper.running is False

def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("MEMCELL_DEFAULT_TTL", "0")
    monkeypatch.setenv("MEMCELL_REAP_INTERVAL", "-1")
    monkeypatch.setenv("MEMCELL_SNAPSHOT_PATH", "/tmp/memcell.snapshot")
    monkeypatch.setenv("MEMCELL_LOG_LEVEL", "debug")

    settings = Settings.from_env()
    assert settings.default_ttl == 0
    assert settings.reap_interval == -1
    assert settings.snapshot_path == "/tmp/memcell.snapshot"
    assert settings.log_level == "DEBUG"
