# tests/test_health.py
from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from inventario.core.settings import Settings
from inventario.main import create_app


@pytest.mark.timeout(5)
def test_health_ok(client: TestClient):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


@pytest.mark.timeout(5)
def test_health_db_up(client: TestClient):
    r = client.get("/health/db")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "db": "up"}


@pytest.mark.timeout(5)
def test_version_and_uptime(client: TestClient, settings: Settings):
    v = client.get("/__version__").json()
    assert v["app_version"] == settings.APP_VERSION
    assert isinstance(v["started_at"], int)

    up = client.get("/health/uptime").json()
    assert up["uptime_seconds"] >= 0
    assert up["started_at"] == v["started_at"]


@pytest.mark.timeout(5)
def test_startup_creates_table_file(settings: Settings, tmp_path: Path):
    with TestClient(create_app(settings)) as c:
        assert c.get("/api/products").json() == []
    assert (tmp_path / "web.db").exists()


@pytest.mark.timeout(5)
def test_startup_fails_when_storage_cannot_initialize(tmp_path: Path):
    bad = Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'nope' / 'db.sqlite'}", LOG_LEVEL="WARNING")
    with pytest.raises(Exception):
        with TestClient(create_app(bad)):
            pass


@pytest.mark.timeout(5)
def test_body_size_guard(tmp_path: Path):
    limited = Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'limited.db'}",
        LOG_LEVEL="WARNING",
        MAX_BODY_SIZE_BYTES=16,
    )
    with TestClient(create_app(limited)) as c:
        r = c.post("/products", data={"nome": "x" * 100, "preco": "1"})
        assert r.status_code == 413
        assert r.json()["max_bytes"] == 16
