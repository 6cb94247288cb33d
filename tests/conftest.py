# tests/conftest.py
from __future__ import annotations

from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from inventario.core.settings import Settings
from inventario.crud import product as crud
from inventario.database import build_engine, build_session_factory
from inventario.main import create_app


def _sqlite_url(path: Path) -> str:
    return f"sqlite:///{path}"


# --- Store fixtures -----------------------------------------------------------
@pytest.fixture()
def engine(tmp_path: Path) -> Generator[Engine, None, None]:
    """Engine pe un fișier SQLite temporar, cu tabelul deja creat."""
    eng = build_engine(_sqlite_url(tmp_path / "store.db"))
    crud.initialize(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def db(engine: Engine) -> Generator[Session, None, None]:
    session = build_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


# --- Web fixtures -------------------------------------------------------------
@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(DATABASE_URL=_sqlite_url(tmp_path / "web.db"), LOG_LEVEL="WARNING")


@pytest.fixture()
def client(settings: Settings) -> Generator[TestClient, None, None]:
    """Client HTTP in-process; lifespan-ul rulează initialize() la intrare."""
    app = create_app(settings)
    with TestClient(app) as c:
        yield c
