# inventario/database.py
from __future__ import annotations

from typing import Generator

from fastapi import Request
from sqlalchemy import MetaData, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

# -----------------------------
# Helpers
# -----------------------------
def mask_url(url: str) -> str:
    if "://" not in url:
        return url
    scheme, rest = url.split("://", 1)
    if "@" not in rest or ":" not in rest.split("@", 1)[0]:
        return url
    creds, tail = rest.split("@", 1)
    user = creds.split(":", 1)[0]
    return f"{scheme}://{user}:***@{tail}"

_MEMORY_URLS = {"sqlite://", "sqlite:///:memory:", "sqlite+pysqlite:///:memory:"}

# -----------------------------
# Naming convention (nume stabile pentru constrângeri/indexuri)
# -----------------------------
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)
Base = declarative_base(metadata=metadata)

# -----------------------------
# Engine factory
# -----------------------------
def _build_engine_kwargs(url: str, echo: bool) -> dict:
    kwargs: dict = {"echo": echo}

    if url.startswith("sqlite"):
        # SQLite: handler-ele rulează în threadpool → dezactivează check_same_thread
        kwargs["connect_args"] = {"check_same_thread": False}
        # In-memory → StaticPool (altfel fiecare conexiune are DB separat)
        if url in _MEMORY_URLS:
            kwargs["poolclass"] = StaticPool
        else:
            # Pentru fișiere, NullPool e ok (pooling are beneficii reduse la SQLite)
            kwargs["poolclass"] = NullPool
    else:
        kwargs["pool_pre_ping"] = True

    return kwargs

def build_engine(url: str, *, echo: bool = False) -> Engine:
    url = (url or "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL este gol. Setează o valoare validă.")
    return create_engine(url, **_build_engine_kwargs(url, echo))

def build_session_factory(engine: Engine) -> sessionmaker:
    # expire_on_commit=False → obiectele rămân utilizabile după commit (evită re-load imediat)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)

def get_db(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency pentru o sesiune SQLAlchemy închisă garantat.
    Factory-ul e creat o singură dată în create_app() și ținut pe app.state.
    Face rollback automat dacă apare o excepție în request handler.
    """
    db: Session = request.app.state.session_factory()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

__all__ = [
    "Base",
    "build_engine",
    "build_session_factory",
    "get_db",
    "mask_url",
]
