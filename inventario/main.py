# inventario/main.py
from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from inventario.core.logging import setup_logging
from inventario.core.settings import Settings, get_settings
from inventario.crud.product import StorageError, initialize
from inventario.database import build_engine, build_session_factory, get_db, mask_url
from inventario.routers.api import router as api_router
from inventario.routers.pages import render_error, render_not_found
from inventario.routers.pages import router as pages_router

logger = logging.getLogger("inventario")

tags_metadata = [
    {"name": "health", "description": "Liveness/Readiness checks"},
    {"name": "pages", "description": "Server-rendered product pages"},
    {"name": "api", "description": "Read-only JSON API"},
]

# --- Utilitare ---
def _get_req_id_from_headers(request: Request) -> str:
    # Prefer X-Request-ID, apoi X-Correlation-ID; dacă lipsesc, generează unul.
    return (
        request.headers.get("x-request-id")
        or request.headers.get("x-correlation-id")
        or uuid.uuid4().hex[:12]
    )

def _wants_json(request: Request) -> bool:
    return request.url.path.startswith("/api")

# --- Middleware func (registered after app is created) ---
async def request_context_mw(request: Request, call_next):
    """
    - Generează/propagă X-Request-ID
    - Aplică headers de securitate
    - Limitează mărimea corpului când Content-Length e disponibil
    - Server-Timing / X-Process-Time
    """
    settings: Settings = request.app.state.settings
    req_id = _get_req_id_from_headers(request)

    # Body-size guard (non-intruziv, pe Content-Length)
    if settings.MAX_BODY_SIZE_BYTES > 0:
        cl = request.headers.get("content-length")
        if cl is not None and cl.isdigit() and int(cl) > settings.MAX_BODY_SIZE_BYTES:
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={"error": "Payload too large", "max_bytes": settings.MAX_BODY_SIZE_BYTES},
                headers={"X-Request-ID": req_id},
            )

    start = time.perf_counter()
    response: Response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000

    # Security + perf headers
    response.headers.setdefault("X-Request-ID", req_id)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    response.headers.setdefault("Cache-Control", "no-store")
    response.headers.setdefault("X-App-Version", settings.APP_VERSION)
    response.headers.setdefault("Server-Timing", f"app;dur={duration_ms:.1f}")
    response.headers.setdefault("X-Process-Time", f"{duration_ms:.1f}ms")
    return response

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: tabelul trebuie să existe înainte de primul request
    db_url = mask_url(app.state.settings.DATABASE_URL)
    try:
        initialize(app.state.engine)
    except StorageError:
        logger.exception("Storage initialization FAILED (db=%s)", db_url)
        raise
    logger.info("Table products verified/created (db=%s)", db_url)

    # Ready to serve
    yield

    app.state.engine.dispose()

# --- Exception handlers ---
async def _starlette_http_exc_handler(request: Request, exc: StarletteHTTPException):
    headers = dict(exc.headers or {})
    headers.setdefault("X-Request-ID", _get_req_id_from_headers(request))
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        if _wants_json(request):
            return JSONResponse(
                status_code=exc.status_code,
                content={"error": "Not found", "path": str(request.url.path)},
                headers=headers,
            )
        response = render_not_found(request)
    elif _wants_json(request):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=headers)
    else:
        response = render_error(request, str(exc.detail), exc.status_code)
    response.headers.update(headers)
    return response

async def _validation_handler(request: Request, exc: RequestValidationError):
    if _wants_json(request):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": "Invalid request", "detail": exc.errors()},
            headers={"X-Request-ID": _get_req_id_from_headers(request)},
        )
    return render_error(request, "Invalid request", status.HTTP_422_UNPROCESSABLE_ENTITY)

async def _storage_exc_handler(request: Request, exc: StorageError):
    logger.error("Storage error on %s %s: %s", request.method, request.url.path, exc.message, exc_info=exc)
    if _wants_json(request):
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": exc.message},
            headers={"X-Request-ID": _get_req_id_from_headers(request)},
        )
    return render_error(request, "Internal Server Error")

async def _unhandled_exc_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error: %s", exc)
    if _wants_json(request):
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error"},
            headers={"X-Request-ID": _get_req_id_from_headers(request)},
        )
    return render_error(request, "Internal Server Error")

# --- Routes: health ---
health_router = APIRouter(tags=["health"])

@health_router.get("/__version__")
def version_meta(request: Request):
    return {"app_version": request.app.state.settings.APP_VERSION, "started_at": request.app.state.started_ts}

@health_router.get("/health")
def health():
    return {"status": "ok"}

@health_router.get("/health/uptime")
def health_uptime(request: Request):
    return {
        "uptime_seconds": round(time.monotonic() - request.app.state.started_mono, 3),
        "started_at": request.app.state.started_ts,
    }

@health_router.get("/health/db")
def health_db(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except Exception:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="DB not ready")
    return {"status": "ok", "db": "up"}

# --- App factory ---
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Construiește aplicația și handle-ul de storage (engine + session factory).
    Handle-ul trăiește pe app.state; handler-ele îl primesc prin get_db.
    """
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_TITLE,
        version=settings.APP_VERSION,
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = build_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.started_mono = time.monotonic()
    app.state.started_ts = int(time.time())

    app.middleware("http")(request_context_mw)
    app.add_middleware(GZipMiddleware, minimum_size=1024)

    # CORS din env: CORS_ORIGINS="http://localhost:3000,https://example.com"
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID", "Server-Timing", "X-Process-Time", "X-App-Version"],
        )

    app.add_exception_handler(StarletteHTTPException, _starlette_http_exc_handler)
    app.add_exception_handler(RequestValidationError, _validation_handler)
    app.add_exception_handler(StorageError, _storage_exc_handler)
    app.add_exception_handler(Exception, _unhandled_exc_handler)

    app.include_router(health_router)
    app.include_router(pages_router)
    app.include_router(api_router)
    return app

app = create_app()
