"""
api/main.py -- FastAPI application entry point for Chirpy.

Run with:  uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware -- adds CORS headers for allowed browser origins
  2. log_requests   -- method, path, status, latency for every request

Lifespan builds every shared resource once -- settings, stores, the
refresh-token service, the clock -- and hangs them on app.state. Route
handlers and auth dependencies read from app.state; nothing is global.

Error mapping: every auth.errors.AuthError carries its own status code
(401 credential problems, 403 ownership, 500 hashing infrastructure), so one
handler renders all of them in the ErrorResponse envelope.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.admin import router as admin_router
from api.routes.v1.auth import router as auth_router
from api.routes.v1.chirps import router as chirps_router
from api.routes.v1.polka import router as polka_router
from auth.errors import AuthError, RefreshTokenError
from auth.refresh import RefreshTokenStore
from auth.store import AuthStore
from chirps.store import ChirpStore
from core.clock import utc_now
from core.config import get_settings

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("chirpy.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build shared resources on startup and release them on shutdown.

    Startup order matters: the refresh-token service wraps the auth store,
    so the store must exist first.
    """
    logger.info("Chirpy API starting up")
    settings = get_settings()
    app.state.settings = settings
    app.state.clock = utc_now
    app.state.auth_store = AuthStore(settings.auth_db_url)
    app.state.chirp_store = ChirpStore(settings.chirps_db_url)
    app.state.refresh_tokens = RefreshTokenStore(
        app.state.auth_store,
        lifetime=timedelta(days=settings.refresh_token_days),
    )
    logger.info(
        "Auth initialized (access_ttl=%ds, refresh_days=%d, platform=%s)",
        settings.access_token_ttl_seconds,
        settings.refresh_token_days,
        settings.platform,
    )

    yield

    app.state.chirp_store.close()
    app.state.auth_store.close()
    logger.info("Chirpy API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Chirpy API",
    description="Short-text posting service: accounts, sessions, and chirps.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost", "http://localhost:3000", "http://127.0.0.1"],
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(chirps_router, prefix="/api", tags=["Chirps"])
app.include_router(polka_router, prefix="/api", tags=["Webhooks"])
app.include_router(admin_router, prefix="/admin", tags=["Admin"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render a typed auth failure with its own status code.

    Refresh-token failures share one public code and message so a caller
    cannot distinguish unknown, revoked, and expired tokens. 401s carry
    WWW-Authenticate; 500s are logged with the traceback.
    """
    if isinstance(exc, RefreshTokenError):
        code, message = exc.public_code, exc.public_message
    else:
        code, message = exc.code, exc.message
    if exc.status_code >= 500:
        logger.error("Auth infrastructure failure on %s %s", request.method, request.url.path, exc_info=exc)
    response = JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message)).model_dump(),
    )
    if exc.status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    Route handlers raise HTTPException with a {"code", "message"} dict as
    detail; use it directly rather than stringifying it.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state.
# ---------------------------------------------------------------------------


@app.get("/api/healthz", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=VERSION)
