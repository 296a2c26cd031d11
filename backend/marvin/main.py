"""
Marvin FastAPI Application Entry Point.

Run with: uvicorn marvin.main:app --reload  (from backend/)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from marvin.api.routes import admin, auth, chat, documents, info, memories, profile, sessions
from marvin.config import Settings, get_settings, sanitize_error
from marvin.db.session import create_engine, create_session_factory
from marvin.errors import InternalError, MarvinError, UpstreamError
from marvin.services.auth import SupabaseAuth
from marvin.services.completion import build_completion_client
from marvin.services.storage import StorageService

logger = logging.getLogger(__name__)

settings = get_settings()

VALIDATION_FAILED = "Ungültige Anfrage: Pflichtfelder fehlen oder sind ungültig"

HTTP_ERROR_MESSAGES = {
    status.HTTP_404_NOT_FOUND: "Nicht gefunden",
    status.HTTP_405_METHOD_NOT_ALLOWED: "Methode nicht erlaubt",
}


def configure_logging(settings: Settings) -> None:
    """Root logger setup; uvicorn keeps its own handlers."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def error_response(status_code: int, message: str) -> JSONResponse:
    """Failure envelope shared by all exception handlers."""
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown."""
    # Startup
    engine = create_engine(settings)
    app.state.session_factory = create_session_factory(engine)
    app.state.completion_client = build_completion_client(settings)
    app.state.storage = StorageService.from_settings(settings)
    app.state.auth = SupabaseAuth(settings, httpx.AsyncClient(timeout=10.0))
    logger.info("Marvin API %s started (%s)", settings.app_version, settings.environment)

    yield

    # Shutdown
    await app.state.auth.aclose()
    await app.state.completion_client.close()
    await engine.dispose()


configure_logging(settings)

app = FastAPI(
    title=settings.app_name,
    description="Persönlicher Coaching-Chat mit Marvin",
    version=settings.app_version,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================


@app.exception_handler(MarvinError)
async def marvin_error_handler(request: Request, exc: MarvinError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return error_response(status.HTTP_400_BAD_REQUEST, VALIDATION_FAILED)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = HTTP_ERROR_MESSAGES.get(exc.status_code, str(exc.detail))
    return error_response(exc.status_code, message)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error in %s %s", request.method, request.url.path)
    return error_response(UpstreamError.status_code, UpstreamError.default_message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error in %s %s", request.method, request.url.path)
    message = sanitize_error(exc, generic_message=InternalError.default_message)
    return error_response(InternalError.status_code, message)


# Include routers
app.include_router(info.router)
app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(sessions.router)
app.include_router(chat.router)
app.include_router(memories.router)
app.include_router(documents.router)
app.include_router(admin.router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
