"""
Document AI Assistant — FastAPI Application Factory
====================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers and routers;
       uvicorn serves the module-level `app` (uvicorn docassist.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                        FastAPI App                           │
    │                                                              │
    │  Middleware:  RequestContext → GZip → CORS                   │
    │                                                              │
    │  Routes:                                                     │
    │   /api/folders  /api/documents  /api/notes  /api/audio       │
    │   /api/todos    /api/notifications  /api/chat(s)             │
    │   /api/files    /health                                      │
    │                                                              │
    │  Exception Handlers:                                         │
    │   Validation→400  Auth→401  NotFound→404  Folder rules→409   │
    │   LLM / malformed output / storage / database→500            │
    └──────────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from docassist import __version__
from docassist.config import settings
from docassist.database import dispose_engine
from docassist.exceptions import (
    AssistantError,
    AuthenticationError,
    DatabaseError,
    FileStorageError,
    FolderCycleError,
    FolderNotEmptyError,
    LLMServiceError,
    MalformedResponseError,
    NotFoundError,
    ValidationError,
)
from docassist.middleware.request_context import RequestContextMiddleware
from docassist.routes import audio, chat, documents, files, folders, health, notes, notifications, todos

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """Root logger to stdout; chatty third-party loggers lowered to WARNING."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("Document AI Assistant %s starting up...", __version__)

    # Missing secrets are reported but do not stop the server, so /health
    # can still describe the problem.
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage.resolve())
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Document AI Assistant shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "error": error,
        "message": message,
        "request_id": _request_id(request),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Maps domain exceptions to HTTP responses.

    Client errors echo the message and context. Server errors return a
    generic message; the context is logged with the request id instead.
    """

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [
            {
                "loc": [str(part) for part in err.get("loc", ())],
                "msg": err.get("msg", ""),
                "type": err.get("type", ""),
            }
            for err in exc.errors()
        ]
        logger.warning("[%s] Request validation failed: %s", _request_id(request), errors)
        return _error_response(
            request, 400, "validation_error", "Request validation failed", {"errors": errors}
        )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", _request_id(request), exc.message)
        return _error_response(request, 400, "validation_error", exc.message, exc.context)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        logger.warning("[%s] Authentication failed: %s", _request_id(request), exc.message)
        return JSONResponse(
            status_code=401,
            content={
                "error": "unauthorized",
                "message": exc.message,
                "request_id": _request_id(request),
            },
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(request, 404, "not_found", exc.message)

    @app.exception_handler(FolderCycleError)
    async def handle_folder_cycle(request: Request, exc: FolderCycleError):
        logger.warning("[%s] Folder move rejected: %s", _request_id(request), exc.message)
        return _error_response(request, 409, "folder_cycle", exc.message, exc.context)

    @app.exception_handler(FolderNotEmptyError)
    async def handle_folder_not_empty(request: Request, exc: FolderNotEmptyError):
        logger.warning("[%s] Folder delete rejected: %s", _request_id(request), exc.message)
        return _error_response(request, 409, "folder_not_empty", exc.message, exc.context)

    @app.exception_handler(MalformedResponseError)
    async def handle_malformed_response(request: Request, exc: MalformedResponseError):
        logger.error(
            "[%s] Malformed AI response: %s | Context: %s",
            _request_id(request),
            exc.message,
            exc.context,
        )
        return _error_response(request, 500, "malformed_response", exc.message)

    @app.exception_handler(LLMServiceError)
    async def handle_llm_error(request: Request, exc: LLMServiceError):
        logger.error(
            "[%s] LLM service error: %s | Context: %s",
            _request_id(request),
            exc.message,
            exc.context,
        )
        return _error_response(
            request,
            500,
            "llm_service_error",
            "The AI service failed to process the request. Please try again later.",
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s", _request_id(request), exc.message, exc.context
        )
        return _error_response(
            request, 500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error(
            "[%s] File storage error: %s | Context: %s",
            _request_id(request),
            exc.message,
            exc.context,
        )
        return _error_response(request, 500, "server_error", exc.message)

    @app.exception_handler(AssistantError)
    async def handle_assistant_error(request: Request, exc: AssistantError):
        logger.error("[%s] Unhandled application error: %s", _request_id(request), exc.message)
        return _error_response(
            request, 500, "internal_server_error", "An unexpected error occurred."
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", _request_id(request), str(exc), exc_info=True)
        return _error_response(
            request,
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Document AI Assistant API",
        description=(
            "Workspace backend for SAFe/Agile teams: folders, documents, notes, "
            "meeting recordings and todos, with LLM-powered classification, "
            "action item detection, meeting summaries and chat."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first: RequestContext → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    for module in (folders, documents, notes, audio, todos, notifications, chat, files, health):
        app.include_router(module.router)

    return app


app = create_app()
