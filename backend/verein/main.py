"""
Verein Backend - FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance;
       run() starts uvicorn with the configured host, port and TLS files.
Who:   Started by `verein` / `python -m verein`, or `uvicorn verein.main:app`.
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐             │
    │  │  Req ID  │→│ Logging  │→│ GZip │→│ CORS │             │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘             │
    │                                                          │
    │  Routes:                                                 │
    │  ┌────────────────┐ ┌─────────────────┐ ┌─────────────┐  │
    │  │ GET /verein... │ │ POST/PUT/DELETE │ │ /graphql    │  │
    │  └────────────────┘ └─────────────────┘ └─────────────┘  │
    │  ┌─────────────┐                                         │
    │  │ GET /health │                                         │
    │  └─────────────┘                                         │
    │                                                          │
    │  Exception Handlers (application/problem+json):          │
    │  ┌────────────────────────────────────────────────────┐  │
    │  │ NotFound→404 │ Constraints→400 │ EmailExists→409   │  │
    │  │ Outdated→412 │ If-Match missing→428 │ DB→500       │  │
    │  └────────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration
    3. Create tables when DB_CREATE_SCHEMA is set

    Shutdown:
    1. Dispose database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from verein import __version__
from verein.config import settings
from verein.database import create_schema, dispose_engine
from verein.exceptions import (
    ConstraintViolationsError,
    DatabaseError,
    DateTimeParseError,
    EmailExistsError,
    InvalidCriteriaError,
    NotFoundError,
    VereinError,
    VersionInvalidError,
    VersionOutdatedError,
)
from verein.graphql_api.schema import graphql_router
from verein.middleware.logging import RequestLoggingMiddleware
from verein.middleware.request_id import RequestIDMiddleware, request_id_var
from verein.routes import health, verein_get, verein_write
from verein.schemas.verein import ProblemDetail, ProblemType, ViolationModel

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"
PROBLEM_PATH = "/problem"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Level:  LOG_LEVEL (default INFO), output to stdout.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Verein Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    if settings.db_create_schema:
        logger.info("Creating missing database tables (DB_CREATE_SCHEMA)")
        await create_schema()

    scheme = "https" if settings.tls_enabled else "http"
    logger.info("Server ready at %s://%s:%d", scheme, settings.backend_host, settings.backend_port)
    logger.info("GraphQL: %s://%s:%d/graphql", scheme, settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield  # Application runs here

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Verein Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def problem_response(
    request: Request,
    status: int,
    problem_type: ProblemType,
    title: str,
    detail: Optional[str] = None,
    violations: Optional[List[ViolationModel]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Build an RFC 7807 problem response carrying the request ID."""
    base = str(request.base_url).rstrip("/")
    problem = ProblemDetail(
        type=f"{base}{PROBLEM_PATH}/{problem_type.value}",
        title=title,
        status=status,
        detail=detail,
        instance=request.url.path,
        violations=violations,
        request_id=request_id_var.get("") or None,
    )
    return JSONResponse(
        status_code=status,
        content=problem.model_dump(mode="json", exclude_none=True),
        media_type=PROBLEM_MEDIA_TYPE,
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        RequestValidationError     → 400 Bad Request (malformed body/path/query)
        ConstraintViolationsError  → 400 Bad Request, violations listed
        DateTimeParseError         → 400 Bad Request
        InvalidCriteriaError       → 400 Bad Request
        VersionInvalidError        → 428 Precondition Required (missing If-Match)
                                     400 Bad Request (malformed If-Match)
        NotFoundError              → 404 Not Found
        EmailExistsError           → 409 Conflict
        VersionOutdatedError       → 412 Precondition Failed
        DatabaseError              → 500 Internal Server Error
        VereinError (base)         → 500 Internal Server Error
        Exception (fallback)       → 500 Internal Server Error

    Security: handlers never expose stack traces or SQL in the response;
    details are logged server-side.
    """

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        violations = [
            ViolationModel(
                field=".".join(str(part) for part in error["loc"] if part != "body"),
                message=error["msg"],
            )
            for error in exc.errors()
        ]
        logger.debug("[%s] Malformed request: %s", request_id_var.get(""), violations)
        return problem_response(
            request, 400, ProblemType.BAD_REQUEST, "Bad Request",
            detail="The request is malformed", violations=violations,
        )

    @app.exception_handler(ConstraintViolationsError)
    async def handle_constraint_violations(request: Request, exc: ConstraintViolationsError):
        logger.debug("[%s] %s: %s", request_id_var.get(""), exc.message, exc.violations)
        violations = [ViolationModel(field=v.field, message=v.message) for v in exc.violations]
        return problem_response(
            request, 400, ProblemType.CONSTRAINTS, "Constraint Violations",
            detail=exc.message, violations=violations,
        )

    @app.exception_handler(DateTimeParseError)
    async def handle_date_time_parse(request: Request, exc: DateTimeParseError):
        return problem_response(
            request, 400, ProblemType.BAD_REQUEST, "Bad Request", detail=exc.message,
        )

    @app.exception_handler(InvalidCriteriaError)
    async def handle_invalid_criteria(request: Request, exc: InvalidCriteriaError):
        return problem_response(
            request, 400, ProblemType.BAD_REQUEST, "Bad Request", detail=exc.message,
        )

    @app.exception_handler(VersionInvalidError)
    async def handle_version_invalid(request: Request, exc: VersionInvalidError):
        if exc.missing:
            return problem_response(
                request, 428, ProblemType.PRECONDITION, "Precondition Required",
                detail="Header If-Match is missing",
            )
        return problem_response(
            request, 400, ProblemType.PRECONDITION, "Bad Request", detail=exc.message,
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return problem_response(
            request, 404, ProblemType.NOT_FOUND, "Not Found", detail=exc.message,
        )

    @app.exception_handler(EmailExistsError)
    async def handle_email_exists(request: Request, exc: EmailExistsError):
        return problem_response(
            request, 409, ProblemType.CONFLICT, "Conflict", detail=exc.message,
        )

    @app.exception_handler(VersionOutdatedError)
    async def handle_version_outdated(request: Request, exc: VersionOutdatedError):
        return problem_response(
            request, 412, ProblemType.PRECONDITION, "Precondition Failed", detail=exc.message,
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return problem_response(
            request, 500, ProblemType.INTERNAL, "Internal Server Error",
            detail="An internal error occurred. Please try again later.",
        )

    @app.exception_handler(VereinError)
    async def handle_verein_error(request: Request, exc: VereinError):
        rid = request_id_var.get("")
        logger.error("[%s] Unhandled domain error: %s | Context: %s", rid, exc.message, exc.context)
        return problem_response(
            request, 500, ProblemType.INTERNAL, "Internal Server Error", detail=exc.message,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return problem_response(
            request, 500, ProblemType.INTERNAL, "Internal Server Error",
            detail="An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="Verein API",
        description=(
            "Manage Vereine (clubs/associations) through REST and GraphQL. "
            "Updates use optimistic concurrency: send the ETag as If-Match."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "ETag",
            "Location",
        ],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(verein_get.router)
    app.include_router(verein_write.router)
    app.include_router(health.router)
    app.include_router(graphql_router, prefix="/graphql", tags=["GraphQL"])

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()


def run() -> None:
    """
    Start the server with uvicorn.

    TLS is terminated by uvicorn when TLS_ENABLED is set; missing certificate
    files abort the start.
    """
    setup_logging()
    settings.validate_required_for_production()

    options: Dict[str, Any] = {}
    if settings.tls_enabled:
        options.update(ssl_certfile=settings.tls_certfile, ssl_keyfile=settings.tls_keyfile)

    uvicorn.run(
        "verein.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
        **options,
    )
