# This project was developed with assistance from AI tools.
"""FastAPI application entry point."""

import logging
import uuid
from contextlib import asynccontextmanager

from db import get_db_service
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .core.config import settings
from .routes import admin, health, notifications, partners, properties
from .schemas.error import ErrorResponse
from .services.verification import InvalidTransition, VerificationError

logger = logging.getLogger(__name__)


def log_startup_status() -> None:
    logger.info(
        "%s %s starting (auth=%s, upload limit=%d MB, notify queue=%d)",
        settings.APP_NAME,
        __version__,
        "disabled" if settings.AUTH_DISABLED else "keycloak",
        settings.UPLOAD_MAX_SIZE_MB,
        settings.NOTIFY_QUEUE_SIZE,
    )


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application startup/shutdown lifecycle."""
    from .services.storage import init_storage_service

    log_startup_status()
    init_storage_service(settings)
    yield
    await get_db_service().dispose()


app = FastAPI(
    title="StayVerify API",
    description="Partner and property verification workflow",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

_HTTP_STATUS_TITLES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    413: "Payload Too Large",
    415: "Unsupported Media Type",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def _build_error(
    status_code: int,
    detail: str,
    request_id: str,
    *,
    error_type: str = "about:blank",
    current_status: str | None = None,
    attempted_event: str | None = None,
) -> ErrorResponse:
    return ErrorResponse(
        type=error_type,
        title=_HTTP_STATUS_TITLES.get(status_code, "Error"),
        status=status_code,
        detail=detail,
        request_id=request_id,
        current_status=current_status,
        attempted_event=attempted_event,
    )


@app.exception_handler(VerificationError)
async def verification_exception_handler(request: Request, exc: VerificationError):
    """Workflow errors carry their own status and user-facing text."""
    request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
    current = attempted = None
    if isinstance(exc, InvalidTransition):
        current, attempted = exc.current.value, exc.event.value
    if exc.http_status == 409:
        logger.warning("%s (request_id=%s): %s", exc.error_type, request_id, exc)
    body = _build_error(
        exc.http_status,
        str(exc),
        request_id,
        error_type=exc.error_type,
        current_status=current,
        attempted_event=attempted,
    )
    return JSONResponse(status_code=exc.http_status, content=body.model_dump())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Convert HTTPException to RFC 7807 Problem Details."""
    request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
    body = _build_error(exc.status_code, str(exc.detail), request_id)
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Convert Pydantic validation errors to RFC 7807 Problem Details."""
    request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
    body = _build_error(422, str(exc.errors()), request_id)
    return JSONResponse(status_code=422, content=body.model_dump())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all for unhandled exceptions -- log and return 500."""
    request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
    logger.exception("Unhandled exception (request_id=%s)", request_id)
    body = _build_error(500, "An unexpected error occurred.", request_id)
    return JSONResponse(status_code=500, content=body.model_dump())


# Include routers
app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(partners.router, prefix="/api/partners", tags=["partners"])
app.include_router(properties.router, prefix="/api/properties", tags=["properties"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(notifications.router, prefix="/api", tags=["notifications"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint"""
    return {"message": "StayVerify verification API"}
