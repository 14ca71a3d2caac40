"""
FastAPI main application for the Book Review API.
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from motor.motor_asyncio import AsyncIOMotorClient
from pydantic import ValidationError
from starlette.exceptions import HTTPException

from api.config import config as api_config
from api.models import ErrorResponse, HealthResponse
from api.routes import router
from api.uploads import UploadResolver
from catalog.database import CatalogStore
from catalog.errors import CatalogError, status_for
from utilities.config import config
from utilities.logger import bind_request_context, clear_request_context

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the MongoDB connection pool for the lifetime of the application."""
    logger.info("Starting Book Review API")

    client = AsyncIOMotorClient(config.mongodb_url)
    try:
        database = client[config.mongodb_database]
        await database.command("ping")
        logger.info("Database connection established", database=config.mongodb_database)

        store = CatalogStore(database)
        await store.create_indexes()
        app.state.store = store
        app.state.uploads.ensure_directory()
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        client.close()
        raise

    yield

    logger.info("Shutting down Book Review API")
    app.state.store = None
    client.close()


app = FastAPI(
    title=api_config.api_title,
    description=api_config.api_description,
    version=api_config.api_version,
    lifespan=lifespan
)

app.state.store = None
app.state.uploads = UploadResolver(api_config.uploads_dir)

app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.cors_origins,
    allow_credentials=api_config.cors_allow_credentials,
    allow_methods=api_config.cors_allow_methods,
    allow_headers=api_config.cors_allow_headers,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Bind request context to log events and log each completed request."""
    bind_request_context(request.method, request.url.path, request.headers.get("x-request-id"))
    started = time.perf_counter()
    try:
        response = await call_next(request)
        logger.info(
            "Request completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2)
        )
        return response
    except Exception:
        logger.error(
            "Request failed with unhandled error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            duration_ms=round((time.perf_counter() - started) * 1000, 2)
        )
        raise
    finally:
        clear_request_context()


def error_response(status_code: int, message: str, detail: str = None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message, detail=detail, status_code=status_code).model_dump(),
        headers=headers
    )


# Exception handlers
@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError):
    """Map the error taxonomy to HTTP statuses."""
    status_code = status_for(exc)
    logger.info("Request failed", status_code=status_code, error=exc.message)
    return error_response(status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Missing or malformed body fields are bad requests."""
    logger.info("Request body rejected", errors=exc.errors())
    return error_response(status.HTTP_400_BAD_REQUEST, "Required fields missing", detail=str(exc.errors()))


@app.exception_handler(ValidationError)
async def payload_validation_exception_handler(request: Request, exc: ValidationError):
    """Form or JSON fields that cannot be read as text."""
    logger.info("Record fields rejected", errors=exc.errors())
    return error_response(status.HTTP_400_BAD_REQUEST, "Invalid field values", detail=str(exc))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions."""
    return error_response(exc.status_code, str(exc.detail), headers=exc.headers)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), exc_info=exc)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        detail=str(exc) if api_config.debug else None
    )


@app.get("/", response_class=PlainTextResponse, tags=["Health"])
async def root():
    """Liveness probe."""
    return "Book Review API is running"


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Health check including database connectivity."""
    db_status = "unavailable"
    store = request.app.state.store
    if store is not None:
        health_info = await store.health_check()
        db_status = health_info.get("status", "unknown")

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=api_config.api_version,
        database_status=db_status
    )


app.include_router(router)
app.mount(
    api_config.uploads_url_prefix,
    StaticFiles(directory=api_config.uploads_dir, check_dir=False),
    name="uploads"
)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.debug,
        log_level="info"
    )
